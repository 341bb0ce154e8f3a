import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from blog_app.database import Base, engine
from blog_app.config import settings
from blog_app.logging_config import configure_logging
from blog_app.storage import ensure_upload_dir

# Import models so SQLAlchemy registers tables
from blog_app.models import (
    user,
    blog_post,
    comment,
    content_image,
)

# Routers
from blog_app.routers import (
    auth_router,
    blog_post_router,
    comment_router,
    content_image_router,
)

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# -----------------------
# CREATE APP
# -----------------------
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Backend API for the blog: posts, comments and content images.",
    version="1.0.0",
)
logger.info("Database URL: %s", settings.DATABASE_URL)

# -----------------------
# CORS
# -----------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # allow all during development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------
# DATABASE TABLES
# -----------------------
Base.metadata.create_all(bind=engine)

# -----------------------
# UPLOADED FILES
# -----------------------
upload_root = ensure_upload_dir()
app.mount(
    settings.UPLOADS_URL_PATH,
    StaticFiles(directory=str(upload_root)),
    name="uploads",
)

# -----------------------
# ROUTES
# -----------------------
app.include_router(auth_router.router)
app.include_router(blog_post_router.router)
app.include_router(comment_router.router)
app.include_router(content_image_router.router)

# -----------------------
# HEALTH CHECK
# -----------------------
@app.get("/")
def root():
    return {"message": "Blog API is running!"}
