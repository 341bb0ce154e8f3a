from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from blog_app.config import settings


connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # FastAPI runs sync handlers in a threadpool
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
