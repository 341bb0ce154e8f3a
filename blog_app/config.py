import os
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Settings:
    # -------------------------------------------------------
    # Project
    # -------------------------------------------------------
    PROJECT_NAME: str = "Blog API"
    ENV: str = os.getenv("ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # -------------------------------------------------------
    # Database
    # -------------------------------------------------------
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./blog.db"
    )

    # Render uses postgres:// but SQLAlchemy needs postgresql://
    if DATABASE_URL.startswith("postgres://"):
        DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

    # -------------------------------------------------------
    # Authentication / JWT
    # -------------------------------------------------------
    SECRET_KEY: str = os.getenv(
        "SECRET_KEY",
        "supersecretlocalkey123"   # Only used for local dev
    )
    ALGORITHM: str = "HS256"

    # 1 day token expiry by default
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
        os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24)
    )

    # -------------------------------------------------------
    # Public base URL (used to build absolute asset URLs)
    # -------------------------------------------------------
    BASE_URL: str = os.getenv(
        "BASE_URL",
        "http://localhost:8000"
    )

    # -------------------------------------------------------
    # Uploads
    # -------------------------------------------------------
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "./uploads")
    UPLOADS_URL_PATH: str = "/uploads"

    MAX_IMAGE_SIZE: int = int(
        os.getenv("MAX_IMAGE_SIZE", 5 * 1024 * 1024)
    )

    @property
    def ASSET_URL_PREFIX(self) -> str:
        """
        Every asset this server hosts lives under this prefix.
        Anything else found in a post is somebody else's image.
        """
        return f"{self.BASE_URL.rstrip('/')}{self.UPLOADS_URL_PATH}/"


# Single instance that is imported everywhere
settings = Settings()
