"""
Shared pytest fixtures for blog_app tests.

Each test gets its own in-memory SQLite database and its own uploads
folder. Environment is set before blog_app is imported so Settings picks
it up.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BASE_URL"] = "http://host"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="blog-uploads-")
os.environ["LOG_LEVEL"] = "DEBUG"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from blog_app.auth import create_access_token, hash_password
from blog_app.config import settings
from blog_app.core.asset_store import create_image_record
from blog_app.core.post_lifecycle import create_post
from blog_app.database import Base, get_db
from blog_app.main import app
from blog_app.models.user import User
from blog_app.schemas.blog_post_schema import PostCreate


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    folder = tmp_path / "uploads"
    folder.mkdir()
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(folder))
    return folder


@pytest.fixture
def client(session_factory, upload_dir):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def _make_user(db, email, *, is_admin=False):
    user = User(
        email=email,
        name=email.split("@")[0],
        hashed_password=hash_password("password123"),
        is_admin=is_admin,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def author(db):
    return _make_user(db, "author@example.com")


@pytest.fixture
def other_user(db):
    return _make_user(db, "other@example.com")


@pytest.fixture
def admin(db):
    return _make_user(db, "admin@example.com", is_admin=True)


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


# ---------------------------------------------------------------------------
# Posts and images
# ---------------------------------------------------------------------------

def asset_url(filename: str) -> str:
    return f"http://host/uploads/{filename}"


@pytest.fixture
def make_post(db, author):
    counter = {"n": 0}

    def _make(content="", cover=None, title=None, **kwargs):
        counter["n"] += 1
        payload = PostCreate(
            title=title or f"Post {counter['n']}",
            content=content,
            cover_image_url=cover,
            **kwargs,
        )
        return create_post(db, payload, author)

    return _make


@pytest.fixture
def make_image(db, author, upload_dir):
    """Write an upload to disk and create its ContentImage record."""

    def _make(filename, data=b"image-bytes"):
        (upload_dir / filename).write_bytes(data)
        return create_image_record(
            db,
            name=filename,
            filename=filename,
            image_url=asset_url(filename),
            uploaded_by=author.id,
        )

    return _make
