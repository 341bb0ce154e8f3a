# blog_app/models/blog_post.py

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from blog_app.database import Base


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    content = Column(Text, nullable=False)  # markdown / HTML
    cover_image_url = Column(String, nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    author_id = Column(String, ForeignKey("users.id"), nullable=False)

    is_draft = Column(Boolean, default=False, nullable=False)
    views = Column(Integer, default=0, nullable=False)
    likes = Column(Integer, default=0, nullable=False)
    generated_by_ai = Column(Boolean, default=False, nullable=False)

    # SEO
    meta_title = Column(String, default="", nullable=False)
    meta_description = Column(String, default="", nullable=False)
    meta_keywords = Column(String, default="", nullable=False)
    custom_url = Column(String, default="", nullable=False)
    image_alt_text = Column(String, default="", nullable=False)
    canonical_url = Column(String, default="", nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # -------------------------
    # RELATIONSHIPS
    # -------------------------

    author = relationship(
        "User",
        back_populates="posts",
        lazy="joined",
    )

    comments = relationship(
        "Comment",
        back_populates="post",
        cascade="all, delete-orphan",
    )

    image_references = relationship(
        "PostImageReference",
        back_populates="post",
        order_by="PostImageReference.position",
        cascade="all, delete-orphan",
    )

    liked_by = relationship(
        "PostLike",
        back_populates="post",
        cascade="all, delete-orphan",
    )

    # -------------------------
    # ASSOCIATED IMAGES
    # -------------------------

    @property
    def associated_images(self) -> list[str]:
        """Filenames referenced by cover + content at the last save."""
        return [ref.filename for ref in self.image_references]

    @associated_images.setter
    def associated_images(self, filenames: list[str]):
        self.image_references = [
            PostImageReference(position=i, filename=name)
            for i, name in enumerate(filenames)
        ]


class PostImageReference(Base):
    """
    One row per filename in a post's reference set.

    This is the owning-document index the collector queries: "is this
    filename listed by any post other than X".
    """

    __tablename__ = "post_image_references"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(
        String,
        ForeignKey("blog_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    filename = Column(String, nullable=False, index=True)

    post = relationship("BlogPost", back_populates="image_references")


class PostLike(Base):
    __tablename__ = "post_likes"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_post_like"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(
        String,
        ForeignKey("blog_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    post = relationship("BlogPost", back_populates="liked_by")
