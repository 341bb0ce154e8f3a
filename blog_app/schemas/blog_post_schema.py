from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class PostCreate(BaseModel):
    title: str = Field(min_length=1)
    content: str
    cover_image_url: Optional[str] = None
    tags: list[str] = []
    is_draft: bool = False
    generated_by_ai: bool = False

    # SEO
    meta_title: str = ""
    meta_description: str = ""
    meta_keywords: str = ""
    custom_url: str = ""
    image_alt_text: str = ""
    canonical_url: str = ""


class PostUpdate(BaseModel):
    """
    Fields a client may change on an existing post.

    Anything else (associated_images, counters, author) is rejected.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = None
    cover_image_url: Optional[str] = None
    tags: Optional[list[str]] = None
    is_draft: Optional[bool] = None
    generated_by_ai: Optional[bool] = None

    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    custom_url: Optional[str] = None
    image_alt_text: Optional[str] = None
    canonical_url: Optional[str] = None


class AuthorOut(BaseModel):
    id: str
    name: Optional[str] = None

    model_config = {"from_attributes": True}


class PostOut(BaseModel):
    id: str
    title: str
    slug: str
    content: str
    cover_image_url: Optional[str] = None
    tags: list[str] = []
    author: Optional[AuthorOut] = None

    is_draft: bool
    views: int
    likes: int
    generated_by_ai: bool

    meta_title: str = ""
    meta_description: str = ""
    meta_keywords: str = ""
    custom_url: str = ""
    image_alt_text: str = ""
    canonical_url: str = ""

    associated_images: list[str] = []

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PostDetailOut(PostOut):
    liked_by_current_user: bool = False


class PostCounts(BaseModel):
    all: int
    published: int
    draft: int


class PostListOut(BaseModel):
    posts: list[PostOut]
    total_count: int
    counts: PostCounts


class LikeOut(BaseModel):
    message: str
    likes: int
    is_liked: bool
