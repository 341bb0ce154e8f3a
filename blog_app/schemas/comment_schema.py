# blog_app/schemas/comment_schema.py

from pydantic import BaseModel, Field
from datetime import datetime


class CommentCreate(BaseModel):
    content: str = Field(min_length=1)


class CommentOut(BaseModel):
    id: str
    post_id: str
    author_id: str
    author_name: str | None = None

    content: str

    created_at: datetime
    updated_at: datetime | None = None
