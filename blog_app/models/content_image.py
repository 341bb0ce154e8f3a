from sqlalchemy import Column, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from blog_app.database import Base


class ContentImage(Base):
    """
    An uploaded image asset.

    Uploaded on its own, never tied to a post by a foreign key. A post
    "uses" it only by listing its filename in associated_images.
    """

    __tablename__ = "content_images"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String, nullable=False)          # display name
    image_url = Column(String, nullable=False)     # absolute URL
    filename = Column(String, nullable=False, index=True)  # on-disk key

    uploaded_by = Column(String, ForeignKey("users.id"), nullable=False)
    uploaded_at = Column(DateTime, default=datetime.utcnow)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    uploader = relationship("User", back_populates="content_images")
