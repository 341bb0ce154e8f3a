from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class ContentImageOut(BaseModel):
    id: str
    name: str
    image_url: str
    filename: str
    uploaded_by: str
    uploaded_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ContentImageRename(BaseModel):
    name: str
