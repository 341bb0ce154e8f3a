# blog_app/routers/content_image_router.py

import logging
import os

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from sqlalchemy.orm import Session

from blog_app.database import get_db
from blog_app.auth import get_current_user
from blog_app.core.asset_store import create_image_record, list_images_for_user
from blog_app.models.content_image import ContentImage
from blog_app.models.user import User
from blog_app.schemas.content_image_schema import ContentImageOut, ContentImageRename
from blog_app.storage import (
    ALLOWED_IMAGE_EXTENSIONS,
    validate_file_size,
    save_file,
    delete_files,
    public_url,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/content-images", tags=["Content Images"])


def _require_image(file: UploadFile) -> str:
    ext = os.path.splitext(file.filename or "")[1].lower()
    ct = (file.content_type or "").lower()

    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise HTTPException(400, "Only image files are allowed")
    if ct and not ct.startswith("image/"):
        raise HTTPException(400, "Only image files are allowed")
    return ext


def get_owned_image(db: Session, image_id: str, user: User) -> ContentImage:
    image = db.query(ContentImage).filter(ContentImage.id == image_id).first()
    if not image:
        raise HTTPException(404, "Image not found")
    if image.uploaded_by != user.id:
        raise HTTPException(403, "Not authorized")
    return image


# --------------------------------------------------
# UPLOAD
# --------------------------------------------------

@router.post("/upload", response_model=ContentImageOut, status_code=201)
def upload_content_image(
    file: UploadFile = File(...),
    name: str = Form(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not name.strip():
        raise HTTPException(400, "Image name is required")

    _require_image(file)

    ok, err = validate_file_size(file)
    if not ok:
        raise HTTPException(status_code=413, detail=err)

    filename = save_file(file)

    return create_image_record(
        db,
        name=name.strip(),
        filename=filename,
        image_url=public_url(filename),
        uploaded_by=current_user.id,
    )


# --------------------------------------------------
# LIST MY IMAGES
# --------------------------------------------------

@router.get("", response_model=list[ContentImageOut])
def get_content_images(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return list_images_for_user(db, current_user.id)


# --------------------------------------------------
# RENAME
# --------------------------------------------------

@router.put("/{image_id}", response_model=ContentImageOut)
def rename_content_image(
    image_id: str,
    payload: ContentImageRename,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not payload.name.strip():
        raise HTTPException(400, "Image name is required")

    image = get_owned_image(db, image_id, current_user)
    image.name = payload.name.strip()
    db.commit()
    db.refresh(image)
    return image


# --------------------------------------------------
# DIRECT DELETE (OWNER, NO REFERENCE COUNTING)
# --------------------------------------------------

@router.delete("/{image_id}")
def delete_content_image(
    image_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    image = get_owned_image(db, image_id, current_user)

    result = delete_files([image.filename])
    if not result.success:
        logger.warning("Direct delete of %s left the file behind: %s", image.filename, result.errors)

    db.delete(image)
    db.commit()

    return {"message": "Image deleted successfully"}
