from sqlalchemy.orm import Session

from blog_app.models.blog_post import PostImageReference
from blog_app.models.content_image import ContentImage


def is_image_referenced_elsewhere(
    db: Session,
    filename: str,
    exclude_post_id: str | None = None,
) -> bool:
    """
    Returns True if any post other than ``exclude_post_id`` lists
    ``filename`` in its associated images.
    """
    query = db.query(PostImageReference.id).filter(
        PostImageReference.filename == filename
    )
    if exclude_post_id is not None:
        query = query.filter(PostImageReference.post_id != exclude_post_id)

    return query.first() is not None


def delete_image_records(db: Session, filenames: list[str]) -> int:
    """Delete ContentImage rows for ``filenames``. Returns rows removed."""
    if not filenames:
        return 0

    deleted = (
        db.query(ContentImage)
        .filter(ContentImage.filename.in_(filenames))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted or 0


def create_image_record(
    db: Session,
    *,
    name: str,
    filename: str,
    image_url: str,
    uploaded_by: str,
) -> ContentImage:
    image = ContentImage(
        name=name,
        filename=filename,
        image_url=image_url,
        uploaded_by=uploaded_by,
    )
    db.add(image)
    db.commit()
    db.refresh(image)
    return image


def list_images_for_user(db: Session, user_id: str) -> list[ContentImage]:
    return (
        db.query(ContentImage)
        .filter(ContentImage.uploaded_by == user_id)
        .order_by(ContentImage.created_at.desc())
        .all()
    )
