"""
Fill in associated_images for posts saved before image tracking existed.

    python -m blog_app.utils.backfill_images
"""

import logging

from sqlalchemy.orm import Session

from blog_app.core.image_references import get_associated_images
from blog_app.models.blog_post import BlogPost, PostImageReference

logger = logging.getLogger(__name__)


def backfill_associated_images(db: Session) -> dict:
    posts = (
        db.query(BlogPost)
        .filter(~BlogPost.image_references.any())
        .all()
    )
    logger.info("Found %d posts to backfill", len(posts))

    success_count = 0
    errors: list[str] = []

    for post in posts:
        try:
            images = get_associated_images(post.cover_image_url, post.content)
            post.associated_images = images
            db.commit()
            success_count += 1
            logger.info("Updated post %r (%d images)", post.title, len(images))
        except Exception as e:
            db.rollback()
            msg = f"Failed to update post {post.title!r}: {e}"
            logger.error(msg)
            errors.append(msg)

    return {
        "success": not errors,
        "total_posts": len(posts),
        "success_count": success_count,
        "error_count": len(errors),
        "errors": errors,
    }


if __name__ == "__main__":
    from blog_app.config import settings
    from blog_app.database import Base, SessionLocal, engine
    from blog_app.logging_config import configure_logging
    from blog_app.models import comment, content_image, user  # noqa: F401

    configure_logging(settings.LOG_LEVEL)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        summary = backfill_associated_images(db)
    finally:
        db.close()

    logger.info(
        "Backfill finished: %d migrated, %d failed",
        summary["success_count"], summary["error_count"],
    )
    for err in summary["errors"]:
        logger.info(err)
