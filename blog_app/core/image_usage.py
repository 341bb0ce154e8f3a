import logging

from sqlalchemy.orm import Session

from blog_app.core.asset_store import is_image_referenced_elsewhere

logger = logging.getLogger(__name__)


def find_unused_images(
    db: Session,
    candidates: list[str],
    exclude_post_id: str | None,
    *,
    logger: logging.Logger = logger,
) -> list[str]:
    """
    Filenames from ``candidates`` that no post other than
    ``exclude_post_id`` references, in input order.

    One existence query per candidate. If a check fails the candidate is
    kept (counted as used) and the remaining candidates are still checked.
    """
    unused: list[str] = []

    for filename in candidates or []:
        try:
            used = is_image_referenced_elsewhere(db, filename, exclude_post_id)
        except Exception:
            logger.exception(
                "Could not check usage of image %s; keeping it", filename
            )
            db.rollback()
            continue

        if used:
            logger.info("Image %s is used by another post - keeping it", filename)
        else:
            logger.info("Image %s is not used by any other post", filename)
            unused.append(filename)

    return unused
