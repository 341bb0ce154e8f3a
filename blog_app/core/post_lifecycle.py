"""
Create, update and delete blog posts while keeping image bookkeeping right.

On every write a post's ``associated_images`` is recomputed from its cover
and content. On delete, the images only this post used are reclaimed
(ContentImage record and file) before the post row goes away, because
afterwards nothing remembers what the post referenced.
"""

import logging
import re
from dataclasses import dataclass, field

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from blog_app.core.asset_store import delete_image_records
from blog_app.core.image_references import get_associated_images
from blog_app.core.image_usage import find_unused_images
from blog_app.core.results import StepResult, run_step
from blog_app.models.blog_post import BlogPost
from blog_app.models.comment import Comment
from blog_app.models.user import User
from blog_app.schemas.blog_post_schema import PostCreate, PostUpdate
from blog_app.storage import delete_files

logger = logging.getLogger(__name__)

# Columns that can't be null; an explicit null in an update is ignored
NON_NULLABLE_UPDATE_FIELDS = {
    "title",
    "content",
    "tags",
    "is_draft",
    "generated_by_ai",
    "meta_title",
    "meta_description",
    "meta_keywords",
    "custom_url",
    "image_alt_text",
    "canonical_url",
}


def slugify(title: str) -> str:
    return re.sub(r"[^\w-]+", "", title.lower().replace(" ", "_"), flags=re.ASCII)


def _commit_post(db: Session, post: BlogPost):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(409, f"Slug '{post.slug}' is already in use")
    db.refresh(post)


# --------------------------------------------------
# CREATE
# --------------------------------------------------

def create_post(
    db: Session,
    payload: PostCreate,
    author: User,
    *,
    logger: logging.Logger = logger,
) -> BlogPost:
    data = payload.model_dump()

    post = BlogPost(
        **data,
        slug=payload.custom_url or slugify(payload.title),
        author_id=author.id,
    )
    post.associated_images = get_associated_images(
        payload.cover_image_url, payload.content, logger=logger
    )

    db.add(post)
    _commit_post(db, post)

    logger.info(
        "Created post %s with %d associated images",
        post.id, len(post.associated_images),
    )
    return post


# --------------------------------------------------
# UPDATE
# --------------------------------------------------

def update_post(
    db: Session,
    post: BlogPost,
    payload: PostUpdate,
    *,
    logger: logging.Logger = logger,
) -> BlogPost:
    changes = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key not in NON_NULLABLE_UPDATE_FIELDS
    }

    if changes.get("title"):
        changes["slug"] = changes.get("custom_url") or slugify(changes["title"])

    # Recompute from whichever of new/stored cover + content applies
    if "content" in changes or "cover_image_url" in changes:
        cover = changes.get("cover_image_url", post.cover_image_url)
        content = changes.get("content", post.content)
        post.associated_images = get_associated_images(cover, content, logger=logger)

    for key, value in changes.items():
        setattr(post, key, value)

    _commit_post(db, post)
    return post


# --------------------------------------------------
# DELETE CASCADE
# --------------------------------------------------

@dataclass
class DeleteSummary:
    comments_deleted: int = 0
    total_images: int = 0
    unused_images: list[str] = field(default_factory=list)
    content_images_deleted: int = 0
    files_deleted: int = 0
    file_cleanup_warnings: int = 0

    @property
    def images_kept(self) -> int:
        return self.total_images - len(self.unused_images)

    def as_response(self) -> dict:
        response = {"message": "Post deleted"}
        if self.comments_deleted:
            response["commentsDeleted"] = self.comments_deleted
        if self.total_images:
            response["totalImages"] = self.total_images
            response["imagesKept"] = self.images_kept
        if self.content_images_deleted:
            response["contentImagesDeleted"] = self.content_images_deleted
        if self.files_deleted:
            response["filesDeleted"] = self.files_deleted
        if self.file_cleanup_warnings:
            response["fileCleanupWarnings"] = self.file_cleanup_warnings
        return response


def _purge_comments(db: Session, post_id: str) -> int:
    deleted = (
        db.query(Comment)
        .filter(Comment.post_id == post_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted or 0


def _log_failed(db: Session, step: str, result: StepResult, log: logging.Logger):
    if result.ok:
        return
    log.error("Post delete: %s failed, continuing", step, exc_info=result.error)
    try:
        db.rollback()
    except SQLAlchemyError:
        log.exception("Rollback after %s failed", step)


def delete_post_cascade(
    db: Session,
    post: BlogPost,
    *,
    upload_dir=None,
    logger: logging.Logger = logger,
) -> DeleteSummary:
    """
    Delete ``post`` and whatever only it was holding on to.

    Runs, in order: comment purge, usage check, ContentImage purge, file
    purge, post delete. A failure in one of the first four is logged and
    the cascade moves on with the safe default (nothing deleted). The post
    delete always runs; if it fails the error propagates.
    """
    post_id = post.id
    images = list(post.associated_images)
    summary = DeleteSummary(total_images=len(images))

    # 1. comments
    comments = run_step(lambda: _purge_comments(db, post_id), 0)
    _log_failed(db, "comment purge", comments, logger)
    summary.comments_deleted = comments.value
    if comments.value:
        logger.info("Deleted %d comments for post %s", comments.value, post_id)

    if images:
        # 2. which images does nobody else use
        usage = run_step(
            lambda: find_unused_images(db, images, post_id, logger=logger), []
        )
        _log_failed(db, "image usage check", usage, logger)
        summary.unused_images = usage.value
        logger.info(
            "Found %d unused images out of %d for post %s",
            len(usage.value), len(images), post_id,
        )

    unused = summary.unused_images
    if unused:
        # 3. metadata
        records = run_step(lambda: delete_image_records(db, unused), 0)
        _log_failed(db, "ContentImage purge", records, logger)
        summary.content_images_deleted = records.value

        # 4. files
        reclaim = run_step(
            lambda: delete_files(unused, upload_dir, logger=logger), None
        )
        _log_failed(db, "file purge", reclaim, logger)
        if reclaim.ok and not reclaim.value.directory_missing:
            summary.files_deleted = len(reclaim.value.deleted_files)
            summary.file_cleanup_warnings = len(reclaim.value.errors)
            if reclaim.value.errors:
                logger.warning(
                    "Some unused files could not be deleted: %s", reclaim.value.errors
                )
        else:
            # nothing verified, so every file is a warning
            summary.file_cleanup_warnings = len(unused)

    # 5. the post itself
    try:
        db.delete(post)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("Deleted post %s", post_id)
    return summary
