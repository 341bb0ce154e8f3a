import logging
import os
import shutil
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import UploadFile
from blog_app.config import settings

logger = logging.getLogger(__name__)


# ==========================================================
# LIMITS
# ==========================================================
ALLOWED_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg"}


def upload_dir() -> Path:
    return Path(settings.UPLOAD_DIR)


def ensure_upload_dir() -> Path:
    folder = upload_dir()
    folder.mkdir(parents=True, exist_ok=True)
    return folder


# ==========================================================
# VALIDATE FILE SIZE
# ==========================================================
def validate_file_size(file: UploadFile, max_bytes: int | None = None):
    max_bytes = max_bytes or settings.MAX_IMAGE_SIZE

    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)

    if size == 0:
        return False, "File is empty."

    if size > max_bytes:
        return False, f"Image too large (max {max_bytes // (1024 * 1024)}MB)."

    return True, None


# ==========================================================
# SAVE FILE
# ==========================================================
def save_file(file: UploadFile, filename: str | None = None) -> str:
    """
    Write an upload into the uploads folder. Returns the stored filename.
    """
    if not filename:
        ext = os.path.splitext(file.filename or "")[1].lower()
        filename = f"{uuid.uuid4().hex}{ext}"

    file_path = ensure_upload_dir() / filename

    with open(file_path, "wb") as buffer:
        shutil.copyfileobj(file.file, buffer)

    logger.info("Saved upload %s", filename)
    return filename


def public_url(filename: str) -> str:
    return f"{settings.ASSET_URL_PREFIX}{filename}"


# ==========================================================
# DELETE FILES
# ==========================================================
@dataclass
class ReclaimResult:
    deleted_files: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    # set when the uploads folder itself was missing; nothing was checked
    directory_missing: bool = False

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def summary(self) -> str:
        return f"Deleted {len(self.deleted_files)} files, {len(self.errors)} errors"


def delete_files(
    filenames: list[str],
    directory: str | os.PathLike | None = None,
    *,
    logger: logging.Logger = logger,
) -> ReclaimResult:
    """
    Delete uploaded files by bare filename.

    A name that carries any path component is refused, as is anything that
    resolves (symlinks included) outside the uploads folder. A symlink that
    stays inside the folder is removed itself, never its target. Missing
    files count as already deleted, including ones that vanish between the
    check and the delete. Each file is handled on its own: one failure is
    recorded in ``errors`` and the rest are still attempted.
    """
    result = ReclaimResult()
    if not filenames:
        return result

    base = Path(directory) if directory is not None else upload_dir()
    if not base.is_dir():
        logger.error("Uploads directory does not exist: %s", base)
        result.errors.append("Uploads directory not found")
        result.directory_missing = True
        return result

    base = base.resolve()

    for filename in filenames:
        if not filename or not isinstance(filename, str):
            result.errors.append(f"Invalid filename: {filename!r}")
            continue

        # Prevent directory traversal
        if os.path.basename(filename) != filename or filename in (".", ".."):
            logger.warning("Refusing to delete unsafe filename %r", filename)
            result.errors.append(f"Invalid filename format: {filename}")
            continue

        file_path = base / filename
        try:
            resolved = file_path.resolve()

            if base not in resolved.parents:
                logger.warning("File %r resolves outside uploads: %s", filename, resolved)
                result.errors.append(
                    f"Security violation: File outside uploads directory: {filename}"
                )
                continue

            if not os.path.lexists(file_path):
                logger.info("File not found (already deleted?): %s", filename)
                continue

            os.remove(file_path)
            result.deleted_files.append(filename)
            logger.info("Deleted file %s", filename)

        except FileNotFoundError:
            logger.info("File vanished before delete (already deleted?): %s", filename)

        except OSError as e:
            msg = f"Error deleting file {filename}: {e}"
            logger.error(msg)
            result.errors.append(msg)

    return result


def delete_file(filename: str) -> bool:
    """Delete one uploaded file. True if nothing went wrong."""
    return delete_files([filename]).success
