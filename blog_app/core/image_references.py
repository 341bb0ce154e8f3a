"""
Find the uploaded images a post refers to.

A post's cover URL and body are scanned for image URLs served by this
API's own uploads origin. The result is the ordered list of filenames
stored on the post as ``associated_images``, which the delete cascade
later uses for reference counting.

Everything here fails open: a malformed body yields fewer references,
never an exception, so image tracking can't block saving a post.
"""

import logging
import re
from urllib.parse import urlsplit

from blog_app.config import settings

logger = logging.getLogger(__name__)


IMAGE_URL_PATTERNS = (
    re.compile(r"!\[[^\]]*?\]\(\s*<?([^)\s>]+)>?(?:\s+[\"'][^\"']*[\"'])?\s*\)"),  # ![alt](url "title")
    re.compile(r"<img\b[^>]*?\bsrc\s*=\s*[\"']([^\"']+)[\"'][^>]*>", re.IGNORECASE),
    re.compile(r"\bsrc\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE),
)


def _owned_prefixes(asset_url_prefix: str | None) -> tuple[str, ...]:
    prefix = asset_url_prefix or settings.ASSET_URL_PREFIX
    path = urlsplit(prefix).path or settings.UPLOADS_URL_PATH
    if not path.endswith("/"):
        path += "/"
    return (prefix, path)


def is_owned_asset_url(url: str, asset_url_prefix: str | None = None) -> bool:
    """True if ``url`` points at an asset served by our own uploads route."""
    if not url or not isinstance(url, str):
        return False
    return url.strip().startswith(_owned_prefixes(asset_url_prefix))


def extract_filename_from_url(url) -> str | None:
    """
    Last path segment of ``url``, or None if it doesn't look like a file.

    ``http://host/uploads/a.png?v=2`` -> ``a.png``
    """
    if not url or not isinstance(url, str):
        return None

    try:
        path = urlsplit(url.strip()).path
    except ValueError:
        logger.warning("Could not parse image URL %r", url)
        return None

    filename = path.rsplit("/", 1)[-1]
    if filename and "." in filename:
        return filename
    return None


def owned_asset_filename(url, asset_url_prefix: str | None = None) -> str | None:
    """
    Filename of an owned asset URL, or None.

    Uploads are stored flat, so a URL with extra path segments under the
    uploads route (``/uploads/sub/a.png``) names no file we hold.
    """
    if not is_owned_asset_url(url, asset_url_prefix):
        return None

    filename = extract_filename_from_url(url)
    if not filename:
        return None

    uploads_path = _owned_prefixes(asset_url_prefix)[1]
    if urlsplit(url.strip()).path != uploads_path + filename:
        logger.debug("Ignoring nested upload URL %r", url)
        return None
    return filename


def extract_image_urls(content, asset_url_prefix: str | None = None) -> list[str]:
    """
    Image URLs in ``content`` that belong to this server, in text order.

    Recognises markdown ``![alt](url)``, ``<img src="url">`` and any bare
    ``src="url"`` attribute. An <img> tag and its own src attribute land
    on the same URL offset, so the duplicate collapses here.
    """
    if not content or not isinstance(content, str):
        return []

    found: dict[int, str] = {}
    for pattern in IMAGE_URL_PATTERNS:
        try:
            for match in pattern.finditer(content):
                found.setdefault(match.start(1), match.group(1))
        except Exception:
            logger.exception("Image pattern %s failed", pattern.pattern)

    return [
        url
        for _, url in sorted(found.items())
        if is_owned_asset_url(url, asset_url_prefix)
    ]


def get_associated_images(
    cover_image_url,
    content,
    *,
    asset_url_prefix: str | None = None,
    logger: logging.Logger = logger,
) -> list[str]:
    """
    Reference set for a post: cover filename first, then body filenames.

    Duplicates are dropped keeping the first occurrence. On an unexpected
    error the list built so far is returned and the error is logged.
    """
    filenames: list[str] = []

    try:
        cover = owned_asset_filename(cover_image_url, asset_url_prefix)
        if cover:
            filenames.append(cover)

        for url in extract_image_urls(content, asset_url_prefix):
            name = owned_asset_filename(url, asset_url_prefix)
            if name and name not in filenames:
                filenames.append(name)

    except Exception:
        logger.exception("Error collecting associated images; keeping %d found", len(filenames))

    return filenames
