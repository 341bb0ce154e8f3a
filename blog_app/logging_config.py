"""
Logging configuration for the blog API.

Application modules log through ``logging.getLogger(__name__)``; this
module only decides where those records go and how loud the libraries are.
"""

import logging
import sys


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO"):
    """
    Send blog_app logs to stderr at ``level``.

    Safe to call more than once (e.g. on reload); the handler is only
    attached the first time.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    app_logger = logging.getLogger("blog_app")
    app_logger.setLevel(level)

    if not any(getattr(h, "_blog_app", False) for h in app_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._blog_app = True
        app_logger.addHandler(handler)

    # SQL echo is noisy below WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
