import logging

from jobboard.core.config import settings


def configure_logging() -> None:
    """Configure root logging once for the application.

    Safe to call repeatedly (reload, tests): existing handlers are kept.
    """
    if logging.getLogger().handlers:
        return
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=fmt)
