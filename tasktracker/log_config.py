import logging
import sys

from tasktracker.config import settings


def setup_logging() -> None:
    """Configure the root logger to write timestamped records to stdout."""

    log_format = "%(asctime)s %(levelname)-4s [%(name)s] : %(message)s"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(log_format, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.LOG_LEVEL.upper())
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Let uvicorn and fastapi records flow through the root handler
    for name in ["uvicorn", "uvicorn.error", "fastapi"]:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True

    logging.getLogger("uvicorn.access").handlers.clear()
    logging.getLogger("uvicorn.access").propagate = False
