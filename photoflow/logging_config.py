"""Logging setup shared by the app and the sweep loop."""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


class PhotoflowHandler(logging.StreamHandler):
    """Stdout handler installed by configure_logging."""

    def __init__(self):
        super().__init__(sys.stdout)
        self.setFormatter(logging.Formatter(LOG_FORMAT))


def configure_logging(level: str = "INFO") -> None:
    """Install one stdout handler on the root logger.

    Safe to call more than once; an existing handler from an earlier call
    is replaced rather than duplicated.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root_logger.handlers):
        if isinstance(handler, PhotoflowHandler):
            root_logger.removeHandler(handler)
    root_logger.addHandler(PhotoflowHandler())

    # Polling hits /photos every couple of seconds
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
