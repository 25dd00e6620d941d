"""Logger factory for the import/export, validation and image services.

Every module logs through a child of the ``estate_backend`` logger, e.g.
``get_logger("services.import_export")``. Messages are an event name followed
by ``key=value`` pairs (``csv_import total=4 valid=3 invalid=1``).
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config import settings

NAMESPACE = "estate_backend"


def configure_logging(namespace: str = NAMESPACE) -> logging.Logger:
    """Attach a single stream handler to ``namespace`` once and return the logger.

    The level comes from ``LOG_LEVEL``; records do not propagate to the root
    logger, so an embedding application's handlers never print them twice.
    """

    logger = logging.getLogger(namespace)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.setLevel(settings.LOG_LEVEL)
    logger.propagate = False
    return logger


def get_logger(child: Optional[str] = None) -> logging.Logger:
    base = configure_logging()
    return base.getChild(child) if child else base
