from __future__ import annotations

import logging
import sys
from typing import Optional

_SILENT_LOGGER_NAME = "product_api.silent"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure Python standard logging once for the whole service.

    Plain stdout output, container-friendly.
    """
    root = logging.getLogger()
    if root.handlers:
        # Already configured (reloads, pytest's capture handlers).
        root.setLevel(getattr(logging, level.upper(), logging.INFO))
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        stream=sys.stdout,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or __name__)


def silent_logger() -> logging.Logger:
    """
    Logger that drops every record.

    Stands in for an optional logger that the caller did not supply.
    """
    logger = logging.getLogger(_SILENT_LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger
