"""Root logger configuration for newslens scripts.

``NEWSLENS_LOG_LEVEL`` picks the level (default ``INFO``) unless a level is
passed explicitly, and ``NEWSLENS_LOG_FILE`` names the log file (default
``newslens.log``). Records go to that file and to stderr.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Attach the newslens file and console handlers; later calls are no-ops."""
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    level_name = (level or os.getenv("NEWSLENS_LOG_LEVEL", "INFO")).upper()
    resolved = getattr(logging, level_name, logging.INFO)
    log_file = os.getenv("NEWSLENS_LOG_FILE", "newslens.log")

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    root_logger.setLevel(resolved)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(stream_handler)


__all__ = ["setup_logging"]
