"""
Logging Setup
=============
One place to configure standard-library logging for the API and demos.
"""

import logging
import os
from typing import Optional, Union


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(level: Union[str, int] = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure root logging.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or number
        log_file: Optional file that receives the same records; truncated
                  when first attached, reused on repeated calls
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)
    if log_file:
        path = os.path.abspath(log_file)
        existing = [
            h for h in root.handlers
            if isinstance(h, logging.FileHandler) and h.baseFilename == path
        ]
        if existing:
            # Already attached: only follow the new level, keep the file content
            for fh in existing:
                fh.setLevel(level)
        else:
            fh = logging.FileHandler(path, mode="w")
            fh.setLevel(level)
            fh.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
            root.addHandler(fh)
    # Keep uvicorn's per-request access lines out of DEBUG runs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
