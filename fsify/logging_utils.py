from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional


def configure_logging(
    log_path: Optional[str] = None,
    level: int = logging.INFO,
    console_level: Optional[int] = None,
) -> Optional[str]:
    """Configure logging.

    - The console handler writes to stderr so stdout stays free for the
      resulting image path (quiet mode).
    - ``console_level`` lets quiet mode hide INFO records on the console while
      the optional log file still receives everything at ``level``.

    Returns the log file path in use, if any.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_fsify_configured", False):
        return getattr(logger, "_fsify_log_path", log_path)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    handlers: list[logging.Handler] = []

    if log_path:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(fmt)
        handlers.append(file_handler)

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    console.setLevel(console_level if console_level is not None else level)
    handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_fsify_configured", True)
    setattr(logger, "_fsify_log_path", log_path)

    logging.getLogger(__name__).debug("Logging initialized (file=%s)", log_path)
    return log_path
