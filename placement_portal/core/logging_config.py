"""
Logging setup for the placement portal.

Modules log through `logging.getLogger(__name__)`; this configures the
root handler once at startup.
"""

import logging
import sys
from typing import Optional

from placement_portal.core.config import get_settings


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Logging level name. Defaults to settings.log_level.
    """
    level = level or get_settings().log_level
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Avoid duplicate handlers on reload
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(numeric_level)
    root_logger.addHandler(console_handler)

    # Quiet noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
