"""
Logging configuration for the engine and the backend server.

Engine modules log through ``logging.getLogger(__name__)`` and never install
handlers themselves. Entry points call ``setup_logging`` once for each
top-level package they want routed to the console and the rotating log file.
"""

import logging
import logging.handlers
from typing import Optional

from .config import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(logger_name: str = "src", level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return a logger instance.

    Args:
        logger_name: Logger to configure; child module loggers inherit it
        level: Override for ``config.log_level``

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Already configured by an earlier entry point
    if logger.handlers:
        return logger

    level = (level or config.log_level).upper()
    logger.setLevel(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file = config.logs_dir / "fleet_anomaly.log"
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger
