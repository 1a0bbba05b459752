"""
Logging setup for StarForm applications.

Library modules only create their own `logging.getLogger(__name__)`
loggers; applications call `configure_logging` once at startup.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from .config import LoggingConfig

ROOT_LOGGER = "starform"


def configure_logging(config: Optional[LoggingConfig] = None, logger_name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Attach handlers to the StarForm logger.

    Installs a stream handler and, when `config.file_path` is set, a rotating
    file handler. Calling it again replaces the handlers it installed before.

    Args:
        config: Logging configuration, defaults to `LoggingConfig()`
        logger_name: Logger to configure

    Returns:
        The configured logger
    """
    config = config or LoggingConfig()
    logger = logging.getLogger(logger_name)
    logger.setLevel(config.level.upper())

    for handler in [h for h in logger.handlers if getattr(h, "_starform", False)]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if config.file_path:
        Path(config.file_path).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._starform = True
        logger.addHandler(handler)

    return logger
