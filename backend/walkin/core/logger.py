import logging, sys
from typing import Optional

from walkin.core.config import settings

ROOT_LOGGER = "walkin"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach the stdout handler to the package logger once and set its level"""
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level or settings.LOG_LEVEL)
    return root


def get_logger(name: str) -> logging.Logger:
    # Children propagate to the package logger, which owns the handler
    if not logging.getLogger(ROOT_LOGGER).handlers:
        configure_logging()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
