"""
Configuration Management for dockpin
Centralizes all environment-based configuration and logging setup
"""

import os
import logging
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from typing import Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Configure application logging, optionally with a rotating log file"""
    root_logger = logging.getLogger()

    # Close and clear any existing handlers so repeated CLI runs (and tests)
    # don't stack handlers or leak file descriptors
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")
    root_logger.setLevel(numeric_level)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, mode=0o700, exist_ok=True)

        # Max 10MB per file, keep 14 backups
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,
            backupCount=14,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # aiohttp logs every connection at INFO/DEBUG, which drowns the resolver output
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def _get_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime settings, normally built from DOCKPIN_* environment variables"""
    request_timeout: float = 30.0  # total seconds per HTTP request
    connect_timeout: float = 10.0
    digest_concurrency: int = 8  # max concurrent manifest HEAD requests
    tags_page_size: int = 1000
    floating_tag: str = "latest"
    ignore_config_path: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'Settings':
        """Load settings from the environment, falling back to defaults"""
        return cls(
            request_timeout=_get_float('DOCKPIN_REQUEST_TIMEOUT', 30.0),
            connect_timeout=_get_float('DOCKPIN_CONNECT_TIMEOUT', 10.0),
            digest_concurrency=_get_int('DOCKPIN_DIGEST_CONCURRENCY', 8),
            tags_page_size=_get_int('DOCKPIN_TAGS_PAGE_SIZE', 1000),
            floating_tag=os.getenv('DOCKPIN_FLOATING_TAG') or "latest",
            ignore_config_path=os.getenv('DOCKPIN_IGNORE_CONFIG') or None,
            log_level=os.getenv('DOCKPIN_LOG_LEVEL') or "INFO",
            log_file=os.getenv('DOCKPIN_LOG_FILE') or None,
        )
