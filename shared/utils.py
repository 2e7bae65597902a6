import logging
import secrets
from datetime import datetime, timezone
from pathlib import Path

from shared.config import config

__all__ = [
    "config",
    "ensure_directory",
    "generate_otp",
    "sanitize_filename",
    "setup_logging",
    "utcnow",
]


def setup_logging(service_name: str, log_level: str = "INFO") -> logging.Logger:
    """Setup logging configuration for a service"""
    logger = logging.getLogger(service_name)
    logger.setLevel(getattr(logging, log_level.upper()))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(f"%(asctime)s - {service_name} - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_otp() -> str:
    """Four digit numeric passcode."""
    return str(1000 + secrets.randbelow(9000))


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage"""
    invalid_chars = '<>:"/\\|?* '
    for char in invalid_chars:
        filename = filename.replace(char, "_")
    return filename


def ensure_directory(path: str) -> None:
    """Ensure directory exists, create if not"""
    Path(path).mkdir(parents=True, exist_ok=True)
