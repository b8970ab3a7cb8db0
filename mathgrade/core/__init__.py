"""Core utilities package"""

from .config import Settings, get_settings
from .logging import setup_logging, get_logger
from .errors import (
    MathGradeError,
    InvalidRequestError,
    ConfigurationError,
)

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "get_logger",
    "MathGradeError",
    "InvalidRequestError",
    "ConfigurationError",
]
