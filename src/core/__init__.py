"""
Core module: Configuration, logging, and exception handling.
"""

from .config import AnomalyConfig, Config, config
from .exceptions import (
    AnomalyDetectionError,
    DataValidationError,
    ConfigurationError,
)

__all__ = [
    "AnomalyConfig",
    "Config",
    "config",
    "AnomalyDetectionError",
    "DataValidationError",
    "ConfigurationError",
]
