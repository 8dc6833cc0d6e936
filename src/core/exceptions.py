"""
Custom exceptions for the Fleet Anomaly Engine.

These exceptions provide clear error semantics across the system.
Use them to distinguish between bad input records and configuration errors.
"""


class AnomalyDetectionError(Exception):
    """Base exception for anomaly detection failures."""
    pass


class DataValidationError(AnomalyDetectionError):
    """Raised when a vehicle or trip record fails validation (e.g. missing id)."""
    pass


class ConfigurationError(AnomalyDetectionError):
    """Raised when configuration is invalid or missing."""
    pass
