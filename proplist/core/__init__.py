"""Settings, logging configuration, error taxonomy, and shared utilities."""

from proplist.core.clock import Clock, FixedClock, SystemClock
from proplist.core.exceptions import (
    AppErrorCode,
    ApplicationError,
    AuthError,
    ConfigError,
    ConflictError,
    DomainError,
    DomainErrorCode,
    InputValidationError,
    InvalidValueError,
    InvariantViolationError,
    KycRequiredError,
    NotFoundError,
    ProplistError,
    PublishBlockedError,
    RppRejectedError,
    StatusTransitionError,
    StorageError,
    UnknownError,
)
from proplist.core.logging_config import JsonFormatter, configure_logging
from proplist.core.result import Err, Ok, Result
from proplist.core.settings import Settings

__all__ = [
    # Logging
    "configure_logging",
    "JsonFormatter",
    # Settings
    "Settings",
    # Time
    "Clock",
    "SystemClock",
    "FixedClock",
    # Result
    "Ok",
    "Err",
    "Result",
    # Exceptions: base
    "ProplistError",
    "ConfigError",
    "StorageError",
    # Exceptions: domain
    "DomainErrorCode",
    "DomainError",
    "InvalidValueError",
    "InvariantViolationError",
    "KycRequiredError",
    "PublishBlockedError",
    "RppRejectedError",
    "StatusTransitionError",
    # Exceptions: application
    "AppErrorCode",
    "ApplicationError",
    "AuthError",
    "NotFoundError",
    "ConflictError",
    "InputValidationError",
    "UnknownError",
]
