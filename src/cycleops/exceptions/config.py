"""
Configuration-related exceptions.

All exceptions related to configuration parsing, validation, and management.
"""

from typing import Any, List, Optional

from .base import CycleOpsError, ExceptionContext
from .templates import ErrorCodes


class ConfigurationError(CycleOpsError):
    """Base class for configuration-related errors."""

    def __init__(self, message: str, help_text: Optional[str] = None):
        super().__init__(message, ExceptionContext(help_text=help_text))


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration contains invalid values."""

    def __init__(self, field: str, value: Any, expected: str):
        self.field = field
        self.value = value
        self.expected = expected
        message = f"Invalid configuration for '{field}': got {repr(value)}, expected {expected}"
        help_text = f"Please check the configuration for '{field}' and ensure it matches the expected format: {expected}"
        super().__init__(message, help_text)
        self.error_code = ErrorCodes.CONFIG_INVALID


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration is missing."""

    def __init__(self, field: str, config_location: Optional[str] = None):
        self.field = field
        message = f"Missing required configuration: '{field}'"
        help_text = f"Set CYCLEOPS_{field.upper().replace('.', '_')} in the environment"
        if config_location:
            help_text += f" or add it to {config_location}"
        super().__init__(message, help_text)
        self.error_code = ErrorCodes.CONFIG_MISSING


class ConfigurationValidationError(ConfigurationError):
    """Raised when configuration fails validation."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        message = "Configuration validation failed:"
        for error in errors:
            message += f"\n  - {error}"

        help_text = "Please check your configuration file and fix the validation errors listed above"
        super().__init__(message, help_text)
        self.error_code = ErrorCodes.CONFIG_VALIDATION_ERROR
