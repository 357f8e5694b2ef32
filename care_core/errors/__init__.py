# =============================================================================
# care_core/errors/__init__.py
# Centralized Error Handling for HealthCare+
# =============================================================================

from .exceptions import (
    HealthcareError,
    ValidationError,
    NotFoundError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    ErrorContext,
)

__all__ = [
    # Exceptions
    "HealthcareError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "ErrorContext",
]
