# =============================================================================
# care_core/errors/handlers.py
# Error Handling Utilities for HealthCare+
# =============================================================================

from __future__ import annotations
from typing import Optional
import streamlit as st

from care_core.logging import get_logger
from .exceptions import HealthcareError, NotFoundError, ValidationError

logger = get_logger(__name__)


def user_message_for(error: HealthcareError) -> str:
    """Wording shown to the user for a domain error."""
    if isinstance(error, ValidationError):
        field = error.details.get("field")
        return f"Please check '{field}': {error.message}" if field else error.message
    if isinstance(error, NotFoundError):
        entity = error.details.get("entity", "item")
        return f"This {entity} no longer exists. Refresh to see the latest data."
    return error.message


def handle_error(
    error: Exception,
    show_user_message: bool = True,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> None:
    """
    Log an error and tell the user about it.

    Domain errors (NotFoundError, ValidationError) arrive here from the UI
    layer; transport failures never do, the data layer absorbs them.
    Validation problems are input hints and render as warnings.

    Args:
        error: The exception to handle
        show_user_message: Whether to display the error in the page
        log_error: Whether to log the error
        user_message: Custom message to show user (derived from the error if None)
    """
    if isinstance(error, HealthcareError):
        message = user_message or user_message_for(error)
        if log_error:
            log = logger.warning if isinstance(error, ValidationError) else logger.error
            log(f"[{error.code}] {error.message}", extra={"details": error.details})
        recoverable = error.recoverable
    else:
        message = user_message or str(error)
        if log_error:
            logger.error(f"[UNKNOWN] {message}", exc_info=error)
        recoverable = True

    if not show_user_message:
        return
    if isinstance(error, ValidationError):
        st.warning(message)
    elif recoverable:
        st.error(f"Error: {message}")
    else:
        st.error(f"Critical Error: {message}. Please contact support.")


class ErrorContext:
    """
    Context manager for UI actions with automatic logging and user feedback.

    Usage:
        with ErrorContext("Recording dose"):
            service.medications.record_taken(med_id)

        # On NotFoundError, logs and shows the error message
    """

    def __init__(
        self,
        operation: str,
        recoverable: bool = True,
        show_success: bool = False,
        success_message: Optional[str] = None,
    ):
        self.operation = operation
        self.recoverable = recoverable
        self.show_success = show_success
        self.success_message = success_message

    def __enter__(self) -> ErrorContext:
        logger.info(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            if isinstance(exc_val, HealthcareError):
                handle_error(exc_val)
            else:
                handle_error(
                    exc_val,
                    user_message=f"Error during: {self.operation}",
                )

            # Suppress only domain errors; programming errors propagate
            return self.recoverable and isinstance(exc_val, HealthcareError)

        logger.info(f"Completed: {self.operation}")
        if self.show_success:
            st.success(self.success_message or f"{self.operation} completed")

        return False
