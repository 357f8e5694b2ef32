# =============================================================================
# care_core/logging/config.py
# Logging Configuration for HealthCare+
# =============================================================================

import logging
import os
import sys
import time
from pathlib import Path
from datetime import datetime
from typing import Optional


# Log format
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log directory
LOG_DIR = Path("logs")

NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "supabase", "gotrue", "postgrest")


def _level_from_env(default: int = logging.INFO) -> int:
    """Level named by CARE_LOG_LEVEL (e.g. "DEBUG"), or default."""
    name = os.getenv("CARE_LOG_LEVEL", "").upper()
    level = logging.getLevelName(name) if name else default
    return level if isinstance(level, int) else default


def setup_logging(
    level: Optional[int] = None,
    log_to_file: bool = True,
    log_filename: Optional[str] = None,
) -> None:
    """
    Configure logging for the app and the data layer.

    Streamlit reruns the page script on every interaction; calling this
    again replaces the previous handlers instead of stacking them.

    Args:
        level: Logging level (default: CARE_LOG_LEVEL, else INFO)
        log_to_file: Whether to also log to a dated file under logs/
        log_filename: Custom log filename (default: care_YYYY-MM-DD.log)
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_to_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        if log_filename is None:
            log_filename = f"care_{datetime.now().strftime('%Y-%m-%d')}.log"
        handlers.append(logging.FileHandler(LOG_DIR / log_filename))

    logging.basicConfig(
        level=level if level is not None else _level_from_env(),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    # Per-request INFO logs from the HTTP and Supabase clients
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("care_core").debug("Logging initialized")


def get_logger(name: str) -> logging.Logger:
    """
    Logger under the care_core hierarchy.

    Services name their logger after their class ("MedicationService");
    bare names like that are placed under "care_core." so CARE_LOG_LEVEL
    and the file handler see fallback and bootstrap messages from every
    layer. Dotted module names (__name__) are used as given.

    Args:
        name: Logger name, a module __name__ or a class name

    Returns:
        Logger instance
    """
    if "." not in name and name != "care_core":
        name = f"care_core.{name}"
    return logging.getLogger(name)


class LogContext:
    """
    Times a data-layer operation such as a bootstrap or a refresh.

    Recoverable domain errors (a rejected patch, a missing entity) are
    logged as warnings without a traceback; anything else is logged as an
    error with one.

    Usage:
        with LogContext(logger, "Bootstrapping session"):
            bootstrapper.bootstrap()
        # Logs: "Bootstrapping session... started"
        # Logs: "Bootstrapping session... completed (0.42s)"
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        self.logger.info(f"{self.operation}... started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.time() - self.start_time

        if exc_type is None:
            self.logger.info(f"{self.operation}... completed ({elapsed:.2f}s)")
        elif getattr(exc_val, "recoverable", False):
            self.logger.warning(f"{self.operation}... rejected ({elapsed:.2f}s): {exc_val}")
        else:
            self.logger.error(
                f"{self.operation}... failed ({elapsed:.2f}s): {exc_val}",
                exc_info=True
            )

        return False  # Don't suppress exceptions
