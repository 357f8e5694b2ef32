# =============================================================================
# tests/unit/test_logging.py
# Unit Tests for Logging Setup
# =============================================================================

import logging

import pytest

from care_core.errors import ValidationError
from care_core.logging import LogContext, get_logger, setup_logging
from care_core.logging import config as log_config


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_setup_logging_writes_file_and_quiets_noisy_loggers(tmp_path, monkeypatch,
                                                            restore_root_logger):
    monkeypatch.setattr(log_config, "LOG_DIR", tmp_path)

    setup_logging(log_filename="care-test.log")
    get_logger("care_core.test").info("hello")

    assert "hello" in (tmp_path / "care-test.log").read_text()
    assert logging.getLogger("urllib3").level == logging.WARNING
    assert logging.getLogger("supabase").level == logging.WARNING


def test_log_context_reports_outcome(caplog):
    logger = get_logger("care_core.test")
    caplog.set_level(logging.INFO, logger="care_core.test")

    with LogContext(logger, "Loading medications"):
        pass
    with pytest.raises(RuntimeError):
        with LogContext(logger, "Loading notifications"):
            raise RuntimeError("boom")

    messages = [r.getMessage() for r in caplog.records]
    assert any("Loading medications... completed" in m for m in messages)
    assert any("Loading notifications... failed" in m for m in messages)


@pytest.mark.parametrize("value,expected", [
    ("DEBUG", logging.DEBUG),
    ("warning", logging.WARNING),
    ("NOT_A_LEVEL", logging.INFO),
    ("", logging.INFO),
])
def test_level_from_env(monkeypatch, value, expected):
    monkeypatch.setenv("CARE_LOG_LEVEL", value)
    assert log_config._level_from_env() == expected


@pytest.mark.parametrize("name,expected", [
    ("MedicationService", "care_core.MedicationService"),
    ("care_core.config", "care_core.config"),
    ("care_core", "care_core"),
])
def test_get_logger_places_class_names_under_package(name, expected):
    assert get_logger(name).name == expected


def test_log_context_rejected_operation_is_a_warning(caplog):
    logger = get_logger("care_core.test")
    caplog.set_level(logging.INFO, logger="care_core.test")

    with pytest.raises(ValidationError):
        with LogContext(logger, "Updating medication"):
            raise ValidationError("bad patch", field="pillCount")

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert not record.exc_info
    assert "Updating medication... rejected" in record.getMessage()
