"""
Unit tests for logging configuration.
"""

import logging

import pytest

from pricelens.logging_config import PACKAGE_LOGGER, get_logger, reset_logging, setup_logging


@pytest.fixture
def fresh_logging(test_config):
    reset_logging()
    yield
    reset_logging()
    setup_logging(force=True)


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_console_handler_only_by_default(self, fresh_logging):
        logger = setup_logging(level="warning", log_file="")
        assert logger.name == PACKAGE_LOGGER
        assert logger.level == logging.WARNING
        assert logger.propagate is False
        assert [type(h) for h in logger.handlers] == [logging.StreamHandler]

    def test_log_file_receives_records(self, fresh_logging, tmp_path):
        log_path = tmp_path / "logs" / "pricelens.log"
        setup_logging(level="INFO", log_file=str(log_path), force=True)
        get_logger("pricelens.api").info("Calibration loaded")
        for handler in logging.getLogger(PACKAGE_LOGGER).handlers:
            handler.flush()
        text = log_path.read_text(encoding="utf-8")
        assert "pricelens.api" in text
        assert "Calibration loaded" in text

    def test_second_call_is_a_no_op_without_force(self, fresh_logging):
        first = setup_logging(level="INFO", log_file="")
        handlers = list(first.handlers)
        setup_logging(level="DEBUG", log_file="")
        assert first.handlers == handlers
        assert first.level == logging.INFO

    def test_quiets_third_party_loggers(self, fresh_logging):
        setup_logging(level="DEBUG", log_file="")
        assert logging.getLogger("werkzeug").level == logging.WARNING
        assert logging.getLogger("PIL").level == logging.WARNING


class TestGetLogger:
    """Tests for get_logger()."""

    @pytest.mark.parametrize("name,expected", [
        ("service", "pricelens.service"),
        ("pricelens.ml.calibration", "pricelens.ml.calibration"),
        ("pricelens", "pricelens"),
    ])
    def test_namespaced(self, name, expected):
        assert get_logger(name).name == expected


class TestResetLogging:
    """Tests for reset_logging()."""

    def test_removes_handlers(self, fresh_logging):
        setup_logging(force=True)
        reset_logging()
        assert logging.getLogger(PACKAGE_LOGGER).handlers == []
