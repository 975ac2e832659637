"""
Unit tests for structured logging: loggers, formatters, timing and setup.
"""

import json
import logging
import sys
from unittest.mock import Mock

import pytest

from cycleops.core.correlation import CorrelationIdManager
from cycleops.logging import (
    CycleOpsLogger,
    LoggingConfig,
    LoggingManager,
    StructuredFormatter,
    TimedOperation,
    configure_logging,
    get_logger,
    timed,
)
from cycleops.logging.formatters import ContextConsoleFormatter


def _record(message="Request approved", **attrs):
    record = logging.LogRecord("cycleops.test", logging.INFO, __file__, 10, message, None, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestCycleOpsLogger:
    """Test CycleOpsLogger context handling."""

    def test_keyword_context_and_correlation_id(self, caplog):
        """Test keyword arguments land in extra_context with the active correlation id."""
        logger = get_logger("cycleops.test.context")

        with caplog.at_level(logging.INFO, logger="cycleops.test.context"):
            with CorrelationIdManager.correlation_context(correlation_id="corr-1"):
                logger.info("Request approved", request_id="r-1")

        record = caplog.records[-1]
        assert record.getMessage() == "Request approved"
        assert record.extra_context == {"request_id": "r-1"}
        assert record.correlation_id == "corr-1"

    def test_disabled_levels_are_skipped(self, caplog):
        logger = CycleOpsLogger("cycleops.test.quiet")

        with caplog.at_level(logging.WARNING, logger="cycleops.test.quiet"):
            logger.debug("hidden", request_id="r-1")

        assert caplog.records == []

    def test_persistent_and_temporary_context(self, caplog):
        logger = CycleOpsLogger("cycleops.test.persistent")
        logger.add_context(component="sweeper")
        child = logger.with_context(kind="repair")

        with caplog.at_level(logging.INFO, logger="cycleops.test.persistent"):
            with logger.temp_context(run=1):
                logger.info("first")
            logger.info("second")
            child.info("third")

        contexts = [r.extra_context for r in caplog.records]
        assert contexts == [
            {"component": "sweeper", "run": 1},
            {"component": "sweeper"},
            {"component": "sweeper", "kind": "repair"},
        ]


class TestFormatters:
    def test_structured_formatter_emits_json(self):
        """Test JSON output carries service, correlation id and context."""
        formatter = StructuredFormatter("cycleops", "1.2.3")
        record = _record(correlation_id="corr-1", extra_context={"request_id": "r-1", "amount": 950})

        entry = json.loads(formatter.format(record))

        assert entry["message"] == "Request approved"
        assert entry["service"] == "cycleops"
        assert entry["version"] == "1.2.3"
        assert entry["correlation_id"] == "corr-1"
        assert entry["request_id"] == "r-1"
        assert entry["level"] == "INFO"

    def test_structured_formatter_includes_exception(self):
        formatter = StructuredFormatter()
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record(exc_info=sys.exc_info())

        entry = json.loads(formatter.format(record))

        assert entry["exception"]["type"] == "ValueError"
        assert entry["exception"]["message"] == "boom"

    def test_console_formatter_appends_context(self):
        formatter = ContextConsoleFormatter()
        record = _record(extra_context={"request_id": "r-1", "note": None})

        line = formatter.format(record)

        assert line.endswith("Request approved [request_id=r-1]")
        assert "[    INFO]" in line


class TestTimedOperation:
    def test_success_logs_debug(self):
        logger = Mock(spec=CycleOpsLogger)

        with TimedOperation("expiry_sweep", logger) as timer:
            pass

        assert timer.duration_seconds >= 0
        logger.debug.assert_called_once()
        assert logger.debug.call_args.kwargs["status"] == "success"

    def test_failure_logs_warning_and_propagates(self):
        logger = Mock(spec=CycleOpsLogger)

        with pytest.raises(RuntimeError):
            with TimedOperation("expiry_sweep", logger, context={"run": 3}):
                raise RuntimeError("store down")

        kwargs = logger.warning.call_args.kwargs
        assert kwargs["status"] == "failed"
        assert kwargs["error_type"] == "RuntimeError"
        assert kwargs["run"] == 3

    def test_timed_decorator(self):
        logger = Mock(spec=CycleOpsLogger)

        @timed("quote", logger)
        def quote(amount):
            return amount * 2

        assert quote(21) == 42
        assert logger.debug.call_args.kwargs["operation"] == "quote"


class TestLoggingSetup:
    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        level, handlers = root.level, list(root.handlers)
        yield
        manager = LoggingManager()
        for handler in manager.handlers:
            root.removeHandler(handler)
            handler.close()
        manager.handlers.clear()
        root.setLevel(level)
        logging.getLogger("cycleops").setLevel(logging.NOTSET)
        for handler in handlers:
            if handler not in root.handlers:
                root.addHandler(handler)

    def test_manager_is_a_singleton(self):
        assert LoggingManager() is LoggingManager()

    def test_config_validates_format(self):
        with pytest.raises(ValueError):
            LoggingConfig(format_type="xml")
        assert LoggingConfig(level="debug").level == logging.DEBUG

    def test_file_output_writes_json(self, tmp_path):
        """Test the rotating file handler writes structured lines."""
        log_file = tmp_path / "logs" / "cycleops.log"
        configure_logging(LoggingConfig(level="INFO", format_type="json", output=["file"], file_path=log_file))

        get_logger("cycleops.test.file").info("Sweep finished", expired=2)
        for handler in LoggingManager().handlers:
            handler.flush()

        entry = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert entry["message"] == "Sweep finished"
        assert entry["expired"] == 2

    def test_reconfigure_replaces_handlers(self):
        configure_logging(LoggingConfig(output=["console"]))
        configure_logging(LoggingConfig(format_type="rich", output=["console"]))

        manager = LoggingManager()
        assert len(manager.handlers) == 1
        assert logging.getLogger("cycleops").level == logging.INFO
