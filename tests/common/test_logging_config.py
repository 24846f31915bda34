"""Tests for logging configuration."""

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from melodex.common.logging import LogContext, StructuredFormatter, setup_logging
from melodex.common.logging_config import LoggingConfig, apply_logging_config


@pytest.fixture
def restore_root_logger():
    """Keep setup_logging from leaking handlers into other tests."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLoggingConfig:
    """Test LoggingConfig validation."""

    def test_default_values(self):
        """Test default values."""
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.format == "simple"
        assert config.file is None
        assert config.log_file_path is None

    def test_rejects_invalid_log_level(self):
        """Test that invalid log levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="TRACE")

    def test_rejects_invalid_format(self):
        """Test that invalid formats are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")

    def test_rejects_unknown_keys(self):
        """Test that unknown keys are rejected (extra='forbid')."""
        with pytest.raises(ValidationError):
            LoggingConfig(colour=True)

    def test_case_insensitive_values(self):
        """Test that level and format are normalized."""
        config = LoggingConfig(level="debug", format="JSON")
        assert config.level == "DEBUG"
        assert config.format == "json"

    def test_log_file_path_expands_variables(self):
        """Test that ${USER_HOME} is expanded in the log file path."""
        config = LoggingConfig(file="${USER_HOME}/melodex.log")
        assert config.log_file_path == Path.home() / "melodex.log"


class TestSetupLogging:
    """Test setup_logging and apply_logging_config."""

    def test_sets_level_and_console_handler(self, restore_root_logger):
        """Test that the root logger gets one console handler."""
        setup_logging(level="WARNING", format="detailed")

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1

    def test_file_handler_writes_json(self, tmp_path, restore_root_logger):
        """Test that file logs use the structured JSON format."""
        log_file = tmp_path / "logs" / "melodex.log"
        apply_logging_config(LoggingConfig(level="INFO", file=str(log_file)))

        logging.getLogger("melodex.test").info("Scan started")
        for handler in logging.getLogger().handlers:
            handler.flush()

        record = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
        assert record["message"] == "Scan started"
        assert record["level"] == "INFO"
        assert record["logger"] == "melodex.test"


class TestStructuredFormatter:
    """Test StructuredFormatter output."""

    def test_includes_context_fields(self):
        """Test that LogContext fields appear in JSON output."""
        logger = logging.getLogger("melodex.context")
        formatter = StructuredFormatter()

        with LogContext(logger, scan_run=3):
            record = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "Pruning", (), None)

        data = json.loads(formatter.format(record))
        assert data["message"] == "Pruning"
        assert data["scan_run"] == 3
