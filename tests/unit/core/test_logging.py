"""Unit tests for structured logging helpers."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from eventmap.core.logging_config import ACCESS_LOGGER, configure_logging, parse_level
from eventmap.core.logging_utils import get_module_logger


class TestStructuredLogger:

    def test_component_prefix(self, caplog):
        logger = get_module_logger("MarkerStore")
        with caplog.at_level(logging.INFO, logger="eventmap.MarkerStore"):
            logger.info("Added %d markers", 3)
        assert caplog.records[-1].getMessage() == "[MarkerStore] Added 3 markers"
        assert logger.name == "eventmap.MarkerStore"

    def test_dotted_module_name(self):
        logger = get_module_logger("eventmap.map.viewport")
        assert logger.component == "map.viewport"

    def test_bad_format_args_do_not_raise(self, caplog):
        logger = get_module_logger("Fmt")
        with caplog.at_level(logging.WARNING, logger="eventmap.Fmt"):
            logger.warning("value %d", "not-a-number")
        assert "args=not-a-number" in caplog.records[-1].getMessage()

    def test_child_component(self):
        child = get_module_logger("API").getChild("routes")
        assert child.component == "API.routes"


class TestConfigureLogging:

    @pytest.fixture
    def restore_root(self):
        root = logging.getLogger()
        level = root.level
        access_level = logging.getLogger(ACCESS_LOGGER).level
        yield root
        configure_logging(level, console=False)
        root.setLevel(level)
        logging.getLogger(ACCESS_LOGGER).setLevel(access_level)

    def test_parse_level(self):
        assert parse_level("debug") == logging.DEBUG
        assert parse_level(" Info ") == logging.INFO
        assert parse_level(logging.WARNING) == logging.WARNING
        with pytest.raises(ValueError):
            parse_level("loud")

    def test_file_handler(self, tmp_path, restore_root):
        log_file = tmp_path / "logs" / "eventmap.log"
        configure_logging("warning", log_file, console=False)

        assert restore_root.level == logging.WARNING
        assert any(isinstance(h, RotatingFileHandler) for h in restore_root.handlers)

        get_module_logger("Test").warning("written to disk")
        for handler in restore_root.handlers:
            handler.flush()
        assert "[Test] written to disk" in log_file.read_text(encoding="utf-8")

    def test_reconfigure_keeps_foreign_handlers(self, tmp_path, restore_root):
        foreign = logging.NullHandler()
        restore_root.addHandler(foreign)
        try:
            configure_logging("info", tmp_path / "a.log", console=False)
            configure_logging("info", tmp_path / "b.log", console=False)
            files = [h for h in restore_root.handlers if isinstance(h, RotatingFileHandler)]
            assert [Path(h.baseFilename).name for h in files] == ["b.log"]
            assert foreign in restore_root.handlers
        finally:
            restore_root.removeHandler(foreign)

    def test_access_log_only_at_debug(self, restore_root):
        configure_logging("info", console=False)
        assert logging.getLogger(ACCESS_LOGGER).level == logging.WARNING
        configure_logging("debug", console=False)
        assert logging.getLogger(ACCESS_LOGGER).level == logging.DEBUG
        assert restore_root.level == logging.DEBUG
