"""
Tests for logging setup and formatters.
"""

import json
import logging
import logging.handlers

import pytest

from txprivacy.config.logging_config import (
    HumanReadableFormatter,
    JSONFormatter,
    setup_logging,
)


def _record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("txprivacy.test", level, __file__, 42, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def logger_name(request):
    name = f"txprivacy.tests.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


class TestFormatters:
    def test_json_formatter(self):
        data = json.loads(JSONFormatter().format(_record(extra_fields={"txid": "ab"})))

        assert data["level"] == "INFO"
        assert data["logger"] == "txprivacy.test"
        assert data["message"] == "hello"
        assert data["line"] == 42
        assert data["txid"] == "ab"

    def test_human_readable_without_color(self):
        text = HumanReadableFormatter(use_color=False).format(_record(level=logging.WARNING))

        assert "\033[" not in text
        assert "WARNING" in text
        assert text.endswith("txprivacy.test:42 - hello")

    def test_human_readable_with_color(self):
        text = HumanReadableFormatter(use_color=True).format(_record(level=logging.ERROR))

        assert text.startswith("\033[31m")


class TestSetupLogging:
    def test_development_mode(self, logger_name):
        logger = setup_logging(name=logger_name, level="debug")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, HumanReadableFormatter)

    def test_production_mode(self, logger_name):
        logger = setup_logging(name=logger_name, mode="production")

        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_repeated_setup_replaces_handlers(self, logger_name):
        setup_logging(name=logger_name)
        logger = setup_logging(name=logger_name)

        assert len(logger.handlers) == 1

    def test_file_handler(self, logger_name, tmp_path):
        logger = setup_logging(name=logger_name, log_dir=str(tmp_path / "logs"))
        logger.warning("written to disk")
        for handler in logger.handlers:
            handler.flush()

        file_handlers = [
            h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert "written to disk" in (tmp_path / "logs" / f"{logger_name}.log").read_text()
