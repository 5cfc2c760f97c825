"""Unit tests for package logging."""

import json
import logging

import pytest

from coefstats.utils.logging import (
    PACKAGE_LOGGER,
    JSONFormatter,
    configure_logging,
    get_logger,
)


@pytest.fixture
def restore_logging():
    yield
    configure_logging()


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("coefstats.api", logging.INFO, __file__, 1, "Prepared %s", ("table",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self) -> None:
        data = json.loads(JSONFormatter().format(_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "coefstats.api"
        assert data["message"] == "Prepared table"

    def test_context_merged(self) -> None:
        data = json.loads(JSONFormatter().format(_record(context={"n_terms": 3, "source": "table"})))
        assert data["n_terms"] == 3
        assert data["source"] == "table"


class TestConfigureLogging:
    """Tests for the package-level handler."""

    def test_module_loggers_are_package_children(self) -> None:
        logger = get_logger("coefstats.core.reconcile")
        assert logger.parent is logging.getLogger(PACKAGE_LOGGER)
        assert logger.handlers == []
        assert len(logging.getLogger(PACKAGE_LOGGER).handlers) == 1

    def test_reconfigure_replaces_handler(self, restore_logging) -> None:
        package_logger = configure_logging(level="debug", log_format="text")
        assert len(package_logger.handlers) == 1
        assert package_logger.level == logging.DEBUG
        assert not isinstance(package_logger.handlers[0].formatter, JSONFormatter)

    def test_unknown_level_falls_back_to_info(self, restore_logging) -> None:
        assert configure_logging(level="chatty").level == logging.INFO
