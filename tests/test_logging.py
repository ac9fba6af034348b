"""
Tests for the logging module.
"""

import json
import logging

import pytest

from name_enricher import __version__
from name_enricher.core.settings import Settings
from name_enricher.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    shutdown_logging,
)


@pytest.fixture(autouse=True)
def _reset_context():
    clear_context()
    yield
    clear_context()


class TestConfigureLogging:
    def test_sets_root_level(self):
        configure_logging(Settings(_env_file=None, log_level="WARNING", log_format="console"))
        assert logging.root.level == logging.WARNING

    def test_json_lines_include_bound_context(self, capsys):
        configure_logging(Settings(_env_file=None, log_level="INFO", log_format="json"))
        bind_context(request_id="req-1")

        get_logger("tests.logging").info("person_created", id=7)
        shutdown_logging()

        lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
        record = json.loads(lines[-1])
        assert record["event"] == "person_created"
        assert record["id"] == 7
        assert record["request_id"] == "req-1"
        assert record["level"] == "info"
        assert record["service"] == "name-enricher"
        assert record["version"] == __version__

    def test_debug_is_suppressed_at_info(self, capsys):
        configure_logging(Settings(_env_file=None, log_level="INFO", log_format="json"))
        get_logger("tests.logging").debug("noisy_detail")
        shutdown_logging()
        assert "noisy_detail" not in capsys.readouterr().out


def test_shutdown_clears_context(capsys):
    configure_logging(Settings(_env_file=None, log_level="INFO", log_format="json"))
    bind_context(request_id="req-2")
    shutdown_logging()

    get_logger("tests.logging").info("after_shutdown")
    shutdown_logging()
    assert "req-2" not in capsys.readouterr().out


def test_stdlib_records_share_the_json_shape(capsys):
    configure_logging(Settings(_env_file=None, log_level="INFO", log_format="json", service_name="enricher-test"))

    logging.getLogger("uvicorn.error").info("Application startup complete.")
    shutdown_logging()

    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    record = json.loads(lines[-1])
    assert record["event"] == "Application startup complete."
    assert record["service"] == "enricher-test"
    assert record["logger"] == "uvicorn.error"


def test_per_request_library_loggers_are_quieted():
    configure_logging(Settings(_env_file=None, log_level="DEBUG", log_format="console"))
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("uvicorn.access").level == logging.WARNING
