"""
Structured logging configuration tests.
"""

import pytest
import structlog

from app.core.config import get_settings
from app.core.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)


@pytest.mark.parametrize("level,fmt", [("info", "console"), ("debug", "json"), ("WARNING", "json")])
def test_configure_logging_accepts_level_names(level, fmt):
    configure_logging(level, fmt)
    structlog.get_logger().info("logging.configured", level=level)


def test_json_output(capsys):
    configure_logging("info", "json")
    structlog.get_logger().info("audit.recorded", audit_id=3)
    out = capsys.readouterr().out
    assert '"event": "audit.recorded"' in out
    assert '"audit_id": 3' in out
    assert '"level": "info"' in out


def test_level_filters_lower_events(capsys):
    configure_logging("warning", "json")
    log = structlog.get_logger()
    log.info("audit.recorded")
    log.warning("audit.record_incomplete")
    out = capsys.readouterr().out
    assert "audit.recorded" not in out
    assert "audit.record_incomplete" in out
