import logging

import pytest

from app.api.v1.attendance_sessions.scheduler import CodeRotationScheduler
from app.core.config import settings
from app.core.logging import CustomJsonFormatter, build_logging_config, setup_logging
from app.main import app, lifespan


def test_logging_config_uses_plain_formatter_by_default(monkeypatch) -> None:
    monkeypatch.setattr(settings, "log_json", False)
    config = build_logging_config()
    assert config["handlers"]["console"]["formatter"] == "standard"
    assert config["loggers"]["app"]["level"] == settings.log_level


def test_logging_config_json_switch(monkeypatch) -> None:
    monkeypatch.setattr(settings, "log_json", True)
    config = build_logging_config()
    assert config["handlers"]["console"]["formatter"] == "json"
    assert config["formatters"]["json"]["()"] is CustomJsonFormatter


def test_json_formatter_fields() -> None:
    formatter = CustomJsonFormatter("%(message)s")
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "rotated", None, None)
    record.class_id = 7
    output = formatter.format(record)
    assert '"level": "INFO"' in output
    assert '"logger": "app.test"' in output
    assert '"class_id": 7' in output


def test_setup_logging_returns_app_logger() -> None:
    logger = setup_logging()
    assert logger.name == "app"


@pytest.mark.asyncio
async def test_lifespan_creates_and_shuts_down_scheduler() -> None:
    app.state.rotation_scheduler = None
    try:
        async with lifespan(app):
            scheduler = app.state.rotation_scheduler
            assert isinstance(scheduler, CodeRotationScheduler)
            assert scheduler.interval_seconds == settings.code_rotation_interval_seconds
        assert scheduler.active_classes() == []
    finally:
        app.state.rotation_scheduler = None
