"""Tests for logging configuration driven by settings."""

import structlog

from treefs.config.settings import Settings
from treefs.utils.logger import _choose_renderer, short_sha


def test_json_renderer_from_settings():
    renderer = _choose_renderer(Settings({"log_format": "JSON"}))
    assert isinstance(renderer, structlog.processors.JSONRenderer)


def test_console_renderer_by_default():
    renderer = _choose_renderer(Settings({"log_colors": False}))
    assert isinstance(renderer, structlog.dev.ConsoleRenderer)


def test_log_format_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_FORMAT", "json")
    assert isinstance(_choose_renderer(Settings()), structlog.processors.JSONRenderer)


def test_short_sha():
    assert short_sha(b"0123456789abcdef0123") == "0123456789ab"
    assert short_sha(None) is None
