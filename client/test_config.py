"""
Test suite for configuration and logging setup.

Run with: pytest test_config.py -v
"""

import json
import logging

import pytest

from config import ClientConfig, get_env_bool, get_env_float
from logging_config import JSONFormatter, get_logger, room_id_var


class TestConfig:

    def test_defaults(self, monkeypatch):
        for key in ("UNO_SOCKET_PATH", "ACK_TIMEOUT_SECONDS", "UNO_STATS_ENABLED", "UNO_SOCKET_ORIGIN"):
            monkeypatch.delenv(key, raising=False)
        cfg = ClientConfig.from_env()
        assert cfg.SOCKET_PATH == "/api/uno/socket"
        assert cfg.ACK_TIMEOUT_SECONDS == 10.0
        assert cfg.STATS_ENABLED is True
        assert cfg.SOCKET_ORIGIN == ""

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("UNO_SOCKET_ORIGIN", "  https://api.example.com ")
        monkeypatch.setenv("ACK_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("UNO_STATS_ENABLED", "off")
        cfg = ClientConfig.from_env()
        assert cfg.SOCKET_ORIGIN == "https://api.example.com"
        assert cfg.ACK_TIMEOUT_SECONDS == 2.5
        assert cfg.STATS_ENABLED is False

    @pytest.mark.parametrize("raw,expected", [("yes", True), ("0", False), ("maybe", True)])
    def test_env_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("UNO_TEST_FLAG", raw)
        assert get_env_bool("UNO_TEST_FLAG", True) is expected

    def test_env_float_bad_value(self, monkeypatch):
        monkeypatch.setenv("UNO_TEST_FLOAT", "soon")
        assert get_env_float("UNO_TEST_FLOAT", 3.0) == 3.0


class TestJSONFormatter:

    def make_record(self, **extra):
        record = logging.LogRecord("session", logging.INFO, __file__, 1, "Joined room", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_context_from_record(self):
        data = json.loads(JSONFormatter().format(self.make_record(room_id="AB12", player_id="sid1")))
        assert data["message"] == "Joined room"
        assert data["room_id"] == "AB12"
        assert data["player_id"] == "sid1"

    def test_context_from_contextvar(self):
        token = room_id_var.set("CD34")
        try:
            data = json.loads(JSONFormatter().format(self.make_record()))
        finally:
            room_id_var.reset(token)
        assert data["room_id"] == "CD34"
        assert "player_id" not in data

    def test_context_logger_merges_extra(self):
        logger = get_logger("session").with_context(room_id="AB12")
        msg, kwargs = logger.process("hi", {"extra": {"event": "join"}})
        assert kwargs["extra"] == {"room_id": "AB12", "event": "join"}
