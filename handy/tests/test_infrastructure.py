"""Tests for configuration, logging and identity helpers."""

import logging
from pathlib import Path

import pytest

from handy.database.db import default_db_path
from handy.infrastructure import config
from handy.infrastructure.auth import create_token, verify_token
from handy.infrastructure.exceptions import AuthenticationError
from handy.infrastructure.logging import setup_logging
from handy.infrastructure.utils import truncate


class TestConfig:
    def test_bool_env(self, monkeypatch):
        monkeypatch.setenv("HANDY_FLAG", "Yes")
        assert config.get_bool_env_var("HANDY_FLAG") is True
        monkeypatch.setenv("HANDY_FLAG", "off")
        assert config.get_bool_env_var("HANDY_FLAG", True) is False
        monkeypatch.delenv("HANDY_FLAG")
        assert config.get_bool_env_var("HANDY_FLAG", True) is True

    def test_numeric_env_falls_back(self, monkeypatch):
        monkeypatch.setenv("HANDY_NUMBER", "abc")
        assert config.get_int_env_var("HANDY_NUMBER", 3) == 3
        assert config.get_float_env_var("HANDY_NUMBER", 1.5) == 1.5
        monkeypatch.setenv("HANDY_NUMBER", "7")
        assert config.get_int_env_var("HANDY_NUMBER", 3) == 7


class TestLogging:
    def test_file_handler_added_once(self, tmp_path):
        logger = setup_logging(tmp_path)
        setup_logging(tmp_path)
        file_handlers = [h for h in logger.handlers
                         if isinstance(h, logging.FileHandler) and h.baseFilename == str(tmp_path / "handy.log")]
        assert len(file_handlers) == 1
        logger.removeHandler(file_handlers[0])
        file_handlers[0].close()


class TestIdentity:
    def test_round_trip(self):
        identity = verify_token(create_token("user-1", "user-1@handy.test"))
        assert identity.uid == "user-1"
        assert identity.email == "user-1@handy.test"

    def test_wrong_secret(self, monkeypatch):
        token = create_token("user-1")
        monkeypatch.setenv("HANDY_JWT_SECRET", "another-secret")
        with pytest.raises(AuthenticationError):
            verify_token(token)


def test_truncate_long_values():
    assert truncate("x" * 10, max_len=4) == "xxxx... [truncated]"
    assert truncate({"a": 1}) == '{"a": 1}'


def test_cors_origins_drop_wildcard():
    from handy.api.middleware.cors import parse_origins

    assert parse_origins("https://app.handy.test/, *, http://localhost:8081") == [
        "https://app.handy.test",
        "http://localhost:8081",
    ]
    assert parse_origins(" ") == []


class TestDatabasePath:
    def test_defaults_to_working_directory(self, monkeypatch):
        monkeypatch.delenv("DATABASE_PATH", raising=False)
        path = default_db_path()
        assert path == Path("handy.db")
        assert not path.is_absolute()

    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "data" / "handy.db"))
        assert default_db_path() == tmp_path / "data" / "handy.db"
