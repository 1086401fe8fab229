"""Tests for environment-driven server configuration."""

import pytest

from creator_mcp.config import ServerConfig
from creator_mcp.validation import ValidationError


def test_defaults() -> None:
    cfg = ServerConfig.from_env({})
    assert cfg == ServerConfig()
    assert cfg.port == 3001
    assert cfg.session_timeout == 300


def test_reads_environment() -> None:
    cfg = ServerConfig.from_env({
        "HOST": "127.0.0.1",
        "PORT": "8080",
        "SESSION_TIMEOUT": "120",
        "SWEEP_INTERVAL": "15.5",
        "LOG_LEVEL": "debug",
    })
    assert cfg.host == "127.0.0.1"
    assert cfg.port == 8080
    assert cfg.session_timeout == 120
    assert cfg.sweep_interval == 15.5
    assert cfg.log_level == "DEBUG"


def test_empty_values_keep_defaults() -> None:
    assert ServerConfig.from_env({"PORT": "", "HOST": ""}) == ServerConfig()


@pytest.mark.parametrize("env, match", [
    ({"PORT": "eighty"}, "'PORT' must be an integer"),
    ({"PORT": "0"}, ">= 1"),
    ({"SESSION_TIMEOUT": "soon"}, "'SESSION_TIMEOUT' must be a number"),
    ({"SWEEP_INTERVAL": "0"}, ">= 1"),
    ({"LOG_LEVEL": "loud"}, "must be one of"),
])
def test_invalid_values(env: dict, match: str) -> None:
    with pytest.raises(ValidationError, match=match):
        ServerConfig.from_env(env)
