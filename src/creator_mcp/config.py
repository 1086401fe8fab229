"""Server settings, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from creator_mcp.validation import (
    ValidationError,
    validate_log_level,
    validate_number,
    validate_port,
)


@dataclass
class ServerConfig:
    """Configuration for the HTTP/WebSocket bridge."""
    host: str = "0.0.0.0"
    port: int = 3001
    session_timeout: float = 300   # Seconds without a ping before a session is dropped
    sweep_interval: float = 60     # Seconds between stale-session sweeps
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """Build a config from ``HOST``, ``PORT``, ``SESSION_TIMEOUT``,
        ``SWEEP_INTERVAL`` and ``LOG_LEVEL``; unset variables keep defaults.
        """
        env = os.environ if environ is None else environ
        cfg = cls()
        if env.get("HOST"):
            cfg.host = env["HOST"]
        if env.get("PORT"):
            cfg.port = validate_port(_parse_int(env["PORT"], "PORT"))
        if env.get("SESSION_TIMEOUT"):
            cfg.session_timeout = validate_number(
                _parse_float(env["SESSION_TIMEOUT"], "SESSION_TIMEOUT"),
                "SESSION_TIMEOUT", min_val=1,
            )
        if env.get("SWEEP_INTERVAL"):
            cfg.sweep_interval = validate_number(
                _parse_float(env["SWEEP_INTERVAL"], "SWEEP_INTERVAL"),
                "SWEEP_INTERVAL", min_val=1,
            )
        if env.get("LOG_LEVEL"):
            cfg.log_level = validate_log_level(env["LOG_LEVEL"])
        return cfg


def _parse_int(raw: str, name: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"'{name}' must be an integer, got '{raw}'.") from None


def _parse_float(raw: str, name: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ValidationError(f"'{name}' must be a number, got '{raw}'.") from None
