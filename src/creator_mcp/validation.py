"""
Input validation for creator MCP server tool parameters.

Provides reusable validators that produce clear error messages for all
parameters received from agent callers. Validation is deliberately lighter
than the repair engine's tolerance: it rejects values of the wrong type, and
leaves missing geometry for the engine to compute.
"""

from __future__ import annotations

import re
from typing import Any


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Primitive validators
# ---------------------------------------------------------------------------

def validate_non_empty_string(value: Any, field_name: str) -> str:
    """Ensure *value* is a non-empty string after stripping whitespace."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field_name}' must be a non-empty string.")
    return value.strip()


def validate_optional_string(value: Any, field_name: str) -> str | None:
    """Allow None, otherwise require a string."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{field_name}' must be a string, got {type(value).__name__}.")
    return value


def validate_number(
    value: Any,
    field_name: str,
    *,
    min_val: float | None = None,
    max_val: float | None = None,
) -> float:
    """Validate a numeric value and optional range."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be a number, got {type(value).__name__}."
        )
    val = float(value)
    if min_val is not None and val < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {val}."
        )
    if max_val is not None and val > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {val}."
        )
    return val


def validate_int(
    value: Any,
    field_name: str,
    *,
    min_val: int | None = None,
    max_val: int | None = None,
) -> int:
    """Validate an integer value and optional range."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be an integer, got {type(value).__name__}."
        )
    if min_val is not None and value < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {value}."
        )
    if max_val is not None and value > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {value}."
        )
    return value


def validate_enum(value: Any, field_name: str, allowed: set[str]) -> str:
    """Validate that a string value is one of the allowed choices (case-insensitive)."""
    if not isinstance(value, str):
        raise ValidationError(
            f"'{field_name}' must be a string, got {type(value).__name__}."
        )
    normalized = value.strip().upper()
    if normalized not in {a.upper() for a in allowed}:
        choices = ", ".join(sorted(allowed))
        raise ValidationError(
            f"'{field_name}' must be one of [{choices}], got '{value}'."
        )
    return normalized


def validate_list(value: Any, field_name: str, *, min_length: int = 0) -> list:
    """Ensure *value* is a list with at least *min_length* items."""
    if not isinstance(value, list):
        raise ValidationError(
            f"'{field_name}' must be a list, got {type(value).__name__}."
        )
    if len(value) < min_length:
        raise ValidationError(
            f"'{field_name}' must have at least {min_length} item(s), got {len(value)}."
        )
    return value


def validate_dict(value: Any, field_name: str) -> dict:
    """Ensure *value* is a dict."""
    if not isinstance(value, dict):
        raise ValidationError(
            f"'{field_name}' must be a dict/object, got {type(value).__name__}."
        )
    return value


# ---------------------------------------------------------------------------
# Domain validators
# ---------------------------------------------------------------------------

_SESSION_CODE_RE = re.compile(r"^[A-Z0-9]{6}$")

_SHAPE_TYPES = {"RECTANGLE", "DIAMOND", "ELLIPSE"}
_MAGNETS = {"TOP", "BOTTOM", "LEFT", "RIGHT", "AUTO"}
_STEP_TYPES = {"PROCESS", "DECISION"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_session_code(value: Any) -> str:
    """Normalize a plugin session code (6 alphanumeric characters)."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            "'session_code' is required. Ask the user to open the FigJam "
            "Creator plugin and share their session code."
        )
    code = value.strip().upper()
    if not _SESSION_CODE_RE.match(code):
        raise ValidationError(
            f"'session_code' must be 6 letters/digits, got '{value}'."
        )
    return code


def validate_shape_dict(s: Any, index: int) -> None:
    """Validate a single shape dict from the shapes list."""
    if not isinstance(s, dict):
        raise ValidationError(f"Shape at index {index} must be a dict/object.")
    if "id" not in s:
        raise ValidationError(f"Shape at index {index} missing required key 'id'.")
    if not isinstance(s["id"], str) or not s["id"].strip():
        raise ValidationError(f"Shape at index {index}: 'id' must be a non-empty string.")
    for key in ("x", "y", "width", "height"):
        if key in s and (not isinstance(s[key], (int, float)) or isinstance(s[key], bool)):
            raise ValidationError(f"Shape at index {index}: '{key}' must be a number.")
    for key in ("text", "fill", "stroke", "textFill"):
        if key in s and not isinstance(s[key], str):
            raise ValidationError(f"Shape at index {index}: '{key}' must be a string.")
    if "type" in s:
        if not isinstance(s["type"], str) or s["type"].strip().upper() not in _SHAPE_TYPES:
            choices = ", ".join(sorted(t.lower() for t in _SHAPE_TYPES))
            raise ValidationError(
                f"Shape at index {index}: unknown type '{s['type']}'. Valid types: {choices}."
            )


def validate_connection_dict(c: Any, index: int) -> None:
    """Validate a single connection dict from the connections list."""
    if not isinstance(c, dict):
        raise ValidationError(f"Connection at index {index} must be a dict/object.")
    for key in ("from", "to"):
        if key not in c:
            raise ValidationError(f"Connection at index {index} missing required key '{key}'.")
        if not isinstance(c[key], str) or not c[key].strip():
            raise ValidationError(f"Connection at index {index}: '{key}' must be a non-empty string.")
    for key in ("fromMagnet", "toMagnet"):
        if key in c and c[key] is not None:
            if not isinstance(c[key], str) or c[key].strip().upper() not in _MAGNETS:
                choices = ", ".join(sorted(_MAGNETS))
                raise ValidationError(
                    f"Connection at index {index}: '{key}' must be one of [{choices}], got '{c[key]}'."
                )
    if "label" in c and not isinstance(c["label"], str):
        raise ValidationError(f"Connection at index {index}: 'label' must be a string.")


def validate_flowchart_step(step: Any, index: int) -> None:
    """Validate a single flowchart step dict."""
    if not isinstance(step, dict):
        raise ValidationError(f"Step at index {index} must be a dict/object.")
    for key in ("text", "label"):
        if key in step and not isinstance(step[key], str):
            raise ValidationError(f"Step at index {index}: '{key}' must be a string.")
    if "type" in step:
        if not isinstance(step["type"], str) or step["type"].strip().upper() not in _STEP_TYPES:
            choices = ", ".join(sorted(t.lower() for t in _STEP_TYPES))
            raise ValidationError(
                f"Step at index {index}: unknown type '{step['type']}'. "
                f"Valid types: {choices}."
            )


def validate_branches(value: Any) -> list[str]:
    """Validate mind map branch labels."""
    if value is None:
        return []
    validate_list(value, "branches")
    for i, branch in enumerate(value):
        if not isinstance(branch, str):
            raise ValidationError(
                f"'branches[{i}]' must be a string, got {type(branch).__name__}."
            )
    return value


def validate_metadata(value: Any) -> dict[str, Any] | None:
    """Validate the free-form context metadata mapping."""
    if value is None:
        return None
    validate_dict(value, "metadata")
    for k in value:
        if not isinstance(k, str):
            raise ValidationError(f"'metadata' keys must be strings, got {type(k).__name__}.")
    return value


def validate_port(value: Any) -> int:
    """Validate a TCP port (1..65535)."""
    return validate_int(value, "port", min_val=1, max_val=65535)


def validate_log_level(value: Any) -> str:
    """Validate a logging level name."""
    return validate_enum(value, "log_level", _LOG_LEVELS)
