"""Tests for input validation."""

import pytest

from creator_mcp.validation import (
    ValidationError,
    validate_branches,
    validate_connection_dict,
    validate_enum,
    validate_flowchart_step,
    validate_int,
    validate_list,
    validate_log_level,
    validate_metadata,
    validate_non_empty_string,
    validate_number,
    validate_optional_string,
    validate_port,
    validate_session_code,
    validate_shape_dict,
)


# ===================================================================
# Unit tests for primitive validators
# ===================================================================


class TestValidateNonEmptyString:
    def test_valid(self) -> None:
        assert validate_non_empty_string("hello", "f") == "hello"

    def test_strips_whitespace(self) -> None:
        assert validate_non_empty_string("  hi  ", "f") == "hi"

    def test_whitespace_only(self) -> None:
        with pytest.raises(ValidationError, match="non-empty"):
            validate_non_empty_string("   ", "field")

    def test_none(self) -> None:
        with pytest.raises(ValidationError, match="non-empty"):
            validate_non_empty_string(None, "field")


class TestValidateOptionalString:
    def test_none_allowed(self) -> None:
        assert validate_optional_string(None, "f") is None

    def test_not_a_string(self) -> None:
        with pytest.raises(ValidationError, match="must be a string"):
            validate_optional_string(5, "f")


class TestValidateNumber:
    def test_valid(self) -> None:
        assert validate_number(3, "n") == 3.0

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must be a number"):
            validate_number(True, "n")

    def test_range(self) -> None:
        with pytest.raises(ValidationError, match=">="):
            validate_number(0, "n", min_val=1)
        with pytest.raises(ValidationError, match="<="):
            validate_number(11, "n", max_val=10)


class TestValidateInt:
    def test_float_rejected(self) -> None:
        with pytest.raises(ValidationError, match="integer"):
            validate_int(1.5, "i")

    def test_port_bounds(self) -> None:
        assert validate_port(3001) == 3001
        with pytest.raises(ValidationError):
            validate_port(0)
        with pytest.raises(ValidationError):
            validate_port(70000)


class TestValidateEnum:
    def test_case_insensitive(self) -> None:
        assert validate_enum("top", "m", {"TOP", "BOTTOM"}) == "TOP"

    def test_invalid(self) -> None:
        with pytest.raises(ValidationError, match="must be one of"):
            validate_enum("middle", "m", {"TOP", "BOTTOM"})

    def test_log_level(self) -> None:
        assert validate_log_level("debug") == "DEBUG"
        with pytest.raises(ValidationError):
            validate_log_level("verbose")


class TestValidateList:
    def test_not_a_list(self) -> None:
        with pytest.raises(ValidationError, match="must be a list"):
            validate_list({"a": 1}, "l")

    def test_min_length(self) -> None:
        with pytest.raises(ValidationError, match="at least 1"):
            validate_list([], "l", min_length=1)


# ===================================================================
# Domain validators
# ===================================================================


class TestValidateSessionCode:
    def test_normalizes(self) -> None:
        assert validate_session_code(" ab12cd ") == "AB12CD"

    def test_missing(self) -> None:
        with pytest.raises(ValidationError, match="required"):
            validate_session_code("")
        with pytest.raises(ValidationError, match="required"):
            validate_session_code(None)

    def test_wrong_shape(self) -> None:
        for bad in ("ABC", "ABCDEFG", "AB-12C"):
            with pytest.raises(ValidationError, match="6 letters/digits"):
                validate_session_code(bad)


class TestValidateShapeDict:
    def test_minimal(self) -> None:
        validate_shape_dict({"id": "a"}, 0)

    def test_full(self) -> None:
        validate_shape_dict({
            "id": "a", "x": 1, "y": 2.5, "width": 140, "height": 50,
            "type": "Diamond", "text": "Go?", "fill": "lightOrange",
            "stroke": "orange", "textFill": "black",
        }, 0)

    def test_missing_id(self) -> None:
        with pytest.raises(ValidationError, match="missing required key 'id'"):
            validate_shape_dict({"x": 1}, 3)

    def test_blank_id(self) -> None:
        with pytest.raises(ValidationError, match="non-empty string"):
            validate_shape_dict({"id": " "}, 0)

    def test_non_numeric_coordinate(self) -> None:
        with pytest.raises(ValidationError, match="'x' must be a number"):
            validate_shape_dict({"id": "a", "x": "10"}, 0)

    def test_unknown_type(self) -> None:
        with pytest.raises(ValidationError, match="diamond, ellipse, rectangle"):
            validate_shape_dict({"id": "a", "type": "star"}, 0)

    def test_not_a_dict(self) -> None:
        with pytest.raises(ValidationError, match="index 2"):
            validate_shape_dict("a", 2)


class TestValidateConnectionDict:
    def test_valid(self) -> None:
        validate_connection_dict({"from": "a", "to": "b", "fromMagnet": "auto", "toMagnet": None}, 0)

    def test_missing_endpoint(self) -> None:
        with pytest.raises(ValidationError, match="missing required key 'from'"):
            validate_connection_dict({"to": "b"}, 0)

    def test_bad_magnet(self) -> None:
        with pytest.raises(ValidationError, match="'toMagnet' must be one of"):
            validate_connection_dict({"from": "a", "to": "b", "toMagnet": "CENTER"}, 0)

    def test_bad_label(self) -> None:
        with pytest.raises(ValidationError, match="'label' must be a string"):
            validate_connection_dict({"from": "a", "to": "b", "label": 3}, 0)


class TestValidateFlowchartStep:
    def test_valid(self) -> None:
        validate_flowchart_step({"text": "Go", "type": "DECISION"}, 0)

    def test_unknown_type(self) -> None:
        with pytest.raises(ValidationError, match="decision, process"):
            validate_flowchart_step({"type": "loop"}, 1)


class TestValidateBranchesAndMetadata:
    def test_branches(self) -> None:
        assert validate_branches(None) == []
        assert validate_branches(["a", "b"]) == ["a", "b"]
        with pytest.raises(ValidationError, match=r"branches\[1\]"):
            validate_branches(["a", 2])

    def test_metadata(self) -> None:
        assert validate_metadata(None) is None
        assert validate_metadata({"date": "today"}) == {"date": "today"}
        with pytest.raises(ValidationError, match="keys must be strings"):
            validate_metadata({1: "x"})
