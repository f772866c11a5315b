"""Tests for input validation in the MCP server tools."""

import math

import pytest

from noteboard_mcp.server import _engines, _store, board, inspect, pointer, view
from noteboard_mcp.validation import (
    ValidationError,
    validate_action,
    validate_bool,
    validate_enum,
    validate_hit_target,
    validate_list,
    validate_non_empty_string,
    validate_note_color,
    validate_note_ids,
    validate_number,
    validate_pointer_button,
    validate_positive_number,
    validate_string,
    validate_viewport_size,
    _BOARD_ACTIONS,
    _POINTER_ACTIONS,
)


def setup_function() -> None:
    """Clear boards between tests."""
    _engines.clear()
    _store.clear()


# ===================================================================
# Unit tests for primitive validators
# ===================================================================


class TestValidateNonEmptyString:
    def test_valid(self) -> None:
        assert validate_non_empty_string("hello", "f") == "hello"

    def test_strips_whitespace(self) -> None:
        assert validate_non_empty_string("  hi  ", "f") == "hi"

    @pytest.mark.parametrize("value", ["", "   ", 123, None])
    def test_rejects(self, value) -> None:
        with pytest.raises(ValidationError, match="non-empty"):
            validate_non_empty_string(value, "field")


class TestValidateString:
    def test_allows_empty_by_default(self) -> None:
        assert validate_string("", "text") == ""

    def test_keeps_whitespace(self) -> None:
        assert validate_string("  a ", "text") == "  a "

    def test_disallow_empty(self) -> None:
        with pytest.raises(ValidationError, match="must not be empty"):
            validate_string("  ", "text", allow_empty=False)

    def test_not_a_string(self) -> None:
        with pytest.raises(ValidationError, match="must be a string"):
            validate_string(5, "text")


class TestValidateNumber:
    def test_int_and_float(self) -> None:
        assert validate_number(3, "n") == 3.0
        assert validate_number(-2.5, "n") == -2.5

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must be a number"):
            validate_number(True, "n")

    def test_string_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must be a number"):
            validate_number("1", "n")

    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
    def test_non_finite_rejected(self, value) -> None:
        with pytest.raises(ValidationError, match="finite"):
            validate_number(value, "n")

    def test_range(self) -> None:
        with pytest.raises(ValidationError, match=">= 0"):
            validate_number(-1, "n", min_val=0)
        with pytest.raises(ValidationError, match="<= 10"):
            validate_number(11, "n", max_val=10)

    def test_positive(self) -> None:
        assert validate_positive_number(1, "w") == 1.0
        with pytest.raises(ValidationError):
            validate_positive_number(0, "w")


class TestValidateBool:
    def test_valid(self) -> None:
        assert validate_bool(False, "b") is False

    def test_int_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must be a boolean"):
            validate_bool(1, "b")


class TestValidateEnum:
    def test_case_insensitive(self) -> None:
        assert validate_enum(" blue ", "color", {"BLUE", "RED"}) == "BLUE"

    def test_unknown(self) -> None:
        with pytest.raises(ValidationError, match=r"must be one of \[BLUE, RED\]"):
            validate_enum("green", "color", {"BLUE", "RED"})


class TestValidateList:
    def test_valid(self) -> None:
        assert validate_list([1], "items", min_length=1) == [1]

    def test_not_a_list(self) -> None:
        with pytest.raises(ValidationError, match="must be a list"):
            validate_list("a", "items")

    def test_too_short(self) -> None:
        with pytest.raises(ValidationError, match="at least 1"):
            validate_list([], "items", min_length=1)


# ===================================================================
# Domain validators
# ===================================================================


class TestValidateAction:
    def test_normalizes_to_lower(self) -> None:
        assert validate_action(" Add_Note ", "board", _BOARD_ACTIONS) == "add_note"

    def test_missing(self) -> None:
        with pytest.raises(ValidationError, match="requires an 'action'"):
            validate_action("", "pointer", _POINTER_ACTIONS)

    def test_unknown_lists_choices(self) -> None:
        with pytest.raises(ValidationError, match="Unknown pointer action 'click'") as info:
            validate_action("click", "pointer", _POINTER_ACTIONS)
        assert "double_click" in info.value.message


def test_note_color() -> None:
    assert validate_note_color("Purple") == "PURPLE"
    with pytest.raises(ValidationError, match="'color'"):
        validate_note_color("orange")


def test_hit_target_and_button() -> None:
    assert validate_hit_target("note_body") == "NOTE_BODY"
    assert validate_pointer_button("middle") == "MIDDLE"
    with pytest.raises(ValidationError, match="'target'"):
        validate_hit_target("corner")
    with pytest.raises(ValidationError, match="'button'"):
        validate_pointer_button("left")


class TestValidateNoteIds:
    def test_strips(self) -> None:
        assert validate_note_ids([" a ", "b"]) == ["a", "b"]

    def test_empty_list(self) -> None:
        with pytest.raises(ValidationError, match="at least 1"):
            validate_note_ids([])

    def test_bad_item(self) -> None:
        with pytest.raises(ValidationError, match="index 1"):
            validate_note_ids(["a", ""])

    def test_none(self) -> None:
        with pytest.raises(ValidationError, match="must be a list"):
            validate_note_ids(None)


def test_viewport_size() -> None:
    assert validate_viewport_size(800, 600) == (800.0, 600.0)
    with pytest.raises(ValidationError, match="'height'"):
        validate_viewport_size(800, -1)


# ===================================================================
# Validation surfaced through the tools
# ===================================================================


class TestToolErrors:
    def test_unknown_action(self) -> None:
        result = board(action="explode", board="b")
        assert result.startswith("Error: Unknown board action 'explode'")

    def test_missing_board(self) -> None:
        assert board(action="open").startswith("Error: 'board' must be a non-empty string")

    def test_board_not_open(self) -> None:
        assert pointer(action="move", board="nope") == "Error: board 'nope' is not open."
        assert view(action="reset", board="nope") == "Error: board 'nope' is not open."
        assert inspect(action="info", board="nope") == "Error: board 'nope' is not open."

    def test_bad_color(self) -> None:
        board(action="open", board="b")
        result = board(action="add_note", board="b", color="orange")
        assert result.startswith("Error: 'color' must be one of")

    def test_half_point(self) -> None:
        board(action="open", board="b")
        result = board(action="add_note", board="b", x=10)
        assert result == "Error: 'x' and 'y' must be given together."

    def test_bad_target(self) -> None:
        board(action="open", board="b")
        result = pointer(action="down", board="b", target="corner")
        assert result.startswith("Error: 'target' must be one of")

    def test_non_finite_coordinate(self) -> None:
        board(action="open", board="b")
        result = pointer(action="move", board="b", x=math.nan)
        assert "finite" in result

    def test_bad_viewport_size(self) -> None:
        board(action="open", board="b")
        assert view(action="resize", board="b", width=0, height=100).startswith("Error: 'width'")

    def test_negative_margin(self) -> None:
        board(action="open", board="b")
        assert inspect(action="overlaps", board="b", margin=-1).startswith("Error: 'margin'")

    def test_delete_needs_ids(self) -> None:
        board(action="open", board="b")
        assert board(action="delete_notes", board="b").startswith("Error: 'note_ids' must be a list")
