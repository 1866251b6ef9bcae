"""Tests for identifier validation and log/input sanitisation."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from familyhealth.errors import InvalidIdentifierError, StoreError
from familyhealth.security import (
    MAX_LOG_LENGTH,
    sanitize_for_log,
    sanitize_input,
    validate_id,
    validate_user_id,
)


class TestValidation:
    def test_valid_ids_are_returned_unchanged(self) -> None:
        assert validate_user_id("user-123") == "user-123"
        assert validate_id("abc") == "abc"

    @pytest.mark.parametrize("bad", ["", None, 42, "x" * 100])
    def test_invalid_user_ids_are_rejected(self, bad: object) -> None:
        with pytest.raises(InvalidIdentifierError, match="Invalid user ID"):
            validate_user_id(bad)

    def test_invalid_record_id_message(self) -> None:
        with pytest.raises(InvalidIdentifierError, match="Invalid ID"):
            validate_id("")

    def test_ninety_nine_characters_is_accepted(self) -> None:
        assert validate_id("x" * 99) == "x" * 99


class TestSanitize:
    def test_control_whitespace_is_flattened(self) -> None:
        assert sanitize_for_log("a\nb\rc\td") == "a b c d"

    def test_store_errors_are_serialized(self) -> None:
        text = sanitize_for_log(StoreError("bad", code="PGRST116"))
        assert '"code": "PGRST116"' in text

    def test_non_strings_are_json_encoded(self) -> None:
        assert sanitize_for_log({"a": 1}) == '{"a": 1}'

    @given(st.text())
    def test_log_output_is_bounded_and_single_line(self, text: str) -> None:
        out = sanitize_for_log(text)
        assert len(out) <= MAX_LOG_LENGTH
        assert "\n" not in out and "\r" not in out

    def test_sanitize_input_trims_and_truncates(self) -> None:
        assert sanitize_input("  hi  ") == "hi"
        assert sanitize_input(None) == ""
        assert len(sanitize_input("y" * 5000)) == 1000
