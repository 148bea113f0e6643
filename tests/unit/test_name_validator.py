"""
Unit tests for file name validation.
"""

import pytest

from dirbuf.core.name_validator import make_name_validator, validate_name
from dirbuf.core.platform import MACOS, POSIX, WINDOWS


class TestValidateName:
    """Rules applied to a proposed base name."""

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_names_are_rejected(self, name):
        result = validate_name(name, platform=POSIX)

        assert result.valid is False
        assert result.error_message == "There are only whitespace characters in the name."

    def test_slash_is_invalid_everywhere(self):
        assert validate_name("a/b", platform=POSIX).error_message == (
            "The name contains invalid characters."
        )

    @pytest.mark.parametrize("name", ["what?", "a:b", "x*y", 'say"hi"', "pipe|"])
    def test_windows_invalid_characters(self, name):
        assert validate_name(name, platform=WINDOWS).valid is False
        assert validate_name(name, platform=POSIX).valid is True

    @pytest.mark.parametrize("name", ["con", "NUL.txt", "com1", "lpt9.log", "clock$"])
    def test_windows_reserved_device_names(self, name):
        result = validate_name(name, platform=WINDOWS)

        assert result.error_message == "Invalid file name on windows."

    @pytest.mark.parametrize("name", [".", ".."])
    def test_dot_names_are_reserved(self, name):
        assert validate_name(name, platform=POSIX).error_message == "Reserved file name."

    def test_windows_trailing_dot_and_space(self):
        assert "cannot end with a" in validate_name("name.", platform=WINDOWS).error_message
        assert "whitespace" in validate_name("name ", platform=WINDOWS).error_message
        assert validate_name("name.", platform=POSIX).valid is True

    def test_too_long(self):
        assert validate_name("x" * 256, platform=POSIX).error_message == "The name is too long."
        assert validate_name("x" * 255, platform=POSIX).valid is True

    def test_collision_with_existing_name(self):
        result = validate_name("a.txt", {"a.txt", "b.txt"}, POSIX)

        assert result.error_message == "a.txt already exists."

    def test_collision_is_case_insensitive_where_paths_are(self):
        assert validate_name("A.TXT", {"a.txt"}, MACOS).valid is False
        assert validate_name("A.TXT", {"a.txt"}, POSIX).valid is True

    def test_surrounding_whitespace_is_reported_last(self):
        result = validate_name(" padded", platform=POSIX)

        assert result.error_message == (
            "Leading or trailing whitespace detected in file or folder name."
        )

    def test_valid_name(self):
        result = validate_name("report-2024.pdf", {"other"}, POSIX)

        assert result.valid is True
        assert result.error_message is None


def test_bound_validator_returns_messages():
    validator = make_name_validator({"taken"}, POSIX)

    assert validator("taken") == "taken already exists."
    assert validator("free") is None
