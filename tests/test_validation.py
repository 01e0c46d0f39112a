"""Tests for remote path validation."""

import pytest

from netmigo.utils.validation import validate_remote_path


class TestValidateRemotePath:
    """Test remote path validation."""

    def test_absolute_path(self):
        """Test validating a simple absolute path."""
        assert validate_remote_path("/var/log/messages") == "/var/log/messages"

    def test_relative_path(self):
        """Test that relative paths are passed through."""
        assert validate_remote_path("disk0:/config.txt") == "disk0:/config.txt"

    def test_spaces_are_allowed(self):
        """Test that quoting is left to the caller."""
        assert validate_remote_path("/srv/my file") == "/srv/my file"

    @pytest.mark.parametrize("path", ["", "   "])
    def test_empty_path(self, path):
        """Test that empty paths are rejected."""
        with pytest.raises(ValueError, match="cannot be empty"):
            validate_remote_path(path)

    def test_null_byte(self):
        """Test that null bytes are rejected."""
        with pytest.raises(ValueError, match="null byte"):
            validate_remote_path("/etc/passwd\x00.txt")

    @pytest.mark.parametrize("path", ["/tmp/a\nb", "/tmp/a\rb"])
    def test_line_break(self, path):
        """Test that line breaks are rejected."""
        with pytest.raises(ValueError, match="line break"):
            validate_remote_path(path)

    def test_directory_path(self):
        """Test that directory paths are rejected."""
        with pytest.raises(ValueError, match="directory"):
            validate_remote_path("/var/log/")
