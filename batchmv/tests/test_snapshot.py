"""Unit tests for DirectorySnapshot."""

from pathlib import Path
from unittest.mock import patch

import pytest

from batchmv.errors import ValidationError
from batchmv.snapshot import DirectorySnapshot
from batchmv.tests import fixtures


class TestDirectorySnapshot:
    """Tests for DirectorySnapshot capture."""

    def test_capture_lists_sorted_names(self, tmp_path):
        """Test that names are captured in sorted order."""
        fixtures.make_files(tmp_path, ["b.txt", "a.txt", "c.mkv"])

        snapshot = DirectorySnapshot.capture(tmp_path)

        assert snapshot.names == ("a.txt", "b.txt", "c.mkv")
        assert snapshot.files == ("a.txt", "b.txt", "c.mkv")
        assert snapshot.directory == tmp_path
        assert len(snapshot) == 3

    def test_directories_are_names_but_not_files(self, tmp_path):
        """Test that subdirectories count for existence but are not files."""
        fixtures.make_files(tmp_path, ["a.txt"])
        (tmp_path / "extras").mkdir()

        snapshot = DirectorySnapshot.capture(tmp_path)

        assert "extras" in snapshot
        assert snapshot.files == ("a.txt",)

    def test_contains(self, tmp_path):
        """Test membership checks."""
        fixtures.make_files(tmp_path, ["a.txt"])

        snapshot = DirectorySnapshot.capture(tmp_path)

        assert "a.txt" in snapshot
        assert "b.txt" not in snapshot

    def test_snapshot_is_not_refreshed(self, tmp_path):
        """Test that later changes to the directory are not seen."""
        snapshot = DirectorySnapshot.capture(tmp_path)
        fixtures.make_files(tmp_path, ["late.txt"])

        assert "late.txt" not in snapshot

    def test_missing_directory(self, tmp_path):
        """Test that a missing directory is rejected."""
        with pytest.raises(ValidationError, match="Directory not found"):
            DirectorySnapshot.capture(tmp_path / "missing")

    def test_file_instead_of_directory(self, tmp_path):
        """Test that a regular file is rejected."""
        fixtures.make_files(tmp_path, ["a.txt"])

        with pytest.raises(ValidationError, match="Not a directory") as exc_info:
            DirectorySnapshot.capture(tmp_path / "a.txt")

        assert exc_info.value.paths == [tmp_path / "a.txt"]

    def test_unreadable_directory(self, tmp_path):
        """Test that a directory that cannot be listed is rejected with its path."""
        with patch.object(Path, "iterdir", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(ValidationError, match="Cannot list directory") as exc_info:
                DirectorySnapshot.capture(tmp_path)

        assert exc_info.value.paths == [tmp_path]
        assert isinstance(exc_info.value.__cause__, PermissionError)
