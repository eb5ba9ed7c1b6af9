"""
Unit Tests for File Mover

Tests single item moves, collision handling, overwrite and undo.

Author: AutoDrop Project
License: MIT
"""

import asyncio
import errno
import os
import pytest
from unittest.mock import patch

from autodrop.core.cancellation import CancellationToken
from autodrop.core.errors import FileOperationError, NotFoundError, OperationCancelledError, ValidationError
from autodrop.engine.file_mover import FileMover


@pytest.fixture
def mover():
    return FileMover()


class TestMove:
    """Test suite for FileMover.move."""

    def test_move_file_creates_destination(self, tmp_path, mover):
        source = tmp_path / "inbox" / "report.pdf"
        source.parent.mkdir()
        source.write_bytes(b"pdf")
        dest_folder = tmp_path / "Documents" / "Reports"

        operation = asyncio.run(mover.move(str(source), str(dest_folder)))

        assert not source.exists()
        assert (dest_folder / "report.pdf").read_bytes() == b"pdf"
        assert operation.destination_path == str(dest_folder / "report.pdf")
        assert operation.source_path == str(source)
        assert operation.item_name == "report.pdf"
        assert operation.size_bytes == 3
        assert operation.can_undo

    def test_collision_keeps_both(self, tmp_path, mover):
        """Test that an existing name gets a ' (1)' suffix."""
        dest_folder = tmp_path / "dest"
        dest_folder.mkdir()
        (dest_folder / "a.txt").write_text("old")
        source = tmp_path / "a.txt"
        source.write_text("new")

        operation = asyncio.run(mover.move(str(source), str(dest_folder)))

        assert operation.destination_path == str(dest_folder / "a (1).txt")
        assert (dest_folder / "a.txt").read_text() == "old"
        assert (dest_folder / "a (1).txt").read_text() == "new"

    def test_overwrite_replaces(self, tmp_path, mover):
        dest_folder = tmp_path / "dest"
        dest_folder.mkdir()
        (dest_folder / "a.txt").write_text("old")
        source = tmp_path / "a.txt"
        source.write_text("new")

        operation = asyncio.run(mover.move(str(source), str(dest_folder), overwrite=True))

        assert operation.destination_path == str(dest_folder / "a.txt")
        assert (dest_folder / "a.txt").read_text() == "new"
        assert not (dest_folder / "a (1).txt").exists()

    def test_failed_overwrite_keeps_destination(self, tmp_path, mover):
        """Test that the old file survives when the replacing move fails."""
        dest_folder = tmp_path / "dest"
        dest_folder.mkdir()
        (dest_folder / "a.txt").write_text("old")
        source = tmp_path / "a.txt"
        source.write_text("new")

        with patch("autodrop.engine.file_mover.os.replace", side_effect=OSError("locked")):
            with pytest.raises(FileOperationError):
                asyncio.run(mover.move(str(source), str(dest_folder), overwrite=True))

        assert (dest_folder / "a.txt").read_text() == "old"
        assert source.read_text() == "new"

    def test_overwrite_across_filesystems(self, tmp_path, mover):
        """Test that a cross-device overwrite stages a copy and removes the source."""
        dest_folder = tmp_path / "dest"
        dest_folder.mkdir()
        (dest_folder / "a.txt").write_text("old")
        source = tmp_path / "a.txt"
        source.write_text("new")
        real_replace = os.replace

        def replace(src, dst):
            if src == str(source):
                raise OSError(errno.EXDEV, "Invalid cross-device link")
            real_replace(src, dst)

        with patch("autodrop.engine.file_mover.os.replace", side_effect=replace):
            asyncio.run(mover.move(str(source), str(dest_folder), overwrite=True))

        assert (dest_folder / "a.txt").read_text() == "new"
        assert not source.exists()
        assert [p.name for p in dest_folder.iterdir()] == ["a.txt"]

    def test_move_folder(self, tmp_path, mover):
        folder = tmp_path / "project"
        folder.mkdir()
        (folder / "inner.txt").write_text("x")

        operation = asyncio.run(mover.move(str(folder), str(tmp_path / "archive")))

        assert operation.is_directory
        assert (tmp_path / "archive" / "project" / "inner.txt").exists()

    def test_missing_source(self, tmp_path, mover):
        with pytest.raises(NotFoundError):
            asyncio.run(mover.move(str(tmp_path / "missing.txt"), str(tmp_path / "dest")))

    @pytest.mark.parametrize("source,dest", [("", "/tmp"), ("/tmp/a", "  ")])
    def test_blank_arguments(self, mover, source, dest):
        with pytest.raises(ValidationError):
            asyncio.run(mover.move(source, dest))

    def test_cancelled_before_io(self, tmp_path, mover):
        source = tmp_path / "a.txt"
        source.write_text("x")
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            asyncio.run(mover.move(str(source), str(tmp_path / "dest"), token))

        assert source.exists()
        assert not (tmp_path / "dest").exists()


class TestUndo:
    """Test suite for FileMover.undo."""

    def test_round_trip(self, tmp_path, mover):
        source = tmp_path / "photo.png"
        source.write_bytes(b"png")

        operation = asyncio.run(mover.move(str(source), str(tmp_path / "Pictures")))
        undone = asyncio.run(mover.undo(operation))

        assert undone
        assert source.read_bytes() == b"png"
        assert not (tmp_path / "Pictures" / "photo.png").exists()
        assert not operation.can_undo

    def test_second_undo_refused(self, tmp_path, mover):
        source = tmp_path / "a.txt"
        source.write_text("x")
        operation = asyncio.run(mover.move(str(source), str(tmp_path / "dest")))

        assert asyncio.run(mover.undo(operation))
        assert not asyncio.run(mover.undo(operation))

    def test_item_gone_from_destination(self, tmp_path, mover):
        source = tmp_path / "a.txt"
        source.write_text("x")
        operation = asyncio.run(mover.move(str(source), str(tmp_path / "dest")))
        (tmp_path / "dest" / "a.txt").unlink()

        assert not asyncio.run(mover.undo(operation))

    def test_original_path_occupied(self, tmp_path, mover):
        """Test that undo renames instead of overwriting a new file at the origin."""
        source = tmp_path / "a.txt"
        source.write_text("moved")
        operation = asyncio.run(mover.move(str(source), str(tmp_path / "dest")))
        source.write_text("newcomer")

        assert asyncio.run(mover.undo(operation))
        assert source.read_text() == "newcomer"
        assert (tmp_path / "a (1).txt").read_text() == "moved"


class TestDeleteSource:
    """Test suite for FileMover.delete_source."""

    def test_delete(self, tmp_path, mover):
        source = tmp_path / "a.txt"
        source.write_text("x")

        asyncio.run(mover.delete_source(str(source)))

        assert not source.exists()

    def test_delete_missing(self, tmp_path, mover):
        with pytest.raises(NotFoundError):
            asyncio.run(mover.delete_source(str(tmp_path / "missing.txt")))
