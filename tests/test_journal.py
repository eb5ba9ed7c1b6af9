"""
Unit Tests for Operation Journal

Tests recording, persistence, capacity eviction and undo of history
entries.

Author: AutoDrop Project
License: MIT
"""

import asyncio
import json
import pytest
from unittest.mock import AsyncMock, Mock

from autodrop.core.cancellation import CancellationToken
from autodrop.core.errors import FileOperationError, OperationCancelledError, ValidationError
from autodrop.core.journal import OperationJournal
from autodrop.core.models import OperationHistoryData, OperationStatus, OperationType
from autodrop.core.storage import JsonStore
from autodrop.engine.file_mover import FileMover


@pytest.fixture
def store(tmp_path):
    return JsonStore(str(tmp_path / "data"))


@pytest.fixture
def journal(store):
    return OperationJournal(store, FileMover())


def moved_file(tmp_path, name: str, content: str = "x"):
    """Create a file as if it had been moved from inbox/ to sorted/."""
    dest = tmp_path / "sorted" / name
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(content)
    return str(tmp_path / "inbox" / name), str(dest)


class TestRecording:
    """Test suite for adding entries."""

    def test_record_persists_newest_first(self, tmp_path, store, journal):
        first = asyncio.run(journal.record(*moved_file(tmp_path, "a.txt")))
        second = asyncio.run(journal.record(*moved_file(tmp_path, "b.txt", "xyz")))

        reloaded = OperationJournal(store, FileMover())
        items = asyncio.run(reloaded.get_all())

        assert [item.id for item in items] == [second.id, first.id]
        assert items[0].item_name == "b.txt"
        assert items[0].size_bytes == 3
        assert items[0].status == OperationStatus.SUCCESS
        assert items[0].operation_type == OperationType.MOVE

    def test_document_format(self, tmp_path, store, journal):
        asyncio.run(journal.record(*moved_file(tmp_path, "a.txt"), ai_confidence=0.75))

        document = json.loads(store.path_for("history.json").read_text())

        assert document["version"] == 1
        assert document["max_items"] == 100
        assert document["items"][0]["status"] == "Success"
        assert document["items"][0]["operation_type"] == "Move"
        assert document["items"][0]["ai_confidence"] == 0.75

    def test_record_reuses_operation_id(self, tmp_path, journal):
        item = asyncio.run(journal.record(*moved_file(tmp_path, "a.txt"), operation_id="op-1"))

        assert item.id == "op-1"
        assert asyncio.run(journal.get("op-1")) is not None

    @pytest.mark.parametrize("source,dest", [("", "/x"), ("/x", " ")])
    def test_blank_paths_rejected(self, journal, source, dest):
        with pytest.raises(ValidationError):
            asyncio.run(journal.record(source, dest))

    def test_capacity_evicts_oldest(self, tmp_path, store):
        journal = OperationJournal(store, FileMover(), max_items=3)

        ids = [asyncio.run(journal.record(*moved_file(tmp_path, f"{i}.txt"))).id for i in range(5)]

        items = asyncio.run(journal.get_all())
        assert [item.id for item in items] == list(reversed(ids[2:]))
        assert journal.total_count == 3

    def test_recent_limit(self, tmp_path, journal):
        for i in range(4):
            asyncio.run(journal.record(*moved_file(tmp_path, f"{i}.txt")))

        recent = asyncio.run(journal.get_recent(2))

        assert [item.item_name for item in recent] == ["3.txt", "2.txt"]

    def test_listeners_notified(self, tmp_path, journal):
        listener = Mock()
        journal.on_changed.append(listener)

        asyncio.run(journal.record(*moved_file(tmp_path, "a.txt")))
        asyncio.run(journal.clear())

        assert listener.call_count == 2

    def test_invalid_cap_rejected(self, store):
        with pytest.raises(ValidationError):
            OperationJournal(store, FileMover(), max_items=0)


class TestLoading:
    """Test suite for loading the history document."""

    def test_corrupt_document_starts_empty(self, store, journal):
        path = store.path_for("history.json")
        path.parent.mkdir(parents=True)
        path.write_text("{not json")

        asyncio.run(journal.initialize())

        assert journal.total_count == 0

    def test_configured_cap_truncates_loaded_history(self, tmp_path, store, journal):
        for i in range(5):
            asyncio.run(journal.record(*moved_file(tmp_path, f"{i}.txt")))

        smaller = OperationJournal(store, FileMover(), max_items=2)
        asyncio.run(smaller.initialize())

        assert smaller.total_count == 2
        assert asyncio.run(smaller.get_all())[0].item_name == "4.txt"

    def test_refresh_reads_disk(self, tmp_path, store, journal):
        asyncio.run(journal.initialize())
        other = OperationJournal(store, FileMover())
        asyncio.run(other.record(*moved_file(tmp_path, "a.txt")))

        assert journal.total_count == 0
        asyncio.run(journal.refresh())
        assert journal.total_count == 1


class TestStatusAndUndo:
    """Test suite for mark_failed and undo."""

    def test_mark_failed(self, tmp_path, journal):
        item = asyncio.run(journal.record(*moved_file(tmp_path, "a.txt")))

        asyncio.run(journal.mark_failed(item.id, "disk full"))
        asyncio.run(journal.mark_failed("unknown", "ignored"))

        stored = asyncio.run(journal.get(item.id))
        assert stored.status == OperationStatus.FAILED
        assert stored.error_message == "disk full"
        assert not stored.can_undo

    def test_undo_moves_back(self, tmp_path, journal):
        source, dest = moved_file(tmp_path, "a.txt", "payload")
        item = asyncio.run(journal.record(source, dest))

        assert journal.undoable_count == 1
        assert asyncio.run(journal.undo(item.id))

        stored = asyncio.run(journal.get(item.id))
        assert stored.status == OperationStatus.UNDONE
        assert stored.undone_at is not None
        assert (tmp_path / "inbox" / "a.txt").read_text() == "payload"
        assert journal.undoable_count == 0

    def test_undo_refused(self, tmp_path, journal):
        source, dest = moved_file(tmp_path, "a.txt")
        item = asyncio.run(journal.record(source, dest))

        assert not asyncio.run(journal.undo("unknown"))

        (tmp_path / "sorted" / "a.txt").unlink()
        assert not asyncio.run(journal.undo(item.id))
        assert asyncio.run(journal.get(item.id)).status == OperationStatus.SUCCESS

    def test_undo_error_recorded_and_raised(self, tmp_path, store):
        mover = Mock()
        mover.undo = AsyncMock(side_effect=FileOperationError("locked"))
        journal = OperationJournal(store, mover)
        item = asyncio.run(journal.record(*moved_file(tmp_path, "a.txt")))

        with pytest.raises(FileOperationError):
            asyncio.run(journal.undo(item.id))

        stored = asyncio.run(journal.get(item.id))
        assert stored.status == OperationStatus.SUCCESS
        assert stored.error_message == "locked"

    def test_undo_multiple_counts(self, tmp_path, journal):
        first = asyncio.run(journal.record(*moved_file(tmp_path, "a.txt")))
        second = asyncio.run(journal.record(*moved_file(tmp_path, "b.txt")))

        succeeded, failed = asyncio.run(journal.undo_multiple([second.id, "missing", first.id]))

        assert (succeeded, failed) == (2, 1)
        assert journal.undoable_count == 0

    def test_undo_multiple_cancelled(self, tmp_path, journal):
        item = asyncio.run(journal.record(*moved_file(tmp_path, "a.txt")))
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            asyncio.run(journal.undo_multiple([item.id], token))

    def test_clear(self, tmp_path, store, journal):
        asyncio.run(journal.record(*moved_file(tmp_path, "a.txt")))

        asyncio.run(journal.clear())

        data = store.read("history.json", OperationHistoryData)
        assert data.items == []
        assert journal.total_count == 0
