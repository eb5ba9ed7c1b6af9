"""
Unit Tests for Batch Planning

Tests grouping by category and extension, group ordering and destination
suggestions.

Author: AutoDrop Project
License: MIT
"""

import asyncio
import pytest
from unittest.mock import AsyncMock

from autodrop.core import categories
from autodrop.core.cancellation import CancellationToken
from autodrop.core.errors import OperationCancelledError
from autodrop.core.models import DestinationSuggestion, DroppedItem
from autodrop.core.storage import JsonStore
from autodrop.engine.batch_planner import BatchPlanner
from autodrop.engine.rules import RuleStore
from autodrop.engine.suggestions import DestinationSuggester


def file_item(name: str, size: int = 1) -> DroppedItem:
    extension = name.rsplit(".", 1)[-1] if "." in name else ""
    return DroppedItem(
        full_path=f"/inbox/{name}",
        category=categories.get_category(extension),
        size=size
    )


@pytest.fixture
def suggester():
    mock = AsyncMock()
    mock.suggest.side_effect = lambda item: DestinationSuggestion(
        full_path=f"/sorted/{item.category}",
        display_name=item.category
    )
    return mock


class TestBatchPlanner:
    """Test suite for BatchPlanner."""

    def test_empty_input(self, suggester):
        groups = asyncio.run(BatchPlanner(suggester).group_items_by_destination([]))

        assert groups == []
        suggester.suggest.assert_not_called()

    def test_groups_ordered_by_size_then_extension(self, suggester):
        items = [
            file_item("a.png"), file_item("b.png"), file_item("c.png"),
            file_item("report.pdf"),
            file_item("notes.txt"), file_item("todo.txt"),
        ]

        groups = asyncio.run(BatchPlanner(suggester).group_items_by_destination(items))

        assert [(g.extension, g.file_count) for g in groups] == [(".png", 3), (".txt", 2), (".pdf", 1)]
        assert groups[0].category == categories.IMAGE
        assert groups[0].destination_path == "/sorted/Image"
        assert groups[0].display_text == "3 PNGs"
        assert all(g.is_selected for g in groups)
        assert suggester.suggest.await_count == 3

    def test_equal_sizes_sorted_by_extension(self, suggester):
        items = [file_item("b.zip"), file_item("a.mp3"), file_item("c.doc")]

        groups = asyncio.run(BatchPlanner(suggester).group_items_by_destination(items))

        assert [g.extension for g in groups] == [".doc", ".mp3", ".zip"]

    def test_extension_case_folded(self, suggester):
        items = [file_item("A.JPG"), file_item("b.jpg")]

        groups = asyncio.run(BatchPlanner(suggester).group_items_by_destination(items))

        assert len(groups) == 1
        assert groups[0].extension == ".jpg"
        assert groups[0].total_size == 2

    def test_folders_grouped_together(self, suggester):
        items = [
            DroppedItem(full_path="/inbox/one", category=categories.FOLDER, is_directory=True),
            DroppedItem(full_path="/inbox/two", category=categories.FOLDER, is_directory=True),
        ]

        groups = asyncio.run(BatchPlanner(suggester).group_items_by_destination(items))

        assert len(groups) == 1
        assert groups[0].extension == "folder"
        assert groups[0].display_text == "2 folders"

    def test_suggester_errors_propagate(self, suggester):
        suggester.suggest.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            asyncio.run(BatchPlanner(suggester).group_items_by_destination([file_item("a.png")]))

    def test_cancelled(self, suggester):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            asyncio.run(BatchPlanner(suggester).group_items_by_destination([file_item("a.png")], token))


class TestDestinationSuggester:
    """Test suite for DestinationSuggester."""

    def test_fallback(self, tmp_path):
        suggester = DestinationSuggester(fallback_folder=str(tmp_path / "Downloads"))

        suggestion = asyncio.run(suggester.suggest(file_item("a.xyz")))

        assert suggestion.full_path == str(tmp_path / "Downloads")
        assert suggestion.display_name == "Downloads"
        assert suggestion.confidence == 50
        assert not suggestion.is_from_rule

    def test_category_folder(self, tmp_path):
        suggester = DestinationSuggester(
            fallback_folder=str(tmp_path / "Downloads"),
            category_folders={categories.IMAGE: str(tmp_path / "Pictures")}
        )

        suggestion = asyncio.run(suggester.suggest(file_item("a.png")))

        assert suggestion.full_path == str(tmp_path / "Pictures")
        assert suggestion.confidence == 80

    def test_rule_wins_when_folder_exists(self, tmp_path):
        rules = RuleStore(JsonStore(str(tmp_path / "data")))
        target = tmp_path / "Invoices"
        target.mkdir()
        asyncio.run(rules.save_rule("PDF", str(target)))
        suggester = DestinationSuggester(
            fallback_folder=str(tmp_path / "Downloads"),
            category_folders={categories.DOCUMENT: str(tmp_path / "Documents")},
            rule_store=rules
        )

        suggestion = asyncio.run(suggester.suggest(file_item("bill.pdf")))

        assert suggestion.full_path == str(target)
        assert suggestion.is_from_rule
        assert suggestion.confidence == 100

    def test_rule_ignored_when_folder_missing(self, tmp_path):
        rules = RuleStore(JsonStore(str(tmp_path / "data")))
        asyncio.run(rules.save_rule(".pdf", str(tmp_path / "gone")))
        suggester = DestinationSuggester(fallback_folder=str(tmp_path / "Downloads"), rule_store=rules)

        suggestion = asyncio.run(suggester.suggest(file_item("bill.pdf")))

        assert suggestion.full_path == str(tmp_path / "Downloads")


class TestRuleStore:
    """Test suite for RuleStore persistence."""

    def test_save_update_remove(self, tmp_path):
        store = JsonStore(str(tmp_path))
        rules = RuleStore(store)

        asyncio.run(rules.save_rule("png", "/a"))
        asyncio.run(rules.save_rule(".PNG", "/b", auto_move=True))

        reloaded = RuleStore(store)
        all_rules = asyncio.run(reloaded.get_all_rules())
        assert len(all_rules) == 1
        assert all_rules[0].extension == ".png"
        assert all_rules[0].destination == "/b"
        assert all_rules[0].auto_move

        asyncio.run(reloaded.update_rule_usage("png"))
        assert asyncio.run(reloaded.get_rule_for_extension(".png")).use_count == 1

        assert asyncio.run(reloaded.remove_rule("png"))
        assert not asyncio.run(reloaded.remove_rule("png"))
        assert asyncio.run(reloaded.get_rule_for_extension("png")) is None
