"""Tests for adventure analytics helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from adventurebook import parse_adventure
from adventurebook.analytics import (
    analyse_item_flow,
    compute_passage_reachability,
    compute_passage_reachability_from_file,
    format_reachability_report,
    summarise_endings,
)
from conftest import SWORD_DOCUMENT

ORPHAN_DOCUMENT = """\
metadata: {title: "Orphans", author: "A", version: "1"}
intro: {text: "Hi.", action: "Go"}
items:
  - {id: lamp, name: Lamp}
  - {id: key, name: Key}
passages:
  1:
    text: "Start."
    choices:
      - {text: "Loop", goto: 1}
      - {text: "End", goto: 2}
  2:
    text: "The end."
    ending: true
    type: defeat
  3:
    text: "Nobody comes here."
    effects:
      - {type: remove_item, item: key}
    choices:
      - {text: "Back", goto: 1}
"""


def test_every_passage_reachable_in_sword_adventure() -> None:
    report = compute_passage_reachability(parse_adventure(SWORD_DOCUMENT))

    assert report.start_passage == 1
    assert report.reachable_passages == (1, 2, 3, 4)
    assert report.fully_reachable is True
    assert report.reachable_endings == (3, 4)
    assert report.total_passage_count == 4


def test_unreachable_passages_are_reported() -> None:
    report = compute_passage_reachability(parse_adventure(ORPHAN_DOCUMENT))

    assert report.reachable_passages == (1, 2)
    assert report.unreachable_passages == (3,)
    assert report.has_reachable_ending is True
    assert report.fully_reachable is False


def test_reachability_from_another_start() -> None:
    report = compute_passage_reachability(parse_adventure(ORPHAN_DOCUMENT), start=3)

    assert report.reachable_passages == (1, 2, 3)


def test_unknown_start_passage_is_rejected() -> None:
    with pytest.raises(ValueError):
        compute_passage_reachability(parse_adventure(ORPHAN_DOCUMENT), start=42)


def test_item_flow_tracks_sources_and_removals() -> None:
    report = analyse_item_flow(parse_adventure(ORPHAN_DOCUMENT))

    assert [detail.item for detail in report.items] == ["lamp", "key"]
    assert report.never_awarded_items == ("lamp", "key")
    assert report.items_removed_without_source == ("key",)

    key = report.items[1]
    assert key.name == "Key"
    assert [location.passage for location in key.removals] == [3]


def test_item_flow_for_awarded_item() -> None:
    report = analyse_item_flow(parse_adventure(SWORD_DOCUMENT))

    sword = report.items[0]
    assert sword.item == "sword"
    assert [location.passage for location in sword.sources] == [2]
    assert report.never_awarded_items == ("key",)


def test_summarise_endings_counts_types() -> None:
    summary = summarise_endings(parse_adventure(SWORD_DOCUMENT))

    assert summary.total == 2
    assert dict(summary.by_type) == {
        "victory": 1,
        "defeat": 0,
        "neutral": 1,
        "untyped": 0,
    }


def test_reachability_report_from_file(tmp_path: Path) -> None:
    path = tmp_path / "orphans.yaml"
    path.write_text(ORPHAN_DOCUMENT, encoding="utf-8")

    report = compute_passage_reachability_from_file(path)
    rendered = format_reachability_report(report)

    assert "Reachable passages: 2/3" in rendered
    assert "Unreachable passages: 3" in rendered
    assert "Reachable endings: 2" in rendered
