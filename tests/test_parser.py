"""Tests for parsing YAML adventure documents end to end."""

from __future__ import annotations

from pathlib import Path

import pytest

from adventurebook import (
    ChoicePassage,
    EffectType,
    EndingPassage,
    EndingType,
    ReferentialError,
    StructuralError,
    parse_adventure,
    parse_adventure_file,
)
from adventurebook.migration import LEGACY_INTRO_ACTION
from conftest import MINIMAL_DOCUMENT


def test_parse_minimal_document(minimal_document: str) -> None:
    adventure = parse_adventure(minimal_document)

    assert adventure.metadata.title == "The Cave"
    assert adventure.intro.paragraphs == ("You wake up in a dark cave.",)
    assert adventure.intro.action == "Look around"
    assert adventure.items == ()
    assert list(adventure.passages) == [1, 2]

    start = adventure.passage(1)
    assert isinstance(start, ChoicePassage)
    assert start.choices[0].goto == 2
    assert start.effects == ()

    ending = adventure.passage(2)
    assert isinstance(ending, EndingPassage)
    assert ending.ending_type is EndingType.VICTORY


def test_parse_normalises_paragraphs_and_items(sword_document: str) -> None:
    adventure = parse_adventure(sword_document)

    assert adventure.intro.paragraphs == (
        "The village needs a hero.",
        "Nobody else volunteered.",
    )
    assert adventure.passage(1).paragraphs == (
        "A sword is stuck in a stone. It wobbles a little.",
    )
    assert adventure.passage(1).notes == "First puzzle"
    assert [item.id for item in adventure.items] == ["sword", "key"]

    pull = adventure.passage(2)
    assert isinstance(pull, ChoicePassage)
    assert pull.effects[0].type is EffectType.ADD_ITEM
    assert pull.effects[0].item == "sword"


def test_unresolved_goto_is_a_referential_error() -> None:
    document = MINIMAL_DOCUMENT.replace("goto: 2", "goto: 99")

    with pytest.raises(ReferentialError) as excinfo:
        parse_adventure(document)

    error = excinfo.value
    assert error.passage_id == 1
    assert error.target == 99
    assert error.kind == "referential"
    assert str(error) == "Invalid document: Passage 1 has invalid goto: 99"


def test_referential_error_is_distinct_from_structural_error() -> None:
    document = MINIMAL_DOCUMENT.replace("goto: 2", "goto: 99")

    with pytest.raises(ReferentialError) as excinfo:
        parse_adventure(document)

    assert not isinstance(excinfo.value, StructuralError)
    assert isinstance(excinfo.value, ValueError)


def test_yaml_syntax_errors_are_structural() -> None:
    with pytest.raises(StructuralError) as excinfo:
        parse_adventure("metadata: [unclosed")

    assert "YAML syntax error" in str(excinfo.value)


def test_duplicate_yaml_keys_are_rejected() -> None:
    document = MINIMAL_DOCUMENT.replace(
        '  title: "The Cave"', '  title: "The Cave"\n  title: "Again"'
    )

    with pytest.raises(StructuralError) as excinfo:
        parse_adventure(document)

    assert "duplicate key" in str(excinfo.value)


def test_empty_document_is_structural() -> None:
    with pytest.raises(StructuralError) as excinfo:
        parse_adventure("")

    assert str(excinfo.value) == "Invalid document: Root must be an object"


def test_parse_adventure_file_reads_utf8(tmp_path: Path) -> None:
    path = tmp_path / "cave.yaml"
    path.write_text(MINIMAL_DOCUMENT.replace("The Cave", "La Cueva ñ"), encoding="utf-8")

    adventure = parse_adventure_file(path)

    assert adventure.metadata.title == "La Cueva ñ"


def test_legacy_schema_version_one_documents_are_upgraded() -> None:
    legacy = """\
schema_version: 1
metadata:
  title: "Old Story"
  author: "Someone"
  version: "0.1"
intro:
  text: "Long ago."
passages:
  1:
    text: "Pick a door."
    ending: false
    choices:
      - text: "Red door"
        goto: 2
        requirements: ["red key"]
  2:
    text: "Behind the door was nothing."
    ending: true
"""

    adventure = parse_adventure(legacy)

    assert adventure.intro.action == LEGACY_INTRO_ACTION
    assert isinstance(adventure.passage(1), ChoicePassage)
    assert adventure.passage(2).ending is True


def test_current_schema_version_is_accepted() -> None:
    adventure = parse_adventure("schema_version: 2\n" + MINIMAL_DOCUMENT)

    assert adventure.metadata.title == "The Cave"


@pytest.mark.parametrize(
    ("version", "message"),
    [
        ("3", "newer than this engine supports"),
        ("0", "Unsupported schema_version"),
        ('"two"', "schema_version must be an integer"),
    ],
)
def test_unsupported_schema_versions_are_structural(version: str, message: str) -> None:
    with pytest.raises(StructuralError) as excinfo:
        parse_adventure(f"schema_version: {version}\n" + MINIMAL_DOCUMENT)

    assert message in str(excinfo.value)
