"""Test configuration for the adventure book project."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest

MINIMAL_DOCUMENT = """\
metadata:
  title: "The Cave"
  author: "A. Writer"
  version: "1.0"
intro:
  text: "You wake up in a dark cave."
  action: "Look around"
passages:
  1:
    text: "A tunnel leads north."
    choices:
      - text: "Go north"
        goto: 2
  2:
    text: "Daylight! You escaped."
    ending: true
    type: victory
"""

SWORD_DOCUMENT = """\
metadata:
  title: "Sword in the Stone"
  author: "A. Writer"
  version: "2.1"
intro:
  text: |
    The village needs a hero.

    Nobody else volunteered.
  action: "Set out"
items:
  - id: sword
    name: "Rusty Sword"
  - id: key
    name: "Iron Key"
passages:
  1:
    text: |
      A sword is stuck in a stone.
      It wobbles a little.
    notes: "First puzzle"
    choices:
      - text: "Pull the sword"
        goto: 2
      - text: "Walk away"
        goto: 3
  2:
    text: "You pull the sword free."
    effects:
      - type: add_item
        item: sword
    choices:
      - text: "Face the dragon"
        goto: 4
  3:
    text: "You go home. Nothing happens, ever."
    ending: true
    type: neutral
  4:
    text: "The dragon is slain."
    ending: true
    type: victory
"""


def write_document(directory: Path, text: str, name: str = "adventure.yaml") -> Path:
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture()
def minimal_document() -> str:
    return MINIMAL_DOCUMENT


@pytest.fixture()
def sword_document() -> str:
    return SWORD_DOCUMENT


@pytest.fixture()
def sword_path(tmp_path: Path) -> Path:
    return write_document(tmp_path, SWORD_DOCUMENT, "sword.yaml")


__all__ = ["MINIMAL_DOCUMENT", "SWORD_DOCUMENT", "write_document"]
