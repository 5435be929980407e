"""Canonical, immutable in-memory representation of an adventure."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union

from .errors import PassageNotFoundError


class EndingType(str, Enum):
    """Outcome label attached to an ending passage."""

    VICTORY = "victory"
    DEFEAT = "defeat"
    NEUTRAL = "neutral"


class EffectType(str, Enum):
    """Inventory mutation applied when the reader enters a passage."""

    ADD_ITEM = "add_item"
    REMOVE_ITEM = "remove_item"


@dataclass(frozen=True)
class Metadata:
    title: str
    author: str
    version: str


@dataclass(frozen=True)
class Intro:
    """Introduction shown before the first passage."""

    paragraphs: tuple[str, ...]
    action: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "paragraphs", tuple(self.paragraphs))


@dataclass(frozen=True)
class Choice:
    """Labelled edge from a choice passage to another passage."""

    text: str
    goto: int


@dataclass(frozen=True)
class Effect:
    type: EffectType
    item: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", EffectType(self.type))


@dataclass(frozen=True)
class InventoryItem:
    id: str
    name: str


@dataclass(frozen=True)
class EndingPassage:
    """Terminal passage. It cannot carry choices or effects."""

    paragraphs: tuple[str, ...]
    notes: str | None = None
    ending_type: EndingType | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "paragraphs", tuple(self.paragraphs))
        if self.ending_type is not None:
            object.__setattr__(self, "ending_type", EndingType(self.ending_type))

    @property
    def ending(self) -> bool:
        return True


@dataclass(frozen=True)
class ChoicePassage:
    """Passage offering at least one choice and optional inventory effects."""

    paragraphs: tuple[str, ...]
    choices: tuple[Choice, ...]
    notes: str | None = None
    effects: tuple[Effect, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "paragraphs", tuple(self.paragraphs))
        object.__setattr__(self, "choices", tuple(self.choices))
        object.__setattr__(self, "effects", tuple(self.effects))
        if not self.choices:
            raise ValueError("A choice passage must offer at least one choice.")

    @property
    def ending(self) -> bool:
        return False


Passage = Union[EndingPassage, ChoicePassage]


@dataclass(frozen=True)
class Adventure:
    """Root of the story graph.

    ``passages`` is exposed as a read-only mapping which keeps the insertion
    order of the source document so serialisation stays diff friendly.
    """

    metadata: Metadata
    intro: Intro
    passages: Mapping[int, Passage]
    items: tuple[InventoryItem, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "passages", MappingProxyType(dict(self.passages)))
        object.__setattr__(self, "items", tuple(self.items))

        seen: set[str] = set()
        for item in self.items:
            if item.id in seen:
                raise ValueError(f"Duplicate inventory item id: {item.id}")
            seen.add(item.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Adventure):
            return NotImplemented
        return (
            self.metadata == other.metadata
            and self.intro == other.intro
            and dict(self.passages) == dict(other.passages)
            and self.items == other.items
        )

    def passage(self, passage_id: int) -> Passage:
        """Return the passage registered under ``passage_id``."""

        try:
            return self.passages[passage_id]
        except KeyError as exc:
            raise PassageNotFoundError(passage_id) from exc

    def item(self, item_id: str) -> InventoryItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def ending_passages(self) -> list[int]:
        """Return the ids of every ending passage in document order."""

        return [
            passage_id
            for passage_id, passage in self.passages.items()
            if isinstance(passage, EndingPassage)
        ]


__all__ = [
    "Adventure",
    "Choice",
    "ChoicePassage",
    "Effect",
    "EffectType",
    "EndingPassage",
    "EndingType",
    "InventoryItem",
    "Intro",
    "Metadata",
    "Passage",
]
