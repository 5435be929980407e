"""Structural validation of parsed adventure documents.

The validator walks the weakly typed tree produced by the YAML loader and
returns a :class:`RawAdventure` whose shape is guaranteed, or raises
:class:`~adventurebook.errors.StructuralError` describing the first violation
it meets. Items are validated before passages because effects must reference
declared item ids.
"""

from __future__ import annotations

import logging
from typing import Any, List, Literal, Mapping, TypedDict

from .errors import StructuralError

logger = logging.getLogger(__name__)

ENDING_TYPES: tuple[str, ...] = ("victory", "defeat", "neutral")
EFFECT_TYPES: tuple[str, ...] = ("add_item", "remove_item")


class RawMetadata(TypedDict):
    title: str
    author: str
    version: str


class RawIntro(TypedDict):
    text: str
    action: str


class RawItem(TypedDict):
    id: str
    name: str


class RawChoice(TypedDict):
    text: str
    goto: int


class RawEffect(TypedDict):
    type: Literal["add_item", "remove_item"]
    item: str


class RawPassage(TypedDict, total=False):
    text: str
    notes: str
    ending: Literal[True]
    type: Literal["victory", "defeat", "neutral"]
    choices: List[RawChoice]
    effects: List[RawEffect]


class _RawAdventureRequired(TypedDict):
    metadata: RawMetadata
    intro: RawIntro
    passages: dict[int, RawPassage]


class RawAdventure(_RawAdventureRequired, total=False):
    items: List[RawItem]


def _fail(detail: str) -> StructuralError:
    return StructuralError(detail)


def _is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _as_positive_int(value: Any) -> int | None:
    """Return ``value`` as a positive integer or ``None`` when it is not one."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    return None


def _parse_passage_id(key: Any) -> int | None:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key if key > 0 else None
    if isinstance(key, str):
        try:
            parsed = int(key.strip())
        except ValueError:
            return None
        return parsed if parsed > 0 else None
    return None


def validate_document(document: Any) -> RawAdventure:
    """Validate ``document`` and return its strongly typed raw form."""

    if not _is_mapping(document):
        raise _fail("Root must be an object")

    metadata = _validate_metadata(document.get("metadata"))
    intro = _validate_intro(document.get("intro"))

    raw_passages = document.get("passages")
    if not _is_mapping(raw_passages):
        raise _fail("Missing or invalid passages object")

    items: list[RawItem] | None = None
    if "items" in document:
        items = _validate_items(document["items"])
    known_items = {item["id"] for item in items or ()}

    passages: dict[int, RawPassage] = {}
    for key, payload in raw_passages.items():
        passage_id = _parse_passage_id(key)
        if passage_id is None:
            raise _fail(f"Passage ID '{key}' must be a positive integer")
        if passage_id in passages:
            raise _fail(f"Passage ID '{key}' is defined more than once")
        passages[passage_id] = _validate_passage(passage_id, payload, known_items)

    raw: RawAdventure = {
        "metadata": metadata,
        "intro": intro,
        "passages": passages,
    }
    if items is not None:
        raw["items"] = items

    logger.debug(
        "Document passed structural validation (%d passages, %d items)",
        len(passages),
        len(known_items),
    )
    return raw


def _validate_metadata(value: Any) -> RawMetadata:
    if not _is_mapping(value):
        raise _fail("Missing or invalid metadata object")

    for field_name in ("title", "author", "version"):
        if not _is_non_empty_string(value.get(field_name)):
            raise _fail(f"metadata.{field_name} must be a non-empty string")

    return {
        "title": value["title"],
        "author": value["author"],
        "version": value["version"],
    }


def _validate_intro(value: Any) -> RawIntro:
    if not _is_mapping(value):
        raise _fail("Missing or invalid intro object")

    for field_name in ("text", "action"):
        if not _is_non_empty_string(value.get(field_name)):
            raise _fail(f"intro.{field_name} must be a non-empty string")

    return {"text": value["text"], "action": value["action"]}


def _validate_items(value: Any) -> list[RawItem]:
    if not isinstance(value, list):
        raise _fail("items must be an array")

    items: list[RawItem] = []
    for index, entry in enumerate(value):
        if not _is_mapping(entry):
            raise _fail(f"items[{index}] must be an object")
        if not _is_non_empty_string(entry.get("id")):
            raise _fail(f"items[{index}] id must be a non-empty string")
        if not _is_non_empty_string(entry.get("name")):
            raise _fail(f"items[{index}] name must be a non-empty string")
        items.append({"id": entry["id"], "name": entry["name"]})

    seen: set[str] = set()
    duplicates: list[str] = []
    for item in items:
        if item["id"] in seen:
            duplicates.append(item["id"])
        seen.add(item["id"])
    if duplicates:
        raise _fail(f"Duplicate item IDs: {', '.join(duplicates)}")

    return items


def _validate_passage(
    passage_id: int, value: Any, known_items: set[str]
) -> RawPassage:
    if not _is_mapping(value):
        raise _fail(f"Passage {passage_id} must be an object")

    if not _is_non_empty_string(value.get("text")):
        raise _fail(f"Passage {passage_id} text must be a non-empty string")

    passage: RawPassage = {"text": value["text"]}

    if "notes" in value:
        notes = value["notes"]
        if not isinstance(notes, str):
            raise _fail(f"Passage {passage_id} notes must be a string")
        if not notes.strip():
            raise _fail(
                f"Passage {passage_id} notes must not be empty or whitespace-only"
            )
        passage["notes"] = notes

    choices: list[RawChoice] = []
    raw_choices = value.get("choices")
    # Falsy scalars such as "" or false count as no choices.
    if isinstance(raw_choices, (list, dict)) or raw_choices:
        choices = _validate_choices(passage_id, raw_choices)

    is_ending = False
    if "ending" in value:
        if value["ending"] is not True:
            raise _fail(
                f"Passage {passage_id} ending must be true "
                "(or omitted for non-ending passages)"
            )
        is_ending = True

    if is_ending and choices:
        raise _fail(f"Ending passage {passage_id} must not have choices")
    if not is_ending and not choices:
        raise _fail(
            f"Non-ending passage {passage_id} must have at least one choice"
        )

    if "type" in value:
        ending_type = value["type"]
        if not isinstance(ending_type, str) or ending_type not in ENDING_TYPES:
            raise _fail(
                f"Passage {passage_id} type must be one of: {', '.join(ENDING_TYPES)}"
            )
        if not is_ending:
            raise _fail(
                f"Passage {passage_id} type can only be used with ending: true"
            )
        passage["type"] = ending_type  # type: ignore[typeddict-item]

    if "effects" in value:
        raw_effects = value["effects"]
        if not isinstance(raw_effects, list):
            raise _fail(f"Passage {passage_id} effects must be an array")
        if is_ending:
            raise _fail(f"Ending passage {passage_id} must not have effects")
        passage["effects"] = _validate_effects(passage_id, raw_effects, known_items)

    if is_ending:
        passage["ending"] = True
    else:
        passage["choices"] = choices

    return passage


def _validate_choices(passage_id: int, value: Any) -> list[RawChoice]:
    if not isinstance(value, list):
        raise _fail(f"Passage {passage_id} choices must be an array")

    choices: list[RawChoice] = []
    for index, entry in enumerate(value):
        if not _is_mapping(entry):
            raise _fail(f"Passage {passage_id} choice {index} must be an object")
        if not _is_non_empty_string(entry.get("text")):
            raise _fail(
                f"Passage {passage_id} choice {index} text must be a non-empty string"
            )
        goto = _as_positive_int(entry.get("goto"))
        if goto is None:
            raise _fail(
                f"Passage {passage_id} choice {index} goto must be a positive integer"
            )
        choices.append({"text": entry["text"], "goto": goto})
    return choices


def _validate_effects(
    passage_id: int, value: list[Any], known_items: set[str]
) -> list[RawEffect]:
    effects: list[RawEffect] = []
    for index, entry in enumerate(value):
        if not _is_mapping(entry):
            raise _fail(f"Passage {passage_id} effect {index} must be an object")

        effect_type = entry.get("type")
        if not isinstance(effect_type, str):
            raise _fail(f"Passage {passage_id} effect {index} type must be a string")
        if effect_type not in EFFECT_TYPES:
            raise _fail(
                f"Passage {passage_id} effect {index} type must be one of: "
                f"{', '.join(EFFECT_TYPES)}"
            )

        item = entry.get("item")
        if not _is_non_empty_string(item):
            raise _fail(
                f"Passage {passage_id} effect {index} item must be a non-empty string"
            )
        if item not in known_items:
            raise _fail(
                f"Passage {passage_id} effect {index} references unknown item: {item}"
            )

        effects.append({"type": effect_type, "item": item})  # type: ignore[typeddict-item]
    return effects


__all__ = [
    "EFFECT_TYPES",
    "ENDING_TYPES",
    "RawAdventure",
    "RawChoice",
    "RawEffect",
    "RawIntro",
    "RawItem",
    "RawMetadata",
    "RawPassage",
    "validate_document",
]
