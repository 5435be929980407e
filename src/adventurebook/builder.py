"""Assemble the canonical :class:`~adventurebook.models.Adventure` model."""

from __future__ import annotations

from .models import (
    Adventure,
    Choice,
    ChoicePassage,
    Effect,
    EffectType,
    EndingPassage,
    EndingType,
    Intro,
    InventoryItem,
    Metadata,
    Passage,
)
from .schema import RawAdventure, RawPassage
from .text import text_to_paragraphs


def build_passage(raw: RawPassage) -> Passage:
    """Map a schema-valid raw passage onto the ending or choice variant."""

    paragraphs = tuple(text_to_paragraphs(raw.get("text")))
    notes = raw.get("notes")

    if raw.get("ending") is True:
        ending_type = raw.get("type")
        return EndingPassage(
            paragraphs=paragraphs,
            notes=notes,
            ending_type=EndingType(ending_type) if ending_type else None,
        )

    return ChoicePassage(
        paragraphs=paragraphs,
        notes=notes,
        choices=tuple(
            Choice(text=choice["text"], goto=choice["goto"])
            for choice in raw.get("choices", ())
        ),
        effects=tuple(
            Effect(type=EffectType(effect["type"]), item=effect["item"])
            for effect in raw.get("effects", ())
        ),
    )


def build_adventure(raw: RawAdventure) -> Adventure:
    """Combine a schema-valid raw document with its normalised text.

    No validation happens here; :func:`adventurebook.schema.validate_document`
    has already guaranteed every shape.
    """

    metadata = raw["metadata"]
    intro = raw["intro"]

    return Adventure(
        metadata=Metadata(
            title=metadata["title"],
            author=metadata["author"],
            version=metadata["version"],
        ),
        intro=Intro(
            paragraphs=tuple(text_to_paragraphs(intro["text"])),
            action=intro["action"],
        ),
        passages={
            passage_id: build_passage(passage)
            for passage_id, passage in raw["passages"].items()
        },
        items=tuple(
            InventoryItem(id=item["id"], name=item["name"])
            for item in raw.get("items", ())
        ),
    )


__all__ = ["build_adventure", "build_passage"]
