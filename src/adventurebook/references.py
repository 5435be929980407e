"""Referential integrity checks over a canonical adventure."""

from __future__ import annotations

from .errors import ReferentialError
from .models import Adventure, ChoicePassage


def validate_references(adventure: Adventure) -> None:
    """Ensure every choice ``goto`` resolves to an existing passage.

    Raises:
        ReferentialError: On the first choice pointing at a missing passage.
    """

    passage_ids = set(adventure.passages)

    for passage_id, passage in adventure.passages.items():
        if not isinstance(passage, ChoicePassage):
            continue
        for choice in passage.choices:
            if choice.goto not in passage_ids:
                raise ReferentialError(
                    f"Passage {passage_id} has invalid goto: {choice.goto}",
                    passage_id=passage_id,
                    target=choice.goto,
                )


def validate_effect_items(adventure: Adventure) -> None:
    """Ensure every effect references a declared inventory item.

    Parsed documents are already checked during structural validation; this
    helper covers models assembled in memory by editing tools.
    """

    item_ids = {item.id for item in adventure.items}

    for passage_id, passage in adventure.passages.items():
        if not isinstance(passage, ChoicePassage):
            continue
        for index, effect in enumerate(passage.effects):
            if effect.item not in item_ids:
                raise ReferentialError(
                    f"Passage {passage_id} effect {index} references unknown item: "
                    f"{effect.item}",
                    passage_id=passage_id,
                    item=effect.item,
                )


__all__ = ["validate_effect_items", "validate_references"]
