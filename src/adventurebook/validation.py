"""Field-level checks used while editing an adventure.

These run before a passage or introduction is written back into a document.
Each returns a human readable message, or ``None`` when the value is fine.
"""

from __future__ import annotations

from typing import Iterable

from .models import Effect, EffectType


def _is_blank(value: str | None) -> bool:
    return not value or not value.strip()


def validate_title(title: str | None) -> str | None:
    if _is_blank(title):
        return "Title must not be blank"
    return None


def validate_introduction_text(text: str | None) -> str | None:
    if _is_blank(text):
        return "Introduction content must not be blank"
    return None


def validate_passage_text(text: str | None) -> str | None:
    if _is_blank(text):
        return "Passage content must not be blank"
    return None


def validate_choice_text(text: str | None) -> str | None:
    if _is_blank(text):
        return "Choice content must not be blank"
    return None


def validate_choice_target(target: int | None) -> str | None:
    """Require a selected passage number of at least one."""

    if target is None or target < 1:
        return "Go to passage must be selected"
    return None


def validate_effects(effects: Iterable[Effect]) -> str | None:
    """Reject effect lists that add or remove the same item more than once.

    Adding and removing the same item within a single passage is rejected as
    well.
    """

    added: set[str] = set()
    removed: set[str] = set()

    for effect in effects:
        item_id = effect.item
        if effect.type is EffectType.ADD_ITEM:
            if item_id in added:
                return f'Cannot add the same inventory item "{item_id}" multiple times'
            if item_id in removed:
                return (
                    f'Cannot add and remove the same inventory item "{item_id}" '
                    "in the same passage"
                )
            added.add(item_id)
        elif effect.type is EffectType.REMOVE_ITEM:
            if item_id in removed:
                return f'Cannot remove the same inventory item "{item_id}" multiple times'
            if item_id in added:
                return (
                    f'Cannot add and remove the same inventory item "{item_id}" '
                    "in the same passage"
                )
            removed.add(item_id)

    return None


def validate_ending_type(has_choices: bool, ending_type: str | None) -> str | None:
    if not has_choices and not ending_type:
        return "If there are no choices, ending type must be selected"
    return None


__all__ = [
    "validate_choice_target",
    "validate_choice_text",
    "validate_effects",
    "validate_ending_type",
    "validate_introduction_text",
    "validate_passage_text",
    "validate_title",
]
