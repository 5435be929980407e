"""Utilities for tracking a reader's progress through an adventure."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

from .models import Effect, EffectType


@dataclass
class PlayState:
    """Represents the reader's current position within an adventure.

    The play state keeps track of three pieces of information:

    * ``passage_id`` – the passage being read, or ``None`` while the
      introduction is displayed.
    * ``inventory`` – item ids currently held, in the order they were gained.
    * ``history`` – a chronological log of noteworthy events.
    """

    passage_id: int | None = None
    inventory: List[str] = field(default_factory=list)
    history: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.passage_id is not None:
            self.passage_id = self._validate_passage_id(self.passage_id)
        self.inventory = list(dict.fromkeys(self.inventory))

    @property
    def at_introduction(self) -> bool:
        return self.passage_id is None

    def move_to(self, passage_id: int, *, record_event: bool = True) -> None:
        """Update the passage being read.

        Raises:
            ValueError: If ``passage_id`` is not a positive integer.
        """

        validated = self._validate_passage_id(passage_id)
        if validated == self.passage_id:
            return

        self.passage_id = validated
        if record_event:
            self.record_event(f"Turned to passage {validated}")

    def add_item(self, item: str, *, record_event: bool = True) -> bool:
        """Add ``item`` to the inventory.

        Returns:
            ``True`` if the item was added, ``False`` if it was already held.
        """

        validated = self._validate_label(item, "item")
        if validated in self.inventory:
            return False

        self.inventory.append(validated)
        if record_event:
            self.record_event(f"Picked up {validated}")
        return True

    def remove_item(self, item: str, *, record_event: bool = True) -> bool:
        """Remove ``item`` from the inventory if it is held.

        Returns:
            ``True`` if the item was removed, ``False`` if it was not present.
        """

        validated = self._validate_label(item, "item")
        if validated not in self.inventory:
            return False

        self.inventory.remove(validated)
        if record_event:
            self.record_event(f"Dropped {validated}")
        return True

    def apply_effects(self, effects: Iterable[Effect]) -> None:
        """Apply passage effects in order."""

        for effect in effects:
            if effect.type is EffectType.ADD_ITEM:
                self.add_item(effect.item)
            elif effect.type is EffectType.REMOVE_ITEM:
                self.remove_item(effect.item)

    def restart(self) -> None:
        """Return to the introduction with an empty inventory."""

        self.passage_id = None
        self.inventory.clear()
        self.record_event("Restarted the adventure")

    def has_item(self, item: str) -> bool:
        return item in self.inventory

    def record_event(self, description: str) -> None:
        """Add an event description to the history log."""

        validated = self._validate_label(description, "event description")
        self.history.append(validated)

    @staticmethod
    def _validate_passage_id(value: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"passage id must be an integer, got {type(value)!r}")
        if value < 1:
            raise ValueError("passage id must be a positive integer")
        return value

    @staticmethod
    def _validate_label(value: str, field_name: str) -> str:
        """Strip and validate string values used for inventory and history."""

        if not isinstance(value, str):
            raise TypeError(f"{field_name} must be a string, got {type(value)!r}")

        stripped = value.strip()
        if not stripped:
            raise ValueError(f"{field_name} must be a non-empty string")
        return stripped


__all__ = ["PlayState"]
