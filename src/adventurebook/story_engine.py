"""Drive a play-test through a parsed adventure."""

from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass, field
from typing import Sequence, Tuple

from .errors import PassageNotFoundError
from .models import Adventure, ChoicePassage, EndingPassage, EndingType
from .play_state import PlayState

logger = logging.getLogger(__name__)

START_COMMAND = "start"
RESTART_COMMAND = "restart"


def _validate_text(value: str, *, field_name: str) -> str:
    """Validate and normalise free-form text fields used by story events."""

    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string, got {type(value)!r}")

    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field_name} must be a non-empty string")

    return stripped


@dataclass(frozen=True)
class StoryChoice:
    """Represents a single actionable option offered to the reader."""

    command: str
    description: str

    def __post_init__(self) -> None:
        command = _validate_text(self.command, field_name="command").lower()
        description = _validate_text(self.description, field_name="choice description")

        object.__setattr__(self, "command", command)
        object.__setattr__(self, "description", description)


@dataclass(frozen=True)
class StoryEvent:
    """What the reader sees after a step of the play-test."""

    paragraphs: Sequence[str]
    choices: Sequence[StoryChoice] = field(default_factory=tuple)
    title: str | None = None
    passage_id: int | None = None
    ending_type: EndingType | None = None
    is_ending: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "paragraphs", tuple(self.paragraphs))

        normalised_choices = tuple(self.choices)
        seen_commands: set[str] = set()
        for choice in normalised_choices:
            if choice.command in seen_commands:
                raise ValueError(f"duplicate choice command: {choice.command}")
            seen_commands.add(choice.command)
        object.__setattr__(self, "choices", normalised_choices)

    @property
    def narration(self) -> str:
        return "\n\n".join(self.paragraphs)

    @property
    def has_choices(self) -> bool:
        """Return ``True`` when the event offers at least one choice."""

        return bool(self.choices)

    def iter_choice_commands(self) -> Tuple[str, ...]:
        """Return the available commands as a tuple for quick lookups."""

        return tuple(choice.command for choice in self.choices)


class AdventureEngine:
    """Walks an :class:`Adventure` and applies passage effects on arrival."""

    def __init__(self, adventure: Adventure) -> None:
        self._adventure = adventure

    @property
    def adventure(self) -> Adventure:
        return self._adventure

    def replace_adventure(self, adventure: Adventure) -> None:
        """Swap in a freshly parsed adventure, e.g. after the file changed."""

        self._adventure = adventure

    @property
    def start_passage_id(self) -> int:
        """Passage 1 when present, otherwise the first passage in the document."""

        passages = self._adventure.passages
        if 1 in passages:
            return 1
        try:
            return next(iter(passages))
        except StopIteration:
            raise PassageNotFoundError(1) from None

    def describe(self, state: PlayState) -> StoryEvent:
        """Return the event for the reader's current position."""

        if state.passage_id is None:
            intro = self._adventure.intro
            return StoryEvent(
                paragraphs=intro.paragraphs,
                choices=(StoryChoice(START_COMMAND, intro.action),),
                title=self._adventure.metadata.title,
            )

        passage_id = state.passage_id
        passage = self._adventure.passage(passage_id)
        if isinstance(passage, EndingPassage):
            return StoryEvent(
                paragraphs=passage.paragraphs,
                choices=(StoryChoice(RESTART_COMMAND, "Start over"),),
                passage_id=passage_id,
                ending_type=passage.ending_type,
                is_ending=True,
            )

        return StoryEvent(
            paragraphs=passage.paragraphs,
            choices=tuple(
                StoryChoice(str(index), choice.text)
                for index, choice in enumerate(passage.choices, start=1)
            ),
            passage_id=passage_id,
        )

    def enter(self, state: PlayState, passage_id: int) -> StoryEvent:
        """Move to ``passage_id`` and apply its effects."""

        passage = self._adventure.passage(passage_id)
        state.move_to(passage_id)
        if isinstance(passage, ChoicePassage):
            state.apply_effects(passage.effects)
        logger.debug("Entered passage %d (inventory=%s)", passage_id, state.inventory)
        return self.describe(state)

    def choose(self, state: PlayState, command: str) -> StoryEvent:
        """Follow ``command`` from the reader's current position.

        Raises:
            ValueError: If ``command`` is not offered at this point.
        """

        lowered = command.strip().lower()
        if lowered == RESTART_COMMAND:
            state.restart()
            return self.describe(state)

        if state.passage_id is None:
            if lowered in {START_COMMAND, "1"}:
                if not self._adventure.passages:
                    raise ValueError("This adventure has no passages to play yet.")
                return self.enter(state, self.start_passage_id)
            raise ValueError(f"Unknown command '{command}' at the introduction.")

        passage = self._adventure.passage(state.passage_id)
        if not isinstance(passage, ChoicePassage):
            raise ValueError("The adventure has ended. Type 'restart' to play again.")

        try:
            index = int(lowered)
        except ValueError:
            index = 0
        if not 1 <= index <= len(passage.choices):
            raise ValueError(
                f"Unknown choice '{command}'. Choose 1-{len(passage.choices)}."
            )
        return self.enter(state, passage.choices[index - 1].goto)

    def propose_event(
        self,
        state: PlayState,
        *,
        player_input: str | None = None,
    ) -> StoryEvent:
        """Produce the next event, re-prompting on unrecognised input."""

        if player_input is None or not player_input.strip():
            return self.describe(state)

        try:
            return self.choose(state, player_input)
        except ValueError as exc:
            current = self.describe(state)
            return StoryEvent(
                paragraphs=(str(exc),),
                choices=current.choices,
                passage_id=current.passage_id,
                ending_type=current.ending_type,
                is_ending=current.is_ending,
            )

    def format_event(self, event: StoryEvent, *, width: int = 78) -> str:
        """Create a printable representation of a story event."""

        lines: list[str] = []
        if event.title:
            lines.append(event.title)
            lines.append("=" * len(event.title))
            lines.append("")
        elif event.passage_id is not None:
            lines.append(f"[Passage {event.passage_id}]")
            lines.append("")

        for paragraph in event.paragraphs:
            lines.append(textwrap.fill(paragraph, width=width))
            lines.append("")

        if event.is_ending:
            label = event.ending_type.value if event.ending_type else "the end"
            lines.append(f"*** {label.upper()} ***")
            lines.append("")

        for choice in event.choices:
            lines.append(f"[{choice.command}] {choice.description}")
        return "\n".join(lines).rstrip()


__all__ = [
    "AdventureEngine",
    "RESTART_COMMAND",
    "START_COMMAND",
    "StoryChoice",
    "StoryEvent",
]
