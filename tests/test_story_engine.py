"""Tests for the play-test :class:`AdventureEngine`."""

from __future__ import annotations

import pytest

from adventurebook import (
    AdventureEngine,
    EndingType,
    PlayState,
    StoryChoice,
    StoryEvent,
    parse_adventure,
)


@pytest.fixture()
def engine(sword_document: str) -> AdventureEngine:
    return AdventureEngine(parse_adventure(sword_document))


def test_story_choice_normalises_command() -> None:
    choice = StoryChoice("  START ", " Begin ")

    assert choice.command == "start"
    assert choice.description == "Begin"


def test_story_event_rejects_duplicate_commands() -> None:
    with pytest.raises(ValueError):
        StoryEvent(
            paragraphs=("Hi.",),
            choices=(StoryChoice("1", "One"), StoryChoice("1", "Also one")),
        )


def test_introduction_event(engine: AdventureEngine) -> None:
    event = engine.describe(PlayState())

    assert event.title == "Sword in the Stone"
    assert event.paragraphs == ("The village needs a hero.", "Nobody else volunteered.")
    assert event.iter_choice_commands() == ("start",)
    assert event.choices[0].description == "Set out"
    assert event.passage_id is None


def test_choices_are_numbered_from_one(engine: AdventureEngine) -> None:
    state = PlayState()

    event = engine.choose(state, "start")

    assert state.passage_id == 1
    assert event.iter_choice_commands() == ("1", "2")
    assert [choice.description for choice in event.choices] == [
        "Pull the sword",
        "Walk away",
    ]


def test_entering_a_passage_applies_its_effects(engine: AdventureEngine) -> None:
    state = PlayState()
    engine.choose(state, "start")

    engine.choose(state, "1")

    assert state.passage_id == 2
    assert state.inventory == ["sword"]


def test_reaching_an_ending_offers_restart(engine: AdventureEngine) -> None:
    state = PlayState()
    for command in ("start", "1", "1"):
        event = engine.choose(state, command)

    assert event.is_ending is True
    assert event.ending_type is EndingType.VICTORY
    assert event.iter_choice_commands() == ("restart",)

    with pytest.raises(ValueError):
        engine.choose(state, "1")

    restarted = engine.choose(state, "restart")
    assert restarted.title == "Sword in the Stone"
    assert state.inventory == []


def test_unknown_choice_raises_value_error(engine: AdventureEngine) -> None:
    state = PlayState()
    engine.choose(state, "start")

    with pytest.raises(ValueError):
        engine.choose(state, "7")
    with pytest.raises(ValueError):
        engine.choose(state, "dance")


def test_propose_event_reprompts_on_unknown_input(engine: AdventureEngine) -> None:
    state = PlayState()
    engine.choose(state, "start")

    event = engine.propose_event(state, player_input="dance")

    assert "Unknown choice 'dance'" in event.narration
    assert event.iter_choice_commands() == ("1", "2")
    assert state.passage_id == 1


def test_propose_event_without_input_describes_position(engine: AdventureEngine) -> None:
    event = engine.propose_event(PlayState())

    assert event.title == "Sword in the Stone"


def test_start_falls_back_to_first_passage() -> None:
    document = """\
metadata: {title: "T", author: "A", version: "1"}
intro: {text: "Hi.", action: "Go"}
passages:
  5:
    text: "Only passage."
    ending: true
"""
    engine = AdventureEngine(parse_adventure(document))

    assert engine.start_passage_id == 5


def test_format_event_includes_choices_and_ending_banner(
    engine: AdventureEngine,
) -> None:
    state = PlayState()
    for command in ("start", "2"):
        event = engine.choose(state, command)

    rendered = engine.format_event(event)

    assert "[Passage 3]" in rendered
    assert "*** NEUTRAL ***" in rendered
    assert "[restart] Start over" in rendered


def test_starting_an_adventure_without_passages_reprompts() -> None:
    document = """\
metadata: {title: "T", author: "A", version: "1"}
intro: {text: "Hi.", action: "Go"}
passages: {}
"""
    engine = AdventureEngine(parse_adventure(document))
    state = PlayState()

    with pytest.raises(ValueError, match="no passages"):
        engine.choose(state, "start")

    event = engine.propose_event(state, player_input="start")

    assert event.paragraphs == ("This adventure has no passages to play yet.",)
    assert event.passage_id is None
    assert state.passage_id is None
