"""Core package for the adventure book engine."""

from .builder import build_adventure
from .errors import (
    AdventureBookError,
    AdventureDefinitionError,
    AdventureImportError,
    AdventureNotFoundError,
    PassageNotFoundError,
    ReferentialError,
    StructuralError,
)
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
from .parser import load_document, parse_adventure, parse_adventure_file
from .persistence import (
    AdventureStore,
    FileAdventureStore,
    FileSessionStore,
    InMemoryAdventureStore,
    InMemorySessionStore,
    SessionSnapshot,
    SessionStore,
    StoredAdventure,
)
from .play_state import PlayState
from .references import validate_effect_items, validate_references
from .schema import validate_document
from .serializer import serialize_adventure
from .story_engine import AdventureEngine, StoryChoice, StoryEvent
from .text import paragraphs_to_text, text_to_paragraphs

__all__ = [
    "Adventure",
    "Metadata",
    "Intro",
    "Passage",
    "EndingPassage",
    "ChoicePassage",
    "Choice",
    "Effect",
    "EffectType",
    "EndingType",
    "InventoryItem",
    "AdventureBookError",
    "AdventureDefinitionError",
    "StructuralError",
    "ReferentialError",
    "AdventureNotFoundError",
    "PassageNotFoundError",
    "AdventureImportError",
    "load_document",
    "parse_adventure",
    "parse_adventure_file",
    "validate_document",
    "build_adventure",
    "validate_references",
    "validate_effect_items",
    "serialize_adventure",
    "text_to_paragraphs",
    "paragraphs_to_text",
    "PlayState",
    "AdventureEngine",
    "StoryChoice",
    "StoryEvent",
    "StoredAdventure",
    "AdventureStore",
    "InMemoryAdventureStore",
    "FileAdventureStore",
    "SessionSnapshot",
    "SessionStore",
    "InMemorySessionStore",
    "FileSessionStore",
]
