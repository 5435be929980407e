"""Storage for adventure documents and play-test sessions.

The adventure library keeps raw YAML text keyed by document id; the engine
never talks to it directly. Callers fetch the text, hand it to
:func:`adventurebook.parser.parse_adventure`, and store serialiser output
back.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List

from .errors import AdventureDefinitionError, AdventureImportError, AdventureNotFoundError
from .models import (
    Adventure,
    Choice,
    ChoicePassage,
    EndingPassage,
    EndingType,
    Intro,
    Metadata,
)
from .parser import parse_adventure
from .play_state import PlayState
from .serializer import serialize_adventure

logger = logging.getLogger(__name__)

DEFAULT_ADVENTURE_TITLE = "Untitled adventure"
IMPORTABLE_EXTENSIONS = (".yaml", ".yml")
_UNSAFE_FILENAME_CHARACTERS = re.compile(r'[/\\?%*:|"<>]')


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StoredAdventure:
    """A document held in the adventure library."""

    id: str
    title: str
    content: str
    created_at: datetime = field(default_factory=_utcnow)
    last_edited: datetime = field(default_factory=_utcnow)

    def to_payload(self) -> Dict[str, object]:
        """Return a JSON-serialisable representation of the document."""

        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at.isoformat(),
            "lastEdited": self.last_edited.isoformat(),
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, object]) -> "StoredAdventure":
        """Build a stored adventure from its payload representation."""

        try:
            adventure_id = payload["id"]
            title = payload["title"]
            content = payload["content"]
            created_at = datetime.fromisoformat(str(payload["createdAt"]))
            last_edited = datetime.fromisoformat(str(payload["lastEdited"]))
        except KeyError as exc:
            raise ValueError(f"Invalid stored adventure: missing {exc.args[0]}") from exc

        if not all(isinstance(value, str) for value in (adventure_id, title, content)):
            raise ValueError("Invalid stored adventure: id, title and content must be strings")

        return cls(
            id=str(adventure_id),
            title=str(title),
            content=str(content),
            created_at=created_at,
            last_edited=last_edited,
        )


class AdventureStore(ABC):
    """Interface describing how adventure documents are persisted."""

    @abstractmethod
    def get(self, adventure_id: str) -> StoredAdventure:
        """Return the stored adventure.

        Raises:
            AdventureNotFoundError: If no document uses ``adventure_id``.
        """

    @abstractmethod
    def put(self, adventure: StoredAdventure) -> None:
        """Insert or replace ``adventure``."""

    @abstractmethod
    def delete(self, adventure_id: str) -> None:
        """Remove the stored adventure if it exists."""

    @abstractmethod
    def list_all(self) -> List[StoredAdventure]:
        """Return every stored adventure, most recently edited first."""


class InMemoryAdventureStore(AdventureStore):
    """Keep adventure documents in local process memory."""

    def __init__(self) -> None:
        self._adventures: Dict[str, StoredAdventure] = {}

    def get(self, adventure_id: str) -> StoredAdventure:
        key = _validate_identifier(adventure_id, "adventure_id")
        try:
            return self._adventures[key]
        except KeyError as exc:
            raise AdventureNotFoundError(key) from exc

    def put(self, adventure: StoredAdventure) -> None:
        self._adventures[_validate_identifier(adventure.id, "adventure_id")] = adventure

    def delete(self, adventure_id: str) -> None:
        self._adventures.pop(_validate_identifier(adventure_id, "adventure_id"), None)

    def list_all(self) -> List[StoredAdventure]:
        return _sort_recent_first(self._adventures.values())


class _JsonDirectory:
    """One pretty-printed JSON file per record, named after the record id."""

    def __init__(self, root: Path, *, id_field: str) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._id_field = id_field

    def path_for(self, record_id: str) -> Path:
        validated = _validate_identifier(record_id, self._id_field)
        if Path(validated).name != validated:
            raise ValueError(f"{self._id_field} must not contain path separators")
        return self.root / f"{validated}.json"

    def read(self, record_id: str) -> Dict[str, object] | None:
        path = self.path_for(record_id)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def write(self, record_id: str, payload: Dict[str, object]) -> None:
        self.path_for(record_id).write_text(
            json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
        )

    def remove(self, record_id: str) -> None:
        path = self.path_for(record_id)
        if path.exists():
            path.unlink()

    def record_ids(self) -> List[str]:
        return sorted(path.stem for path in self.root.glob("*.json") if path.is_file())


class FileAdventureStore(AdventureStore):
    """Persist adventure documents as JSON files on disk."""

    def __init__(self, storage_dir: Path) -> None:
        self._files = _JsonDirectory(storage_dir, id_field="adventure_id")
        self.storage_dir = self._files.root

    def get(self, adventure_id: str) -> StoredAdventure:
        payload = self._files.read(adventure_id)
        if payload is None:
            raise AdventureNotFoundError(adventure_id)
        return StoredAdventure.from_payload(payload)

    def put(self, adventure: StoredAdventure) -> None:
        self._files.write(adventure.id, adventure.to_payload())

    def delete(self, adventure_id: str) -> None:
        self._files.remove(adventure_id)

    def list_all(self) -> List[StoredAdventure]:
        return _sort_recent_first(self.get(record_id) for record_id in self._files.record_ids())


def starter_document(title: str = DEFAULT_ADVENTURE_TITLE) -> str:
    """Return a small, valid adventure used as the content of new documents."""

    adventure = Adventure(
        metadata=Metadata(title=title, author="Unknown author", version="1.0"),
        intro=Intro(
            paragraphs=("Your adventure begins here.",),
            action="Begin Your Adventure",
        ),
        passages={
            1: ChoicePassage(
                paragraphs=("You stand at a crossroads.",),
                choices=(Choice(text="Walk on", goto=2),),
            ),
            2: EndingPassage(
                paragraphs=("The road ends here.",),
                ending_type=EndingType.NEUTRAL,
            ),
        },
    )
    return serialize_adventure(adventure)


def create_adventure(
    store: AdventureStore,
    title: str,
    content: str,
    *,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> StoredAdventure:
    """Store a new document under a freshly generated id."""

    now = _utcnow()
    adventure = StoredAdventure(
        id=id_factory(),
        title=title,
        content=content,
        created_at=now,
        last_edited=now,
    )
    store.put(adventure)
    logger.info("Created adventure %s (%s)", adventure.id, title)
    return adventure


def update_adventure_content(
    store: AdventureStore, adventure_id: str, content: str
) -> StoredAdventure:
    """Replace the document text and bump ``last_edited``."""

    updated = replace(store.get(adventure_id), content=content, last_edited=_utcnow())
    store.put(updated)
    logger.info("Updated content of adventure %s", adventure_id)
    return updated


def update_adventure_title(
    store: AdventureStore, adventure_id: str, title: str
) -> StoredAdventure:
    """Rename a stored adventure and bump ``last_edited``."""

    updated = replace(store.get(adventure_id), title=title, last_edited=_utcnow())
    store.put(updated)
    logger.info("Renamed adventure %s to %s", adventure_id, title)
    return updated


def import_adventure_text(
    store: AdventureStore, filename: str, content: str
) -> StoredAdventure:
    """Validate an uploaded YAML document and add it to the library.

    Raises:
        AdventureImportError: The file name, content or document is rejected.
    """

    if Path(filename).suffix.lower() not in IMPORTABLE_EXTENSIONS:
        raise AdventureImportError("File must be a YAML file (.yaml or .yml)")
    if not content.strip():
        raise AdventureImportError("File is empty")

    try:
        adventure = parse_adventure(content)
    except AdventureDefinitionError as exc:
        logger.warning("Rejected import of %s: %s", filename, exc)
        raise AdventureImportError(str(exc)) from exc

    return create_adventure(store, adventure.metadata.title, content)


def import_adventure_file(store: AdventureStore, path: str | Path) -> StoredAdventure:
    """Read ``path`` and import it with :func:`import_adventure_text`."""

    file_path = Path(path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise AdventureImportError(f"Failed to read file: {exc}") from exc
    return import_adventure_text(store, file_path.name, content)


def export_filename(title: str, *, extension: str = ".yaml") -> str:
    """Return a file name for ``title`` safe to use on common file systems."""

    return f"{_UNSAFE_FILENAME_CHARACTERS.sub('_', title)}{extension}"


@dataclass
class SessionSnapshot:
    """Saved position of a play-test: passage, inventory and event log."""

    play_state: PlayState

    def to_payload(self) -> Dict[str, object]:
        state = self.play_state
        return {
            "passage_id": state.passage_id,
            "inventory": list(state.inventory),
            "history": list(state.history),
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, object]) -> "SessionSnapshot":
        """Rebuild a snapshot written by :meth:`to_payload`.

        Raises:
            ValueError: When a field is missing or has the wrong type.
        """

        if "passage_id" not in payload:
            raise ValueError("Invalid session payload: missing passage_id")

        passage_id = payload["passage_id"]
        inventory = payload.get("inventory", [])
        history = payload.get("history", [])

        if passage_id is not None and (
            isinstance(passage_id, bool) or not isinstance(passage_id, int)
        ):
            raise ValueError("Invalid session payload: passage_id must be an integer or null")
        for name, value in (("inventory", inventory), ("history", history)):
            if not isinstance(value, list):
                raise ValueError(f"Invalid session payload: {name} must be a list")

        return cls(
            play_state=PlayState(
                passage_id=passage_id,
                inventory=[str(entry) for entry in inventory],
                history=[str(entry) for entry in history],
            )
        )

    @classmethod
    def capture(cls, play_state: PlayState) -> "SessionSnapshot":
        """Copy ``play_state`` so later moves do not leak into the snapshot."""

        return cls(
            play_state=PlayState(
                passage_id=play_state.passage_id,
                inventory=list(play_state.inventory),
                history=list(play_state.history),
            )
        )

    def apply_to(self, play_state: PlayState) -> None:
        """Overwrite ``play_state`` with a copy of the saved values."""

        play_state.passage_id = self.play_state.passage_id
        play_state.inventory = list(self.play_state.inventory)
        play_state.history = list(self.play_state.history)


class SessionStore(ABC):
    """Where play-test snapshots are kept between runs."""

    @abstractmethod
    def save(self, session_id: str, snapshot: SessionSnapshot) -> None:
        """Store ``snapshot``, replacing any earlier one with the same id."""

    @abstractmethod
    def load(self, session_id: str) -> SessionSnapshot:
        """Return the snapshot saved as ``session_id``.

        Raises:
            KeyError: Nothing was saved under that id.
        """

    @abstractmethod
    def delete(self, session_id: str) -> None:
        """Forget ``session_id``; unknown ids are ignored."""

    @abstractmethod
    def list_sessions(self) -> List[str]:
        """Return the saved session ids in sorted order."""


class InMemorySessionStore(SessionStore):
    """Snapshots held in a dictionary for the lifetime of the process."""

    def __init__(self) -> None:
        self._snapshots: Dict[str, SessionSnapshot] = {}

    def save(self, session_id: str, snapshot: SessionSnapshot) -> None:
        self._snapshots[_validate_identifier(session_id, "session_id")] = snapshot

    def load(self, session_id: str) -> SessionSnapshot:
        snapshot = self._snapshots.get(_validate_identifier(session_id, "session_id"))
        if snapshot is None:
            raise KeyError(f"No saved session named '{session_id}'")
        return snapshot

    def delete(self, session_id: str) -> None:
        self._snapshots.pop(_validate_identifier(session_id, "session_id"), None)

    def list_sessions(self) -> List[str]:
        return sorted(self._snapshots)


class FileSessionStore(SessionStore):
    """Snapshots written as JSON files, one per session id."""

    def __init__(self, storage_dir: Path) -> None:
        self._files = _JsonDirectory(storage_dir, id_field="session_id")
        self.storage_dir = self._files.root

    def save(self, session_id: str, snapshot: SessionSnapshot) -> None:
        self._files.write(session_id, snapshot.to_payload())

    def load(self, session_id: str) -> SessionSnapshot:
        payload = self._files.read(session_id)
        if payload is None:
            raise KeyError(f"No saved session named '{session_id}'")
        return SessionSnapshot.from_payload(payload)

    def delete(self, session_id: str) -> None:
        self._files.remove(session_id)

    def list_sessions(self) -> List[str]:
        return self._files.record_ids()


def _validate_identifier(value: str, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string, got {type(value)!r}")
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field_name} must not be blank")
    return stripped


def _sort_recent_first(adventures: Iterable[StoredAdventure]) -> List[StoredAdventure]:
    return sorted(adventures, key=lambda adventure: adventure.last_edited, reverse=True)


__all__ = [
    "AdventureStore",
    "DEFAULT_ADVENTURE_TITLE",
    "FileAdventureStore",
    "FileSessionStore",
    "IMPORTABLE_EXTENSIONS",
    "InMemoryAdventureStore",
    "InMemorySessionStore",
    "SessionSnapshot",
    "SessionStore",
    "StoredAdventure",
    "create_adventure",
    "export_filename",
    "import_adventure_file",
    "import_adventure_text",
    "starter_document",
    "update_adventure_content",
    "update_adventure_title",
]
