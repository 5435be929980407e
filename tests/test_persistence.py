"""Tests for the adventure library and play-test session stores."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from adventurebook import (
    AdventureImportError,
    AdventureNotFoundError,
    FileAdventureStore,
    FileSessionStore,
    InMemoryAdventureStore,
    InMemorySessionStore,
    PlayState,
    SessionSnapshot,
    StoredAdventure,
    parse_adventure,
)
from adventurebook.persistence import (
    DEFAULT_ADVENTURE_TITLE,
    create_adventure,
    export_filename,
    import_adventure_file,
    import_adventure_text,
    starter_document,
    update_adventure_content,
    update_adventure_title,
)
from conftest import MINIMAL_DOCUMENT, write_document


@pytest.fixture(params=["memory", "file"])
def store(request: pytest.FixtureRequest, tmp_path: Path):
    if request.param == "memory":
        return InMemoryAdventureStore()
    return FileAdventureStore(tmp_path / "library")


@pytest.fixture
def sample_snapshot() -> SessionSnapshot:
    return SessionSnapshot.capture(
        PlayState(
            passage_id=2,
            inventory=["sword", "key"],
            history=["Turned to passage 2", "Picked up sword"],
        )
    )


def test_create_and_get_adventure(store) -> None:
    created = create_adventure(store, "My Story", MINIMAL_DOCUMENT, id_factory=lambda: "abc")

    fetched = store.get("abc")

    assert fetched == created
    assert fetched.title == "My Story"
    assert fetched.content == MINIMAL_DOCUMENT
    assert fetched.created_at == fetched.last_edited


def test_create_adventure_generates_unique_ids(store) -> None:
    first = create_adventure(store, "One", MINIMAL_DOCUMENT)
    second = create_adventure(store, "Two", MINIMAL_DOCUMENT)

    assert first.id != second.id
    assert len(store.list_all()) == 2


def test_get_missing_adventure_raises(store) -> None:
    with pytest.raises(AdventureNotFoundError) as excinfo:
        store.get("missing")

    assert str(excinfo.value) == "Adventure with id missing not found"
    assert isinstance(excinfo.value, KeyError)


def test_list_all_sorts_by_last_edited_descending(store) -> None:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for name in ["old", "newest", "middle"]:
        offset = {"old": 0, "newest": 2, "middle": 1}[name]
        store.put(
            StoredAdventure(
                id=name,
                title=name.title(),
                content=MINIMAL_DOCUMENT,
                created_at=base,
                last_edited=base + timedelta(days=offset),
            )
        )

    assert [adventure.id for adventure in store.list_all()] == [
        "newest",
        "middle",
        "old",
    ]


def test_updates_bump_last_edited(store) -> None:
    created = create_adventure(store, "Draft", MINIMAL_DOCUMENT, id_factory=lambda: "x")

    retitled = update_adventure_title(store, "x", "Final")
    rewritten = update_adventure_content(store, "x", "changed")

    assert retitled.title == "Final"
    assert rewritten.content == "changed"
    assert rewritten.title == "Final"
    assert rewritten.created_at == created.created_at
    assert rewritten.last_edited >= retitled.last_edited >= created.last_edited


def test_update_missing_adventure_raises(store) -> None:
    with pytest.raises(AdventureNotFoundError):
        update_adventure_title(store, "ghost", "Title")


def test_delete_is_idempotent(store) -> None:
    create_adventure(store, "Gone", MINIMAL_DOCUMENT, id_factory=lambda: "gone")

    store.delete("gone")
    store.delete("gone")

    assert store.list_all() == []


def test_file_store_persists_json(tmp_path: Path) -> None:
    store = FileAdventureStore(tmp_path)
    create_adventure(store, "Saved", MINIMAL_DOCUMENT, id_factory=lambda: "saved")

    payload = json.loads((tmp_path / "saved.json").read_text(encoding="utf-8"))

    assert payload["id"] == "saved"
    assert payload["title"] == "Saved"
    assert payload["content"] == MINIMAL_DOCUMENT
    assert "createdAt" in payload and "lastEdited" in payload

    reopened = FileAdventureStore(tmp_path)
    assert reopened.get("saved").title == "Saved"


def test_file_store_rejects_path_like_ids(tmp_path: Path) -> None:
    store = FileAdventureStore(tmp_path)

    with pytest.raises(ValueError):
        store.get("../escape")


def test_import_uses_metadata_title(store) -> None:
    imported = import_adventure_text(store, "cave.yml", MINIMAL_DOCUMENT)

    assert imported.title == "The Cave"
    assert store.get(imported.id).content == MINIMAL_DOCUMENT


@pytest.mark.parametrize(
    ("filename", "content", "message"),
    [
        ("cave.json", MINIMAL_DOCUMENT, "must be a YAML file"),
        ("cave.yaml", "   \n", "File is empty"),
        ("cave.yaml", "metadata: [", "YAML syntax error"),
        ("cave.yaml", MINIMAL_DOCUMENT.replace("goto: 2", "goto: 9"), "invalid goto"),
    ],
)
def test_import_rejects_bad_files(store, filename: str, content: str, message: str) -> None:
    with pytest.raises(AdventureImportError) as excinfo:
        import_adventure_text(store, filename, content)

    assert message in str(excinfo.value)
    assert store.list_all() == []


def test_import_adventure_file_reads_from_disk(store, tmp_path: Path) -> None:
    path = write_document(tmp_path, MINIMAL_DOCUMENT, "Cave.YAML")

    imported = import_adventure_file(store, path)

    assert imported.title == "The Cave"


def test_import_missing_file_raises_import_error(store, tmp_path: Path) -> None:
    with pytest.raises(AdventureImportError):
        import_adventure_file(store, tmp_path / "absent.yaml")


def test_export_filename_replaces_unsafe_characters() -> None:
    assert export_filename('What/is\\this?%*:|"<>') == "What_is_this________.yaml"
    assert export_filename("Plain Title") == "Plain Title.yaml"


def test_starter_document_is_a_valid_adventure() -> None:
    adventure = parse_adventure(starter_document())

    assert adventure.metadata.title == DEFAULT_ADVENTURE_TITLE
    assert adventure.ending_passages() == [2]


@pytest.fixture(params=["memory", "file"])
def session_store(request: pytest.FixtureRequest, tmp_path: Path):
    if request.param == "memory":
        return InMemorySessionStore()
    return FileSessionStore(tmp_path / "sessions")


def test_session_store_saves_and_restores_snapshots(
    session_store, sample_snapshot: SessionSnapshot
) -> None:
    session_store.save("cave--slot-b", sample_snapshot)
    session_store.save("cave--slot-a", SessionSnapshot.capture(PlayState()))

    restored = session_store.load("cave--slot-b")

    assert restored.play_state.passage_id == 2
    assert restored.play_state.inventory == ["sword", "key"]
    assert restored.play_state.history == sample_snapshot.play_state.history
    assert session_store.list_sessions() == ["cave--slot-a", "cave--slot-b"]


def test_session_store_forgets_deleted_sessions(
    session_store, sample_snapshot: SessionSnapshot
) -> None:
    session_store.save("slot", sample_snapshot)

    session_store.delete("slot")
    session_store.delete("slot")

    assert session_store.list_sessions() == []
    with pytest.raises(KeyError):
        session_store.load("slot")


def test_session_ids_must_be_non_blank_strings(
    session_store, sample_snapshot: SessionSnapshot
) -> None:
    with pytest.raises(ValueError):
        session_store.save("  ", sample_snapshot)
    with pytest.raises(TypeError):
        session_store.load(7)  # type: ignore[arg-type]


def test_file_session_store_writes_flat_json(
    tmp_path: Path, sample_snapshot: SessionSnapshot
) -> None:
    FileSessionStore(tmp_path).save("slot", sample_snapshot)

    payload = json.loads((tmp_path / "slot.json").read_text(encoding="utf-8"))

    assert payload == {
        "passage_id": 2,
        "inventory": ["sword", "key"],
        "history": ["Turned to passage 2", "Picked up sword"],
    }


def test_snapshot_apply_to_restores_state(sample_snapshot: SessionSnapshot) -> None:
    state = PlayState()

    sample_snapshot.apply_to(state)
    state.add_item("lamp")

    assert state.passage_id == 2
    assert state.inventory == ["sword", "key", "lamp"]
    assert sample_snapshot.play_state.inventory == ["sword", "key"]


def test_snapshot_from_payload_rejects_invalid_data() -> None:
    with pytest.raises(ValueError):
        SessionSnapshot.from_payload({})
    with pytest.raises(ValueError):
        SessionSnapshot.from_payload({"passage_id": "two"})
    with pytest.raises(ValueError):
        SessionSnapshot.from_payload({"passage_id": None, "inventory": "sword"})
