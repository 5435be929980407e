"""FastAPI application exposing adventure library and play-test endpoints."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field, field_serializer

from ..analytics import (
    ItemFlowReport,
    PassageReachabilityReport,
    analyse_item_flow,
    compute_passage_reachability,
    summarise_endings,
)
from ..errors import (
    AdventureDefinitionError,
    AdventureImportError,
    AdventureNotFoundError,
    ReferentialError,
)
from ..models import Adventure
from ..parser import parse_adventure
from ..persistence import (
    DEFAULT_ADVENTURE_TITLE,
    AdventureStore,
    FileAdventureStore,
    FileSessionStore,
    InMemoryAdventureStore,
    InMemorySessionStore,
    SessionSnapshot,
    SessionStore,
    StoredAdventure,
    create_adventure,
    export_filename,
    import_adventure_text,
    starter_document,
    update_adventure_content,
    update_adventure_title,
)
from ..play_state import PlayState
from ..serializer import serialize_adventure
from ..story_engine import AdventureEngine, StoryEvent
from ..validation import validate_title
from .settings import AdventureApiSettings

logger = logging.getLogger(__name__)

YAML_MEDIA_TYPE = "application/x-yaml"


class AdventureSummary(BaseModel):
    """Lightweight representation of a stored adventure for overview lists."""

    id: str
    title: str
    created_at: datetime
    last_edited: datetime

    @field_serializer("created_at", "last_edited")
    def _serialise_timestamp(self, value: datetime) -> str:
        return value.isoformat()


class AdventureListResponse(BaseModel):
    """Response envelope for the adventure collection endpoint."""

    data: list[AdventureSummary]


class AdventureDetailResponse(AdventureSummary):
    """Stored adventure including its YAML document."""

    content: str


class AdventureCreateRequest(BaseModel):
    """Request payload for adding a document to the library."""

    title: str = Field(
        DEFAULT_ADVENTURE_TITLE,
        description="Title shown in the adventure library.",
    )
    content: str | None = Field(
        None,
        description=(
            "YAML document for the new adventure. When omitted a small starter "
            "adventure is created."
        ),
    )


class AdventureContentUpdateRequest(BaseModel):
    """Request payload replacing the YAML document of an adventure."""

    content: str


class AdventureTitleUpdateRequest(BaseModel):
    """Request payload renaming an adventure in the library."""

    title: str


class AdventureImportRequest(BaseModel):
    """Request payload for importing an uploaded YAML file."""

    filename: str = Field(..., description="Uploaded file name, used for its extension.")
    content: str


class AdventureDeleteResponse(BaseModel):
    id: str
    deleted: bool = True


class DocumentValidationRequest(BaseModel):
    """YAML document to check without storing it."""

    content: str


class DocumentValidationResponse(BaseModel):
    """Summary of a document that parsed successfully."""

    valid: bool = True
    title: str
    passage_count: int = Field(..., ge=0)
    item_count: int = Field(..., ge=0)
    ending_passages: list[int] = Field(default_factory=list)


class ReachabilityResource(BaseModel):
    start_passage: int
    reachable_passages: list[int]
    unreachable_passages: list[int]
    reachable_endings: list[int]
    fully_reachable: bool

    @classmethod
    def from_report(cls, report: PassageReachabilityReport) -> "ReachabilityResource":
        return cls(
            start_passage=report.start_passage,
            reachable_passages=list(report.reachable_passages),
            unreachable_passages=list(report.unreachable_passages),
            reachable_endings=list(report.reachable_endings),
            fully_reachable=report.fully_reachable,
        )


class ItemFlowDetailsResource(BaseModel):
    item: str
    name: str | None = None
    added_in: list[int] = Field(default_factory=list)
    removed_in: list[int] = Field(default_factory=list)


class ItemFlowSummaryResource(BaseModel):
    items: list[ItemFlowDetailsResource] = Field(default_factory=list)
    never_awarded: list[str] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: ItemFlowReport) -> "ItemFlowSummaryResource":
        return cls(
            items=[
                ItemFlowDetailsResource(
                    item=detail.item,
                    name=detail.name,
                    added_in=[location.passage for location in detail.sources],
                    removed_in=[location.passage for location in detail.removals],
                )
                for detail in report.items
            ],
            never_awarded=list(report.never_awarded_items),
        )


class AdventureAnalysisResponse(BaseModel):
    """Structural analysis of a stored adventure."""

    id: str
    reachability: ReachabilityResource
    item_flow: ItemFlowSummaryResource
    endings_by_type: dict[str, int]


class PlaytestChoiceResource(BaseModel):
    command: str
    description: str


class PlaytestEventResponse(BaseModel):
    """Current view of a play-test session."""

    session_id: str
    passage_id: int | None = None
    title: str | None = None
    paragraphs: list[str]
    choices: list[PlaytestChoiceResource]
    is_ending: bool = False
    ending_type: str | None = None
    inventory: list[str] = Field(default_factory=list)


class PlaytestCommandRequest(BaseModel):
    command: str = Field(..., min_length=1)


def _summary(adventure: StoredAdventure) -> AdventureSummary:
    return AdventureSummary(
        id=adventure.id,
        title=adventure.title,
        created_at=adventure.created_at,
        last_edited=adventure.last_edited,
    )


def _detail(adventure: StoredAdventure) -> AdventureDetailResponse:
    return AdventureDetailResponse(
        id=adventure.id,
        title=adventure.title,
        created_at=adventure.created_at,
        last_edited=adventure.last_edited,
        content=adventure.content,
    )


def _definition_error(exc: AdventureDefinitionError) -> HTTPException:
    detail: dict[str, object] = {"kind": exc.kind, "message": str(exc)}
    if isinstance(exc, ReferentialError):
        detail["passage_id"] = exc.passage_id
        if exc.target is not None:
            detail["target"] = exc.target
        if exc.item is not None:
            detail["item"] = exc.item
    return HTTPException(status_code=422, detail=detail)


def _parse_or_422(content: str) -> Adventure:
    try:
        return parse_adventure(content)
    except AdventureDefinitionError as exc:
        raise _definition_error(exc) from exc


def _event_response(
    session_id: str, event: StoryEvent, state: PlayState
) -> PlaytestEventResponse:
    return PlaytestEventResponse(
        session_id=session_id,
        passage_id=event.passage_id,
        title=event.title,
        paragraphs=list(event.paragraphs),
        choices=[
            PlaytestChoiceResource(command=choice.command, description=choice.description)
            for choice in event.choices
        ],
        is_ending=event.is_ending,
        ending_type=event.ending_type.value if event.ending_type else None,
        inventory=list(state.inventory),
    )


def create_app(
    store: AdventureStore | None = None,
    *,
    session_store: SessionStore | None = None,
    settings: AdventureApiSettings | None = None,
) -> FastAPI:
    """Create a FastAPI app exposing the adventure management endpoints."""

    resolved_settings = settings or AdventureApiSettings.from_env()

    adventures = store
    if adventures is None:
        if resolved_settings.store_root is not None:
            adventures = FileAdventureStore(resolved_settings.store_root)
        else:
            adventures = InMemoryAdventureStore()

    sessions = session_store
    if sessions is None:
        if resolved_settings.session_root is not None:
            sessions = FileSessionStore(resolved_settings.session_root)
        else:
            sessions = InMemorySessionStore()

    tags_metadata = [
        {
            "name": "Adventures",
            "description": (
                "Create, edit, validate, import and export YAML adventure "
                "documents."
            ),
        },
        {
            "name": "Playtest",
            "description": "Step through an adventure the way a reader would.",
        },
    ]

    app = FastAPI(
        title=resolved_settings.api_title,
        version="0.1.0",
        description=(
            "HTTP API powering the adventure book editor. Documents are stored "
            "as YAML and validated before every write."
        ),
        openapi_tags=tags_metadata,
    )

    def _load(adventure_id: str) -> StoredAdventure:
        try:
            return adventures.get(adventure_id)
        except AdventureNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @app.get(
        "/api/adventures",
        response_model=AdventureListResponse,
        tags=["Adventures"],
    )
    def list_adventures() -> AdventureListResponse:
        return AdventureListResponse(
            data=[_summary(adventure) for adventure in adventures.list_all()]
        )

    @app.get(
        "/api/adventures/{adventure_id}",
        response_model=AdventureDetailResponse,
        tags=["Adventures"],
    )
    def get_adventure(adventure_id: str) -> AdventureDetailResponse:
        return _detail(_load(adventure_id))

    @app.post(
        "/api/adventures",
        response_model=AdventureDetailResponse,
        status_code=201,
        tags=["Adventures"],
    )
    def create_adventure_endpoint(
        payload: AdventureCreateRequest,
    ) -> AdventureDetailResponse:
        title_error = validate_title(payload.title)
        if title_error:
            raise HTTPException(status_code=400, detail=title_error)

        content = payload.content
        if content is None:
            content = starter_document(payload.title.strip())
        else:
            _parse_or_422(content)

        return _detail(create_adventure(adventures, payload.title.strip(), content))

    @app.post(
        "/api/adventures/import",
        response_model=AdventureDetailResponse,
        status_code=201,
        tags=["Adventures"],
    )
    def import_adventure_endpoint(
        payload: AdventureImportRequest,
    ) -> AdventureDetailResponse:
        try:
            stored = import_adventure_text(adventures, payload.filename, payload.content)
        except AdventureImportError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _detail(stored)

    @app.post(
        "/api/adventures/validate",
        response_model=DocumentValidationResponse,
        tags=["Adventures"],
    )
    def validate_adventure_endpoint(
        payload: DocumentValidationRequest,
    ) -> DocumentValidationResponse:
        adventure = _parse_or_422(payload.content)
        return DocumentValidationResponse(
            title=adventure.metadata.title,
            passage_count=len(adventure.passages),
            item_count=len(adventure.items),
            ending_passages=adventure.ending_passages(),
        )

    @app.put(
        "/api/adventures/{adventure_id}/content",
        response_model=AdventureDetailResponse,
        tags=["Adventures"],
    )
    def update_content_endpoint(
        adventure_id: str,
        payload: AdventureContentUpdateRequest,
    ) -> AdventureDetailResponse:
        _load(adventure_id)
        _parse_or_422(payload.content)
        return _detail(update_adventure_content(adventures, adventure_id, payload.content))

    @app.put(
        "/api/adventures/{adventure_id}/title",
        response_model=AdventureDetailResponse,
        tags=["Adventures"],
    )
    def update_title_endpoint(
        adventure_id: str,
        payload: AdventureTitleUpdateRequest,
    ) -> AdventureDetailResponse:
        title_error = validate_title(payload.title)
        if title_error:
            raise HTTPException(status_code=400, detail=title_error)
        _load(adventure_id)
        return _detail(
            update_adventure_title(adventures, adventure_id, payload.title.strip())
        )

    @app.delete(
        "/api/adventures/{adventure_id}",
        response_model=AdventureDeleteResponse,
        tags=["Adventures"],
    )
    def delete_adventure_endpoint(adventure_id: str) -> AdventureDeleteResponse:
        stored = _load(adventure_id)
        adventures.delete(stored.id)
        logger.info("Deleted adventure %s", stored.id)
        return AdventureDeleteResponse(id=stored.id)

    @app.get(
        "/api/adventures/{adventure_id}/export",
        tags=["Adventures"],
        response_class=Response,
    )
    def export_adventure_endpoint(adventure_id: str) -> Response:
        stored = _load(adventure_id)
        adventure = _parse_or_422(stored.content)
        filename = export_filename(stored.title)
        return Response(
            content=serialize_adventure(adventure),
            media_type=YAML_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.get(
        "/api/adventures/{adventure_id}/analysis",
        response_model=AdventureAnalysisResponse,
        tags=["Adventures"],
    )
    def analyse_adventure_endpoint(adventure_id: str) -> AdventureAnalysisResponse:
        stored = _load(adventure_id)
        adventure = _parse_or_422(stored.content)
        engine = AdventureEngine(adventure)
        try:
            reachability = compute_passage_reachability(
                adventure, start=engine.start_passage_id
            )
        except KeyError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        endings = summarise_endings(adventure)
        return AdventureAnalysisResponse(
            id=stored.id,
            reachability=ReachabilityResource.from_report(reachability),
            item_flow=ItemFlowSummaryResource.from_report(analyse_item_flow(adventure)),
            endings_by_type=dict(endings.by_type),
        )

    def _session_key(adventure_id: str, session_id: str) -> str:
        return f"{adventure_id}--{session_id}"

    def _load_session(adventure_id: str, session_id: str) -> PlayState:
        try:
            snapshot = sessions.load(_session_key(adventure_id, session_id))
        except KeyError:
            return PlayState()
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        state = PlayState()
        snapshot.apply_to(state)
        return state

    @app.get(
        "/api/adventures/{adventure_id}/playtest/{session_id}",
        response_model=PlaytestEventResponse,
        tags=["Playtest"],
    )
    def get_playtest_endpoint(adventure_id: str, session_id: str) -> PlaytestEventResponse:
        engine = AdventureEngine(_parse_or_422(_load(adventure_id).content))
        state = _load_session(adventure_id, session_id)
        try:
            event = engine.describe(state)
        except KeyError:
            # The document changed under the session; start over.
            state.restart()
            event = engine.describe(state)
        return _event_response(session_id, event, state)

    @app.post(
        "/api/adventures/{adventure_id}/playtest/{session_id}",
        response_model=PlaytestEventResponse,
        tags=["Playtest"],
    )
    def advance_playtest_endpoint(
        adventure_id: str,
        session_id: str,
        payload: PlaytestCommandRequest,
    ) -> PlaytestEventResponse:
        engine = AdventureEngine(_parse_or_422(_load(adventure_id).content))
        state = _load_session(adventure_id, session_id)
        try:
            event = engine.choose(state, payload.command)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except KeyError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

        sessions.save(_session_key(adventure_id, session_id), SessionSnapshot.capture(state))
        return _event_response(session_id, event, state)

    @app.delete(
        "/api/adventures/{adventure_id}/playtest/{session_id}",
        response_model=PlaytestEventResponse,
        tags=["Playtest"],
    )
    def reset_playtest_endpoint(
        adventure_id: str, session_id: str
    ) -> PlaytestEventResponse:
        engine = AdventureEngine(_parse_or_422(_load(adventure_id).content))
        try:
            sessions.delete(_session_key(adventure_id, session_id))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        state = PlayState()
        return _event_response(session_id, engine.describe(state), state)

    return app


__all__ = ["create_app"]
