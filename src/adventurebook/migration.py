"""Upgrade legacy adventure documents to the current document shape.

Documents may declare a top-level ``schema_version``. When it is omitted or
matches :data:`CURRENT_SCHEMA_VERSION` the document is returned untouched.
Version 1 is the older "story" shape: the introduction had no call to
action, passages could spell out ``ending: false`` and choices could carry
free-form ``requirements``; inventory items and effects did not exist.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .errors import StructuralError

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 2
LEGACY_INTRO_ACTION = "Begin Your Adventure"


def migrate_document(document: Any) -> Any:
    """Return ``document`` in the current shape, upgrading legacy versions.

    Non-mapping documents are passed through so the structural validator can
    report them with its usual message.
    """

    if not isinstance(document, Mapping) or "schema_version" not in document:
        return document

    schema_version = document["schema_version"]
    if isinstance(schema_version, bool) or not isinstance(schema_version, int):
        raise StructuralError("schema_version must be an integer")

    upgraded = {key: value for key, value in document.items() if key != "schema_version"}

    if schema_version == CURRENT_SCHEMA_VERSION:
        return upgraded
    if schema_version > CURRENT_SCHEMA_VERSION:
        raise StructuralError(
            f"schema_version {schema_version} is newer than this engine supports"
        )
    if schema_version == 1:
        logger.debug("Upgrading schema version 1 document")
        return _migrate_v1(upgraded)

    raise StructuralError(f"Unsupported schema_version '{schema_version}'")


def _migrate_v1(document: dict[str, Any]) -> dict[str, Any]:
    intro = document.get("intro")
    if isinstance(intro, Mapping) and "action" not in intro:
        document["intro"] = {**intro, "action": LEGACY_INTRO_ACTION}

    passages = document.get("passages")
    if isinstance(passages, Mapping):
        document["passages"] = {
            passage_id: _migrate_passage_v1(payload)
            for passage_id, payload in passages.items()
        }
    return document


def _migrate_passage_v1(payload: Any) -> Any:
    if not isinstance(payload, Mapping):
        return payload

    migrated = dict(payload)
    if migrated.get("ending") is False:
        del migrated["ending"]

    choices = migrated.get("choices")
    if isinstance(choices, list):
        migrated["choices"] = [
            {key: value for key, value in choice.items() if key != "requirements"}
            if isinstance(choice, Mapping)
            else choice
            for choice in choices
        ]
    return migrated


__all__ = ["CURRENT_SCHEMA_VERSION", "LEGACY_INTRO_ACTION", "migrate_document"]
