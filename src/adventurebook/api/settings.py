"""Configuration helpers for deploying the adventure editing service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

DEFAULT_API_TITLE = "Adventure Book API"


def _normalise_path(value: str | None) -> Path | None:
    if value is None:
        return None

    trimmed = value.strip()
    if not trimmed:
        return None

    return Path(trimmed).expanduser()


def _normalise_string(value: str | None, *, default: str) -> str:
    if value is None:
        return default

    trimmed = value.strip()
    return trimmed or default


@dataclass(frozen=True)
class AdventureApiSettings:
    """Deployment settings for the FastAPI application.

    Values are read from environment variables so the service can be
    configured without modifying application code. Paths are expanded to
    support ``~`` prefixes while empty strings are treated as if the variable
    was unset. Without a store root the library lives in process memory.
    """

    store_root: Path | None = None
    session_root: Path | None = None
    api_title: str = DEFAULT_API_TITLE

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AdventureApiSettings":
        """Return settings populated from ``environ``.

        Args:
            environ: Optional mapping of environment variables. When omitted,
                :data:`os.environ` is used.
        """

        source = environ if environ is not None else os.environ

        return cls(
            store_root=_normalise_path(source.get("ADVENTUREBOOK_STORE_ROOT")),
            session_root=_normalise_path(source.get("ADVENTUREBOOK_SESSION_ROOT")),
            api_title=_normalise_string(
                source.get("ADVENTUREBOOK_TITLE"), default=DEFAULT_API_TITLE
            ),
        )


__all__ = ["AdventureApiSettings", "DEFAULT_API_TITLE"]
