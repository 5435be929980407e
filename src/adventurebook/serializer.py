"""Turn a canonical adventure back into a YAML document."""

from __future__ import annotations

import logging
from typing import Any

import yaml

from .models import Adventure, EndingPassage, Passage
from .text import paragraphs_to_text

logger = logging.getLogger(__name__)


class _AdventureDumper(yaml.SafeDumper):
    """Block-style dumper that writes multi-line text as literal blocks."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


_QUOTED_LINE_BREAKS = frozenset("\r\x85\u2028\u2029")


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    # Literal blocks and plain scalars fold these breaks on reload.
    if _QUOTED_LINE_BREAKS.intersection(value):
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style='"')
    if "\n" in value:
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", value)


_AdventureDumper.add_representer(str, _represent_str)


def passage_to_raw(passage: Passage) -> dict[str, Any]:
    """Flatten a passage variant into its document shape."""

    raw: dict[str, Any] = {"text": paragraphs_to_text(passage.paragraphs)}
    if passage.notes:
        raw["notes"] = passage.notes

    if isinstance(passage, EndingPassage):
        raw["ending"] = True
        if passage.ending_type is not None:
            raw["type"] = passage.ending_type.value
        return raw

    raw["choices"] = [
        {"text": choice.text, "goto": choice.goto} for choice in passage.choices
    ]
    if passage.effects:
        raw["effects"] = [
            {"type": effect.type.value, "item": effect.item}
            for effect in passage.effects
        ]
    return raw


def adventure_to_raw(adventure: Adventure) -> dict[str, Any]:
    """Return the plain mapping that :func:`serialize_adventure` dumps.

    Empty ``items`` and empty passage ``effects`` are left out entirely so a
    hand-authored document does not gain empty collections on save.
    """

    raw: dict[str, Any] = {
        "metadata": {
            "title": adventure.metadata.title,
            "author": adventure.metadata.author,
            "version": adventure.metadata.version,
        },
        "intro": {
            "text": paragraphs_to_text(adventure.intro.paragraphs),
            "action": adventure.intro.action,
        },
    }

    if adventure.items:
        raw["items"] = [{"id": item.id, "name": item.name} for item in adventure.items]

    raw["passages"] = {
        passage_id: passage_to_raw(passage)
        for passage_id, passage in adventure.passages.items()
    }
    return raw


def serialize_adventure(adventure: Adventure) -> str:
    """Serialise ``adventure`` to YAML text that parses back to an equal model."""

    text = yaml.dump(
        adventure_to_raw(adventure),
        Dumper=_AdventureDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        indent=2,
        width=float("inf"),
    )
    logger.debug(
        "Serialised adventure '%s' (%d passages)",
        adventure.metadata.title,
        len(adventure.passages),
    )
    return text


__all__ = ["adventure_to_raw", "passage_to_raw", "serialize_adventure"]
