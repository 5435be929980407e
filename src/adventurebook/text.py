"""Conversion between free-form text blocks and paragraph sequences."""

from __future__ import annotations

from typing import Any, Iterable

PARAGRAPH_SEPARATOR = "\n\n"


def text_to_paragraphs(text: Any) -> list[str]:
    """Split ``text`` into paragraphs.

    Blocks are separated by a blank line. Inside a block single newlines are
    folded into spaces and surrounding whitespace is trimmed; empty blocks are
    dropped. Anything that is not a non-empty string yields an empty list.
    """

    if not isinstance(text, str) or not text:
        return []

    paragraphs = (
        chunk.replace("\n", " ").strip() for chunk in text.split(PARAGRAPH_SEPARATOR)
    )
    return [paragraph for paragraph in paragraphs if paragraph]


def paragraphs_to_text(paragraphs: Iterable[str] | None) -> str:
    """Join ``paragraphs`` back into a single block separated by blank lines."""

    if not paragraphs:
        return ""
    return PARAGRAPH_SEPARATOR.join(paragraphs)


__all__ = ["PARAGRAPH_SEPARATOR", "paragraphs_to_text", "text_to_paragraphs"]
