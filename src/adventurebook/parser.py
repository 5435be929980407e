"""Parse YAML adventure documents into canonical models.

Parsing runs YAML loading, the optional legacy upgrade, structural
validation, model building and reference validation, stopping at the first
failure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from yaml.constructor import ConstructorError

from .builder import build_adventure
from .errors import StructuralError
from .migration import migrate_document
from .models import Adventure
from .references import validate_references
from .schema import validate_document

logger = logging.getLogger(__name__)


class _StrictLoader(yaml.SafeLoader):
    """Safe loader that refuses mappings with repeated keys."""

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict:
        self.flatten_mapping(node)
        seen: set[Any] = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                # Unhashable keys are reported by the base implementation.
                continue
            if duplicate:
                raise ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def load_document(text: str) -> Any:
    """Load ``text`` into a generic tree of mappings, sequences and scalars."""

    try:
        return yaml.load(text, Loader=_StrictLoader)
    except yaml.YAMLError as exc:
        raise StructuralError(f"YAML syntax error: {exc}") from exc


def parse_adventure(text: str) -> Adventure:
    """Parse and validate a YAML adventure document.

    Raises:
        StructuralError: The document does not follow the schema.
        ReferentialError: A choice points at a passage that does not exist.
    """

    document = migrate_document(load_document(text))
    raw = validate_document(document)
    adventure = build_adventure(raw)
    validate_references(adventure)
    logger.debug(
        "Parsed adventure '%s' with %d passages",
        adventure.metadata.title,
        len(adventure.passages),
    )
    return adventure


def parse_adventure_file(path: str | Path) -> Adventure:
    """Read ``path`` as UTF-8 and parse it with :func:`parse_adventure`."""

    document_path = Path(path)
    return parse_adventure(document_path.read_text(encoding="utf-8"))


__all__ = ["load_document", "parse_adventure", "parse_adventure_file"]
