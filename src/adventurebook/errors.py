"""Exception hierarchy shared by the adventure engine and its collaborators."""

from __future__ import annotations


class AdventureBookError(Exception):
    """Base class for every error raised by this package."""


class AdventureDefinitionError(AdventureBookError, ValueError):
    """Raised when an adventure document cannot be turned into a model.

    The message always follows ``"Invalid <document-kind>: <detail>"`` so the
    offending passage, choice, effect or item can be located without a
    debugger.
    """

    kind = "definition"

    def __init__(self, detail: str, *, document_kind: str = "document") -> None:
        self.detail = detail
        self.document_kind = document_kind
        super().__init__(f"Invalid {document_kind}: {detail}")


class StructuralError(AdventureDefinitionError):
    """The document violates the schema (type, missing field, illegal combination)."""

    kind = "structural"


class ReferentialError(AdventureDefinitionError):
    """The document is well formed but its graph points at missing entities."""

    kind = "referential"

    def __init__(
        self,
        detail: str,
        *,
        passage_id: int,
        target: int | None = None,
        item: str | None = None,
        document_kind: str = "document",
    ) -> None:
        self.passage_id = passage_id
        self.target = target
        self.item = item
        super().__init__(detail, document_kind=document_kind)


class AdventureNotFoundError(AdventureBookError, KeyError):
    """Raised when a stored adventure cannot be located."""

    def __init__(self, adventure_id: str) -> None:
        self.adventure_id = adventure_id
        super().__init__(f"Adventure with id {adventure_id} not found")

    def __str__(self) -> str:
        return str(self.args[0])


class PassageNotFoundError(AdventureBookError, KeyError):
    """Raised when a passage id does not exist in an adventure."""

    def __init__(self, passage_id: int) -> None:
        self.passage_id = passage_id
        super().__init__(f"Passage #{passage_id} does not exist in this adventure.")

    def __str__(self) -> str:
        return str(self.args[0])


class AdventureImportError(AdventureBookError):
    """Raised when a file cannot be imported into the adventure library."""


__all__ = [
    "AdventureBookError",
    "AdventureDefinitionError",
    "AdventureImportError",
    "AdventureNotFoundError",
    "PassageNotFoundError",
    "ReferentialError",
    "StructuralError",
]
