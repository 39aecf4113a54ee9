"""Relationship (join row) models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class DocumentItemRelationship(BaseModel):
    """An item attached to a document at an ordering position."""

    kind: str
    document_id: UUID
    item_id: UUID
    position: int
    relationship_id: UUID | None = None  # set for kinds with a surrogate key


class SnippetRelationship(BaseModel):
    """A text snippet version attached to an experience within one document."""

    document_x_experience_id: UUID
    text_snippet_id: UUID
    text_snippet_version: datetime
    position: int


class ReorderRequest(BaseModel):
    """New order for everything attached to a parent; must list each id once."""

    ids: list[UUID]
