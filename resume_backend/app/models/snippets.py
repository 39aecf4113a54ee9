"""Text snippet models (versioned content)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TextSnippet(BaseModel):
    """One immutable version of a text snippet lineage."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID  # lineage id, shared by every version
    version: datetime
    owner: str
    parent: datetime | None = None
    type: str
    content: str


class TextSnippetCreate(BaseModel):
    type: str = Field(..., min_length=1, max_length=50)
    content: str = Field(..., min_length=1)


class TextSnippetEdit(BaseModel):
    """Changes for a new version; omitted fields are inherited."""

    type: str | None = Field(None, min_length=1, max_length=50)
    content: str | None = Field(None, min_length=1)
