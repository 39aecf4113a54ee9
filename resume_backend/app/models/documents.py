"""Document models."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from resume_backend.app.models.contact_info import ContactInfo
from resume_backend.app.models.content import Education, Section
from resume_backend.app.models.snippets import TextSnippet


class Document(BaseModel):
    """Document metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner: str
    document_name: str
    created_on: datetime
    last_updated: datetime | None = None
    is_master: bool
    is_template: bool
    is_locked: bool


class DocumentCreate(BaseModel):
    document_name: str = Field(..., min_length=1, max_length=200)
    is_template: bool = False


class DocumentUpdate(BaseModel):
    """Document changes. ``is_master`` is fixed at creation and never updated."""

    document_name: str | None = Field(None, min_length=1, max_length=200)
    is_template: bool | None = None
    is_locked: bool | None = None


class ExperienceWithSnippets(BaseModel):
    """An experience as placed in a document, with its ordered bullets."""

    id: UUID
    title: str
    organization: str
    location: str
    start_date: date
    end_date: date | None = None
    text_snippets: list[TextSnippet] = []


class DocumentContent(BaseModel):
    """Everything needed to display a document, each list in position order."""

    document: Document
    contact_info: ContactInfo | None = None
    sections: list[Section] = []
    educations: list[Education] = []
    experiences: list[ExperienceWithSnippets] = []
