"""Contact info models and the upsert result."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from resume_backend.app.models.content import PartialUpdate


class ContactInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    username: str
    full_name: str
    location: str | None = None
    email: str | None = None
    phone: str | None = None
    linkedin: str | None = None
    github: str | None = None


class ContactInfoUpsert(PartialUpdate):
    """Contact info changes. ``full_name`` is required only on first save."""

    full_name: str | None = Field(None, max_length=200)
    location: str | None = None
    email: str | None = None
    phone: str | None = None
    linkedin: str | None = None
    github: str | None = None


class UpsertResult(BaseModel):
    """Tagged result of an upsert: whether the row was created or updated."""

    outcome: Literal["created", "updated"]
    contact_info: ContactInfo
