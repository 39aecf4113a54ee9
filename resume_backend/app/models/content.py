"""Content entity models: educations, experiences and sections."""

from datetime import date
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PartialUpdate(BaseModel):
    """Base for partial updates.

    Only fields present in the request are applied. An empty string or null
    clears an optional field.
    """

    @field_validator("*", mode="before")
    @classmethod
    def empty_string_clears(cls, value: Any) -> Any:
        return None if value == "" else value


class Education(BaseModel):
    """Education as stored in the owner's library."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner: str
    school: str
    location: str
    start_date: date
    end_date: date
    degree: str
    gpa: str | None = None
    awards_and_honors: str | None = None
    activities: str | None = None


class EducationCreate(BaseModel):
    """Properties for a new education."""

    school: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    degree: str = Field(..., min_length=1)
    gpa: str | None = None
    awards_and_honors: str | None = None
    activities: str | None = None

    @model_validator(mode="after")
    def check_dates(self) -> "EducationCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EducationUpdate(PartialUpdate):
    school: str | None = None
    location: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    degree: str | None = None
    gpa: str | None = None
    awards_and_honors: str | None = None
    activities: str | None = None


class Experience(BaseModel):
    """Experience as stored in the owner's library."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner: str
    title: str
    organization: str
    location: str
    start_date: date
    end_date: date | None = None


class ExperienceCreate(BaseModel):
    """Properties for a new experience."""

    title: str = Field(..., min_length=1)
    organization: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    start_date: date
    end_date: date | None = None

    @model_validator(mode="after")
    def check_dates(self) -> "ExperienceCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ExperienceUpdate(PartialUpdate):
    title: str | None = None
    organization: str | None = None
    location: str | None = None
    start_date: date | None = None
    end_date: date | None = None


class Section(BaseModel):
    """Section heading."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner: str
    section_name: str


class SectionCreate(BaseModel):
    section_name: str = Field(..., min_length=1, max_length=100)


class SectionUpdate(PartialUpdate):
    section_name: str | None = Field(None, max_length=100)
