"""Relationship kinds and item kinds, configured once and shared."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from resume_backend.app.composition.relationships import RelationshipKind
from resume_backend.app.db.models import (
    Document,
    DocumentXEducation,
    DocumentXExperience,
    DocumentXSection,
    Education,
    Experience,
    ExperienceXTextSnippet,
    Section,
)
from resume_backend.app.models import content

DOCUMENT_X_EDUCATION = RelationshipKind(
    name="documents_x_educations",
    model=DocumentXEducation,
    parent_key="document_id",
    child_key="education_id",
    parent_model=Document,
    parent_label="document",
    child_label="education",
)

DOCUMENT_X_EXPERIENCE = RelationshipKind(
    name="documents_x_experiences",
    model=DocumentXExperience,
    parent_key="document_id",
    child_key="experience_id",
    parent_model=Document,
    parent_label="document",
    child_label="experience",
)

DOCUMENT_X_SECTION = RelationshipKind(
    name="documents_x_sections",
    model=DocumentXSection,
    parent_key="document_id",
    child_key="section_id",
    parent_model=Document,
    parent_label="document",
    child_label="section",
)

EXPERIENCE_X_TEXT_SNIPPET = RelationshipKind(
    name="experiences_x_text_snippets",
    model=ExperienceXTextSnippet,
    parent_key="document_x_experience_id",
    child_key="text_snippet_id",
    parent_model=DocumentXExperience,
    parent_label="experience in the document",
    child_label="text snippet",
)


@dataclass(frozen=True)
class ItemKind:
    """A kind of content entity that documents reference through a join table.

    ``master_only`` items can only be created while attaching them to the
    owner's master resume.
    """

    name: str
    label: str
    model: type[Any]
    record: type[BaseModel]
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    relationship: RelationshipKind[Any]
    master_only: bool

    @property
    def required_fields(self) -> frozenset[str]:
        """Columns that an update may change but never clear."""
        return frozenset(
            column.name
            for column in self.model.__table__.columns
            if not column.nullable and column.name not in ("id", "owner")
        )


EDUCATION = ItemKind(
    name="educations",
    label="education",
    model=Education,
    record=content.Education,
    create_schema=content.EducationCreate,
    update_schema=content.EducationUpdate,
    relationship=DOCUMENT_X_EDUCATION,
    master_only=True,
)

EXPERIENCE = ItemKind(
    name="experiences",
    label="experience",
    model=Experience,
    record=content.Experience,
    create_schema=content.ExperienceCreate,
    update_schema=content.ExperienceUpdate,
    relationship=DOCUMENT_X_EXPERIENCE,
    master_only=True,
)

SECTION = ItemKind(
    name="sections",
    label="section",
    model=Section,
    record=content.Section,
    create_schema=content.SectionCreate,
    update_schema=content.SectionUpdate,
    relationship=DOCUMENT_X_SECTION,
    master_only=False,
)

ITEM_KINDS: dict[str, ItemKind] = {kind.name: kind for kind in (EDUCATION, EXPERIENCE, SECTION)}
