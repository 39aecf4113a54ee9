"""Domain models for the resume backend."""

from resume_backend.app.models.contact_info import ContactInfo, ContactInfoUpsert, UpsertResult
from resume_backend.app.models.content import (
    Education,
    EducationCreate,
    EducationUpdate,
    Experience,
    ExperienceCreate,
    ExperienceUpdate,
    PartialUpdate,
    Section,
    SectionCreate,
    SectionUpdate,
)
from resume_backend.app.models.documents import (
    Document,
    DocumentContent,
    DocumentCreate,
    DocumentUpdate,
    ExperienceWithSnippets,
)
from resume_backend.app.models.relationships import (
    DocumentItemRelationship,
    ReorderRequest,
    SnippetRelationship,
)
from resume_backend.app.models.snippets import TextSnippet, TextSnippetCreate, TextSnippetEdit
from resume_backend.app.models.users import Account, User, UserCreate

__all__ = [
    # Contact info
    "ContactInfo",
    "ContactInfoUpsert",
    "UpsertResult",
    # Content
    "Education",
    "EducationCreate",
    "EducationUpdate",
    "Experience",
    "ExperienceCreate",
    "ExperienceUpdate",
    "PartialUpdate",
    "Section",
    "SectionCreate",
    "SectionUpdate",
    # Documents
    "Document",
    "DocumentContent",
    "DocumentCreate",
    "DocumentUpdate",
    "ExperienceWithSnippets",
    # Relationships
    "DocumentItemRelationship",
    "ReorderRequest",
    "SnippetRelationship",
    # Snippets
    "TextSnippet",
    "TextSnippetCreate",
    "TextSnippetEdit",
    # Users
    "Account",
    "User",
    "UserCreate",
]
