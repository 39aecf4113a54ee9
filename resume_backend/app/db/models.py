"""SQLAlchemy ORM models for accounts, documents, content and relationships."""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Naive UTC timestamp, the storage convention for every datetime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class User(Base):
    """User table - the owner of documents and content."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(Text, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class ContactInfo(Base):
    """Contact info table - one row per user, shown on every document."""

    __tablename__ = "contact_info"

    username: Mapped[str] = mapped_column(
        Text, ForeignKey("users.username", ondelete="CASCADE"), primary_key=True
    )
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    linkedin: Mapped[str | None] = mapped_column(Text, nullable=True)
    github: Mapped[str | None] = mapped_column(Text, nullable=True)


class Document(Base):
    """Document table - resumes and templates assembled from owned content."""

    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("owner", "document_name", name="uq_document_owner_name"),
        # At most one master resume per owner.
        Index(
            "uq_document_owner_master",
            "owner",
            unique=True,
            sqlite_where=text("is_master"),
            postgresql_where=text("is_master"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner: Mapped[str] = mapped_column(
        Text, ForeignKey("users.username", ondelete="CASCADE"), nullable=False
    )
    document_name: Mapped[str] = mapped_column(Text, nullable=False)
    created_on: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    last_updated: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    is_master: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_template: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class Section(Base):
    """Section table - headings a document is divided into."""

    __tablename__ = "sections"
    __table_args__ = (Index("idx_section_owner", "owner"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner: Mapped[str] = mapped_column(
        Text, ForeignKey("users.username", ondelete="CASCADE"), nullable=False
    )
    section_name: Mapped[str] = mapped_column(Text, nullable=False)


class Education(Base):
    """Education table - owned content entity."""

    __tablename__ = "educations"
    __table_args__ = (Index("idx_education_owner", "owner"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner: Mapped[str] = mapped_column(
        Text, ForeignKey("users.username", ondelete="CASCADE"), nullable=False
    )
    school: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    degree: Mapped[str] = mapped_column(Text, nullable=False)
    gpa: Mapped[str | None] = mapped_column(Text, nullable=True)
    awards_and_honors: Mapped[str | None] = mapped_column(Text, nullable=True)
    activities: Mapped[str | None] = mapped_column(Text, nullable=True)


class Experience(Base):
    """Experience table - owned content entity."""

    __tablename__ = "experiences"
    __table_args__ = (Index("idx_experience_owner", "owner"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner: Mapped[str] = mapped_column(
        Text, ForeignKey("users.username", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    organization: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)


class TextSnippet(Base):
    """Text snippet table - append-only versions keyed by (lineage id, version).

    ``parent`` records the version a row was derived from. It is informational
    only and carries no foreign key, so deleting an old version never touches
    its descendants.
    """

    __tablename__ = "text_snippets"
    __table_args__ = (Index("idx_text_snippet_owner", "owner"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    version: Mapped[datetime] = mapped_column(DateTime, primary_key=True)
    owner: Mapped[str] = mapped_column(
        Text, ForeignKey("users.username", ondelete="CASCADE"), nullable=False
    )
    parent: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)


class DocumentXSection(Base):
    """Document-section relationship with ordering."""

    __tablename__ = "documents_x_sections"
    __table_args__ = (
        UniqueConstraint("document_id", "position", name="uq_dxs_document_position"),
        CheckConstraint("position >= 0", name="ck_dxs_position"),
    )

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True
    )
    section_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("sections.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)


class DocumentXEducation(Base):
    """Document-education relationship with ordering."""

    __tablename__ = "documents_x_educations"
    __table_args__ = (
        UniqueConstraint("document_id", "position", name="uq_dxed_document_position"),
        CheckConstraint("position >= 0", name="ck_dxed_position"),
    )

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True
    )
    education_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("educations.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)


class DocumentXExperience(Base):
    """Document-experience relationship with ordering.

    Has a surrogate ``id`` because text snippets are attached to an experience
    as it appears in one particular document.
    """

    __tablename__ = "documents_x_experiences"
    __table_args__ = (
        UniqueConstraint("document_id", "experience_id", name="uq_dxex_document_experience"),
        UniqueConstraint("document_id", "position", name="uq_dxex_document_position"),
        CheckConstraint("position >= 0", name="ck_dxex_position"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False
    )
    experience_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("experiences.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)


class ExperienceXTextSnippet(Base):
    """Experience-text snippet relationship, scoped to one document-experience pairing."""

    __tablename__ = "experiences_x_text_snippets"
    __table_args__ = (
        ForeignKeyConstraint(
            ["text_snippet_id", "text_snippet_version"],
            ["text_snippets.id", "text_snippets.version"],
            ondelete="CASCADE",
            name="fk_ext_text_snippet",
        ),
        UniqueConstraint(
            "document_x_experience_id", "position", name="uq_ext_scope_position"
        ),
        CheckConstraint("position >= 0", name="ck_ext_position"),
        Index("idx_ext_text_snippet", "text_snippet_id", "text_snippet_version"),
    )

    document_x_experience_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("documents_x_experiences.id", ondelete="CASCADE"), primary_key=True
    )
    text_snippet_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    text_snippet_version: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
