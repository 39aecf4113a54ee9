"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-17

Creates:
- users, contact_info
- documents
- sections, educations, experiences, text_snippets
- documents_x_sections, documents_x_educations, documents_x_experiences
- experiences_x_text_snippets
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _owner_column() -> sa.Column:
    return sa.Column(
        "owner",
        sa.Text(),
        sa.ForeignKey("users.username", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "users",
        sa.Column("username", sa.Text(), primary_key=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "contact_info",
        sa.Column(
            "username",
            sa.Text(),
            sa.ForeignKey("users.username", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("linkedin", sa.Text(), nullable=True),
        sa.Column("github", sa.Text(), nullable=True),
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner_column(),
        sa.Column("document_name", sa.Text(), nullable=False),
        sa.Column("created_on", sa.DateTime(), nullable=False),
        sa.Column("last_updated", sa.DateTime(), nullable=True),
        sa.Column("is_master", sa.Boolean(), nullable=False),
        sa.Column("is_template", sa.Boolean(), nullable=False),
        sa.Column("is_locked", sa.Boolean(), nullable=False),
        sa.UniqueConstraint("owner", "document_name", name="uq_document_owner_name"),
    )
    # At most one master resume per owner
    op.create_index(
        "uq_document_owner_master",
        "documents",
        ["owner"],
        unique=True,
        sqlite_where=sa.text("is_master"),
        postgresql_where=sa.text("is_master"),
    )

    op.create_table(
        "sections",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner_column(),
        sa.Column("section_name", sa.Text(), nullable=False),
    )
    op.create_index("idx_section_owner", "sections", ["owner"])

    op.create_table(
        "educations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner_column(),
        sa.Column("school", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("degree", sa.Text(), nullable=False),
        sa.Column("gpa", sa.Text(), nullable=True),
        sa.Column("awards_and_honors", sa.Text(), nullable=True),
        sa.Column("activities", sa.Text(), nullable=True),
    )
    op.create_index("idx_education_owner", "educations", ["owner"])

    op.create_table(
        "experiences",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner_column(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("organization", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
    )
    op.create_index("idx_experience_owner", "experiences", ["owner"])

    op.create_table(
        "text_snippets",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("version", sa.DateTime(), primary_key=True),
        _owner_column(),
        sa.Column("parent", sa.DateTime(), nullable=True),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
    )
    op.create_index("idx_text_snippet_owner", "text_snippets", ["owner"])

    op.create_table(
        "documents_x_sections",
        sa.Column(
            "document_id",
            sa.Uuid(),
            sa.ForeignKey("documents.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "section_id",
            sa.Uuid(),
            sa.ForeignKey("sections.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.UniqueConstraint("document_id", "position", name="uq_dxs_document_position"),
        sa.CheckConstraint("position >= 0", name="ck_dxs_position"),
    )

    op.create_table(
        "documents_x_educations",
        sa.Column(
            "document_id",
            sa.Uuid(),
            sa.ForeignKey("documents.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "education_id",
            sa.Uuid(),
            sa.ForeignKey("educations.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.UniqueConstraint("document_id", "position", name="uq_dxed_document_position"),
        sa.CheckConstraint("position >= 0", name="ck_dxed_position"),
    )

    op.create_table(
        "documents_x_experiences",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "document_id",
            sa.Uuid(),
            sa.ForeignKey("documents.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "experience_id",
            sa.Uuid(),
            sa.ForeignKey("experiences.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.UniqueConstraint(
            "document_id", "experience_id", name="uq_dxex_document_experience"
        ),
        sa.UniqueConstraint("document_id", "position", name="uq_dxex_document_position"),
        sa.CheckConstraint("position >= 0", name="ck_dxex_position"),
    )

    op.create_table(
        "experiences_x_text_snippets",
        sa.Column(
            "document_x_experience_id",
            sa.Uuid(),
            sa.ForeignKey("documents_x_experiences.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("text_snippet_id", sa.Uuid(), primary_key=True),
        sa.Column("text_snippet_version", sa.DateTime(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["text_snippet_id", "text_snippet_version"],
            ["text_snippets.id", "text_snippets.version"],
            ondelete="CASCADE",
            name="fk_ext_text_snippet",
        ),
        sa.UniqueConstraint(
            "document_x_experience_id", "position", name="uq_ext_scope_position"
        ),
        sa.CheckConstraint("position >= 0", name="ck_ext_position"),
    )
    op.create_index(
        "idx_ext_text_snippet",
        "experiences_x_text_snippets",
        ["text_snippet_id", "text_snippet_version"],
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("idx_ext_text_snippet", table_name="experiences_x_text_snippets")
    op.drop_table("experiences_x_text_snippets")
    op.drop_table("documents_x_experiences")
    op.drop_table("documents_x_educations")
    op.drop_table("documents_x_sections")
    op.drop_index("idx_text_snippet_owner", table_name="text_snippets")
    op.drop_table("text_snippets")
    op.drop_index("idx_experience_owner", table_name="experiences")
    op.drop_table("experiences")
    op.drop_index("idx_education_owner", table_name="educations")
    op.drop_table("educations")
    op.drop_index("idx_section_owner", table_name="sections")
    op.drop_table("sections")
    op.drop_index("uq_document_owner_master", table_name="documents")
    op.drop_table("documents")
    op.drop_table("contact_info")
    op.drop_table("users")
