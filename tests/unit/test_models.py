"""Unit tests for request models and item kind configuration."""

from datetime import date

import pytest
from pydantic import ValidationError

from resume_backend.app.composition.kinds import EDUCATION, EXPERIENCE, ITEM_KINDS, SECTION
from resume_backend.app.models import (
    ContactInfoUpsert,
    EducationCreate,
    EducationUpdate,
    ExperienceCreate,
    SectionCreate,
    TextSnippetCreate,
)


def test_partial_update_tracks_only_sent_fields() -> None:
    update = EducationUpdate.model_validate({"gpa": "3.9"})

    assert update.model_dump(exclude_unset=True) == {"gpa": "3.9"}


def test_partial_update_empty_string_clears() -> None:
    update = EducationUpdate.model_validate({"gpa": "", "activities": None})

    assert update.model_dump(exclude_unset=True) == {"gpa": None, "activities": None}


def test_contact_info_upsert_empty_string_clears() -> None:
    upsert = ContactInfoUpsert.model_validate({"github": ""})

    assert upsert.model_dump(exclude_unset=True) == {"github": None}


def test_experience_end_date_before_start_rejected() -> None:
    with pytest.raises(ValidationError, match="end_date must not be before start_date"):
        ExperienceCreate(
            title="Engineer",
            organization="Acme",
            location="Remote",
            start_date=date(2024, 1, 1),
            end_date=date(2023, 1, 1),
        )


def test_education_end_date_before_start_rejected() -> None:
    with pytest.raises(ValidationError, match="end_date must not be before start_date"):
        EducationCreate(
            school="State",
            location="Springfield",
            start_date=date(2014, 1, 1),
            end_date=date(2010, 1, 1),
            degree="BSc",
        )


def test_experience_without_end_date_is_current() -> None:
    experience = ExperienceCreate(
        title="Engineer", organization="Acme", location="Remote", start_date=date(2024, 1, 1)
    )

    assert experience.end_date is None


@pytest.mark.parametrize("name", ["", "x" * 101])
def test_section_name_length(name: str) -> None:
    with pytest.raises(ValidationError):
        SectionCreate(section_name=name)


def test_text_snippet_requires_content() -> None:
    with pytest.raises(ValidationError):
        TextSnippetCreate(type="plain", content="")


def test_item_kinds_registered_by_name() -> None:
    assert ITEM_KINDS == {
        "educations": EDUCATION,
        "experiences": EXPERIENCE,
        "sections": SECTION,
    }


def test_required_fields_come_from_non_nullable_columns() -> None:
    assert EDUCATION.required_fields == {
        "school",
        "location",
        "start_date",
        "end_date",
        "degree",
    }
    assert EXPERIENCE.required_fields == {
        "title",
        "organization",
        "location",
        "start_date",
    }
    assert SECTION.required_fields == {"section_name"}


def test_master_only_kinds() -> None:
    assert EDUCATION.master_only
    assert EXPERIENCE.master_only
    assert not SECTION.master_only
