"""User account models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from resume_backend.app.models.documents import Document


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    username: str
    created_at: datetime


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_.-]+$")


class Account(BaseModel):
    """A new account together with its master resume."""

    user: User
    master_document: Document
