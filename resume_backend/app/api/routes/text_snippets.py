"""Text snippet endpoints.

Snippets are attached to an experience as it appears in one document. Editing
a snippet creates a new version and moves every document to it.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from resume_backend.app.api.deps import CompositionDep
from resume_backend.app.models import (
    ReorderRequest,
    SnippetRelationship,
    TextSnippet,
    TextSnippetCreate,
    TextSnippetEdit,
)

in_experience = APIRouter(
    prefix="/documents/{document_id}/experiences/{experience_id}/text-snippets",
    tags=["text-snippets"],
)
library = APIRouter(prefix="/text-snippets", tags=["text-snippets"])


class TextSnippetCreated(BaseModel):
    """Response for creating a text snippet in an experience."""

    text_snippet: TextSnippet
    relationship: SnippetRelationship


@in_experience.post("", response_model=TextSnippetCreated, status_code=status.HTTP_201_CREATED)
async def create_text_snippet(
    document_id: UUID,
    experience_id: UUID,
    request: TextSnippetCreate,
    service: CompositionDep,
) -> TextSnippetCreated:
    """Create a text snippet and append it to an experience in the master resume."""
    snippet, relationship = await service.create_snippet(document_id, experience_id, request)
    return TextSnippetCreated(text_snippet=snippet, relationship=relationship)


@in_experience.post(
    "/{text_snippet_id}/{version}",
    response_model=SnippetRelationship,
    status_code=status.HTTP_201_CREATED,
)
async def attach_text_snippet(
    document_id: UUID,
    experience_id: UUID,
    text_snippet_id: UUID,
    version: datetime,
    service: CompositionDep,
) -> SnippetRelationship:
    """Attach the current version of a text snippet to an experience."""
    return await service.attach_snippet(document_id, experience_id, text_snippet_id, version)


@in_experience.get("", response_model=list[TextSnippet])
async def list_text_snippets(
    document_id: UUID, experience_id: UUID, service: CompositionDep
) -> list[TextSnippet]:
    return await service.list_snippets(document_id, experience_id)


@in_experience.put("", response_model=list[TextSnippet])
async def reorder_text_snippets(
    document_id: UUID,
    experience_id: UUID,
    request: ReorderRequest,
    service: CompositionDep,
) -> list[TextSnippet]:
    return await service.reorder_snippets(document_id, experience_id, request.ids)


@in_experience.delete("/{text_snippet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def detach_text_snippet(
    document_id: UUID,
    experience_id: UUID,
    text_snippet_id: UUID,
    service: CompositionDep,
) -> Response:
    await service.detach_snippet(document_id, experience_id, text_snippet_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@library.get("", response_model=list[TextSnippet])
async def list_text_snippets_library(service: CompositionDep) -> list[TextSnippet]:
    """Every version of every snippet the user owns."""
    return await service.list_owned_snippets()


@library.get("/{text_snippet_id}", response_model=list[TextSnippet])
async def list_text_snippet_versions(
    text_snippet_id: UUID, service: CompositionDep
) -> list[TextSnippet]:
    """Version history, oldest first."""
    return await service.list_snippet_versions(text_snippet_id)


@library.patch(
    "/{text_snippet_id}/{version}",
    response_model=TextSnippet,
    status_code=status.HTTP_201_CREATED,
)
async def edit_text_snippet(
    text_snippet_id: UUID,
    version: datetime,
    request: TextSnippetEdit,
    service: CompositionDep,
) -> TextSnippet:
    """Create a new version. ``version`` must be the current one."""
    return await service.edit_snippet_content(text_snippet_id, version, request)


@library.delete("/{text_snippet_id}/{version}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_text_snippet(
    text_snippet_id: UUID, version: datetime, service: CompositionDep
) -> Response:
    await service.delete_snippet(text_snippet_id, version)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
