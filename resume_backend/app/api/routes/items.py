"""Item endpoints for educations, experiences and sections.

Every kind gets the same routes, built from its ``ItemKind``:

- ``/documents/{document_id}/<kind>``: create and attach, attach existing,
  reorder, list, detach
- ``/<kind>``: list the library, update and delete an item
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, create_model

from resume_backend.app.api.deps import CompositionDep
from resume_backend.app.composition.kinds import ITEM_KINDS, ItemKind
from resume_backend.app.models import DocumentItemRelationship, ReorderRequest


def build_item_routers(kind: ItemKind) -> tuple[APIRouter, APIRouter]:
    """Create the document-scoped router and the library router for one kind."""
    record = kind.record
    create_schema = kind.create_schema
    update_schema = kind.update_schema
    created = create_model(
        f"{kind.label.capitalize()}Created",
        item=(record, ...),
        relationship=(DocumentItemRelationship, ...),
    )

    in_document = APIRouter(prefix=f"/documents/{{document_id}}/{kind.name}", tags=[kind.name])
    library = APIRouter(prefix=f"/{kind.name}", tags=[kind.name])

    @in_document.post("", response_model=created, status_code=status.HTTP_201_CREATED)
    async def create_and_attach(
        document_id: UUID, request: create_schema, service: CompositionDep  # type: ignore[valid-type]
    ) -> Any:
        item, relationship = await service.create_and_attach_item(kind, document_id, request)
        return created(item=item, relationship=relationship)

    @in_document.post(
        "/{item_id}",
        response_model=DocumentItemRelationship,
        status_code=status.HTTP_201_CREATED,
    )
    async def attach(
        document_id: UUID, item_id: UUID, service: CompositionDep
    ) -> DocumentItemRelationship:
        return await service.attach_item(kind, document_id, item_id)

    @in_document.put("", response_model=list[record])  # type: ignore[valid-type]
    async def reorder(
        document_id: UUID, request: ReorderRequest, service: CompositionDep
    ) -> list[BaseModel]:
        return await service.reorder_items(kind, document_id, request.ids)

    @in_document.get("", response_model=list[record])  # type: ignore[valid-type]
    async def list_in_document(document_id: UUID, service: CompositionDep) -> list[BaseModel]:
        return await service.list_items(kind, document_id)

    @in_document.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def detach(document_id: UUID, item_id: UUID, service: CompositionDep) -> Response:
        await service.detach_item(kind, document_id, item_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @library.get("", response_model=list[record])  # type: ignore[valid-type]
    async def list_owned(service: CompositionDep) -> list[BaseModel]:
        return await service.list_owned_items(kind)

    @library.patch("/{item_id}", response_model=record)
    async def update(
        item_id: UUID, request: update_schema, service: CompositionDep  # type: ignore[valid-type]
    ) -> BaseModel:
        return await service.update_item(kind, item_id, request)

    @library.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete(item_id: UUID, service: CompositionDep) -> Response:
        await service.delete_item(kind, item_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return in_document, library


routers: list[APIRouter] = [
    router for kind in ITEM_KINDS.values() for router in build_item_routers(kind)
]
