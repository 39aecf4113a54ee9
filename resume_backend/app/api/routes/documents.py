"""Document endpoints - create, list, display, update and delete resumes."""

from uuid import UUID

from fastapi import APIRouter, Response, status

from resume_backend.app.api.deps import DocumentServiceDep
from resume_backend.app.models import Document, DocumentContent, DocumentCreate, DocumentUpdate

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", response_model=Document, status_code=status.HTTP_201_CREATED)
async def create_document(request: DocumentCreate, service: DocumentServiceDep) -> Document:
    return await service.create_document(request)


@router.get("", response_model=list[Document])
async def list_documents(service: DocumentServiceDep) -> list[Document]:
    return await service.list_documents()


@router.get("/{document_id}", response_model=DocumentContent)
async def get_document(document_id: UUID, service: DocumentServiceDep) -> DocumentContent:
    """Document with contact info, sections, educations and experiences in position order."""
    return await service.get_document_content(document_id)


@router.patch("/{document_id}", response_model=Document)
async def update_document(
    document_id: UUID, request: DocumentUpdate, service: DocumentServiceDep
) -> Document:
    return await service.update_document(document_id, request)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(document_id: UUID, service: DocumentServiceDep) -> Response:
    await service.delete_document(document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
