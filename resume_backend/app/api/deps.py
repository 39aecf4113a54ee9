"""Service dependencies shared by the routers."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from resume_backend.app.api.auth import get_current_context
from resume_backend.app.composition.documents import DocumentService
from resume_backend.app.composition.service import CompositionService
from resume_backend.app.db.context import RequestContext
from resume_backend.app.db.engine import get_session


async def get_composition_service(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CompositionService:
    return CompositionService(session, ctx)


async def get_document_service(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DocumentService:
    return DocumentService(session, ctx)


CompositionDep = Annotated[CompositionService, Depends(get_composition_service)]
DocumentServiceDep = Annotated[DocumentService, Depends(get_document_service)]
