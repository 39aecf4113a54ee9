"""Account endpoints - POST /users, PUT /users/me/contact-info."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from resume_backend.app.api.deps import DocumentServiceDep
from resume_backend.app.composition.documents import create_account
from resume_backend.app.config import Settings, get_settings
from resume_backend.app.db.engine import get_session
from resume_backend.app.models import Account, ContactInfoUpsert, UpsertResult, UserCreate

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=Account, status_code=status.HTTP_201_CREATED)
async def register(
    request: UserCreate,
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Account:
    """Create an account and its master resume."""
    return await create_account(session, request.username, settings)


@router.put("/me/contact-info", response_model=UpsertResult)
async def upsert_contact_info(
    request: ContactInfoUpsert,
    response: Response,
    service: DocumentServiceDep,
) -> UpsertResult:
    """Create or update contact info.

    Returns:
        201 when the contact info was created, 200 when it was updated
    """
    result = await service.upsert_contact_info(request)
    if result.outcome == "created":
        response.status_code = status.HTTP_201_CREATED
    return result
