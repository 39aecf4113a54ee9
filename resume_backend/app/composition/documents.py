"""Accounts, contact info and document-level operations."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from resume_backend.app.composition.kinds import EDUCATION, SECTION
from resume_backend.app.composition.ownership import verify_owner
from resume_backend.app.composition.service import items_in_document
from resume_backend.app.composition.snippets import SnippetStore
from resume_backend.app.config import Settings, get_settings
from resume_backend.app.db.context import RequestContext
from resume_backend.app.db.engine import unit_of_work
from resume_backend.app.db.integrity import classify_integrity_error
from resume_backend.app.db.models import ContactInfo as ContactInfoRow
from resume_backend.app.db.models import Document as DocumentRow
from resume_backend.app.db.models import DocumentXExperience
from resume_backend.app.db.models import Experience as ExperienceRow
from resume_backend.app.db.models import User as UserRow
from resume_backend.app.db.models import utcnow
from resume_backend.app.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from resume_backend.app.models import (
    Account,
    ContactInfo,
    ContactInfoUpsert,
    Document,
    DocumentContent,
    DocumentCreate,
    DocumentUpdate,
    Experience,
    ExperienceWithSnippets,
    TextSnippet,
    UpsertResult,
    User,
)
from resume_backend.app.utils.logging import track_operation

logger = logging.getLogger(__name__)


async def create_account(
    session: AsyncSession, username: str, settings: Settings | None = None
) -> Account:
    """Register a user and create their master resume in one transaction.

    Args:
        session: Database session
        username: Name for the new account
        settings: Application settings, for the master resume's name

    Returns:
        The new user and master document

    Raises:
        ConflictError: If the username is taken
    """
    settings = settings or get_settings()
    ctx = RequestContext(username=username)

    async with track_operation(ctx, "create_account"):
        async with unit_of_work(session):
            if await session.get(UserRow, username) is not None:
                raise ConflictError(f"Username {username} already taken.")

            user = UserRow(username=username, created_at=utcnow())
            session.add(user)
            await session.flush()

            master = DocumentRow(
                id=uuid.uuid4(),
                owner=username,
                document_name=settings.master_document_name,
                created_on=utcnow(),
                is_master=True,
                is_template=False,
                is_locked=False,
            )
            session.add(master)
            await session.flush()

            logger.info("account %r created with master resume %s", username, master.id)
            return Account(
                user=User.model_validate(user),
                master_document=Document.model_validate(master),
            )


class DocumentService:
    """Document and contact info operations for one requesting user."""

    def __init__(self, session: AsyncSession, ctx: RequestContext) -> None:
        self._session = session
        self._ctx = ctx

    @property
    def username(self) -> str:
        return self._ctx.username

    async def upsert_contact_info(self, props: ContactInfoUpsert) -> UpsertResult:
        """Create or update the user's contact info.

        ``full_name`` is required when the row is first created and can never
        be cleared afterwards. Other fields are cleared by ``None`` or ``""``.

        Returns:
            Tagged result telling whether the row was created or updated

        Raises:
            NotFoundError: If the user account does not exist
            BadRequestError: If ``full_name`` is missing on creation or cleared
        """
        async with track_operation(self._ctx, "upsert_contact_info"):
            async with unit_of_work(self._session):
                if await self._session.get(UserRow, self.username) is None:
                    raise NotFoundError(f"Can not find user {self.username}.")

                changes = props.model_dump(exclude_unset=True)
                row = await self._session.get(ContactInfoRow, self.username)

                if row is None:
                    if not changes.get("full_name"):
                        raise BadRequestError(
                            "Full name is required when creating contact info."
                        )
                    row = ContactInfoRow(username=self.username, **changes)
                    self._session.add(row)
                    outcome = "created"
                else:
                    if "full_name" in changes and changes["full_name"] is None:
                        raise BadRequestError("Full name can not be removed.")
                    for field, value in changes.items():
                        setattr(row, field, value)
                    outcome = "updated"

                await self._session.flush()
                return UpsertResult(
                    outcome=outcome, contact_info=ContactInfo.model_validate(row)
                )

    async def create_document(self, props: DocumentCreate) -> Document:
        """Create a non-master document.

        Raises:
            ConflictError: If the user already has a document with this name
        """
        async with track_operation(self._ctx, "create_document"):
            async with unit_of_work(self._session):
                if await self._session.get(UserRow, self.username) is None:
                    raise NotFoundError(f"Can not find user {self.username}.")
                await self._check_name_free(props.document_name)

                document = DocumentRow(
                    id=uuid.uuid4(),
                    owner=self.username,
                    document_name=props.document_name,
                    created_on=utcnow(),
                    is_master=False,
                    is_template=props.is_template,
                    is_locked=False,
                )
                self._session.add(document)
                await self._flush_document()
                return Document.model_validate(document)

    async def list_documents(self) -> list[Document]:
        async with track_operation(self._ctx, "list_documents"):
            result = await self._session.execute(
                select(DocumentRow)
                .where(DocumentRow.owner == self.username)
                .order_by(DocumentRow.created_on, DocumentRow.document_name)
            )
            return [Document.model_validate(row) for row in result.scalars().all()]

    async def get_document_content(self, document_id: uuid.UUID) -> DocumentContent:
        """Everything needed to display a document, each list in position order."""
        async with track_operation(self._ctx, "get_document", document_id=document_id):
            document = await self._owned_document(document_id)
            contact_info = await self._session.get(ContactInfoRow, self.username)

            result = await self._session.execute(
                select(ExperienceRow, DocumentXExperience.id)
                .join(DocumentXExperience, DocumentXExperience.experience_id == ExperienceRow.id)
                .where(DocumentXExperience.document_id == document_id)
                .order_by(DocumentXExperience.position)
            )
            snippets = SnippetStore(self._session)
            experiences = []
            for experience, scope_id in result.all():
                bullets = await snippets.list_in_scope(scope_id)
                experiences.append(
                    ExperienceWithSnippets(
                        **Experience.model_validate(experience).model_dump(exclude={"owner"}),
                        text_snippets=[TextSnippet.model_validate(s) for s in bullets],
                    )
                )

            return DocumentContent(
                document=Document.model_validate(document),
                contact_info=(
                    ContactInfo.model_validate(contact_info) if contact_info else None
                ),
                sections=await items_in_document(self._session, SECTION, document_id),
                educations=await items_in_document(self._session, EDUCATION, document_id),
                experiences=experiences,
            )

    async def update_document(
        self, document_id: uuid.UUID, props: DocumentUpdate
    ) -> Document:
        """Update document properties.

        The master resume can only be renamed.

        Raises:
            BadRequestError: If nothing would change, or a master resume
                update touches anything but the name
            ConflictError: If the new name is already used by another document
        """
        async with track_operation(self._ctx, "update_document", document_id=document_id):
            async with unit_of_work(self._session):
                document = await self._owned_document(document_id)
                changes = props.model_dump(exclude_unset=True, exclude_none=True)

                if not changes:
                    raise BadRequestError("No document properties to update.")
                if document.is_master and set(changes) != {"document_name"}:
                    logger.warning(
                        "user %r attempted to update master resume %s with %s",
                        self.username,
                        document_id,
                        sorted(changes),
                    )
                    raise BadRequestError(
                        "Only document name can be updated for master resumes."
                    )

                new_name = changes.get("document_name")
                if new_name is not None and new_name != document.document_name:
                    await self._check_name_free(new_name)

                for field, value in changes.items():
                    setattr(document, field, value)
                document.last_updated = utcnow()

                await self._flush_document()
                return Document.model_validate(document)

    async def delete_document(self, document_id: uuid.UUID) -> None:
        """Delete a document and its relationships, keeping the content library.

        Deleting a document that does not exist is not an error.

        Raises:
            ForbiddenError: If the document is the master resume or belongs to
                someone else
        """
        async with track_operation(self._ctx, "delete_document", document_id=document_id):
            async with unit_of_work(self._session):
                try:
                    document = await self._owned_document(document_id)
                except NotFoundError:
                    return

                if document.is_master:
                    logger.warning(
                        "user %r attempted to delete master resume %s",
                        self.username,
                        document_id,
                    )
                    raise ForbiddenError("Can not delete master resume.")

                await self._session.delete(document)

    async def _owned_document(self, document_id: uuid.UUID) -> DocumentRow:
        return await verify_owner(
            self._session, DocumentRow, self.username, document_id, label="document"
        )

    async def _check_name_free(self, document_name: str) -> None:
        result = await self._session.execute(
            select(DocumentRow.id).where(
                DocumentRow.owner == self.username,
                DocumentRow.document_name == document_name,
            )
        )
        if result.first() is not None:
            raise ConflictError(f"Document with name {document_name!r} already exists.")

    async def _flush_document(self) -> None:
        try:
            await self._session.flush()
        except IntegrityError as e:
            if classify_integrity_error(e) == "unique":
                raise ConflictError("Document with this name already exists.") from e
            raise
