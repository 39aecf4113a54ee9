"""Composition service - attach, order and detach content within documents.

Each public operation is one transaction and is tracked by
``track_operation``. Ownership is verified for both endpoints of every
relationship mutation. Policies (master-only creation, locked documents,
current-version-only snippet references) are checked here, before any store
is touched.
"""

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from resume_backend.app.composition.kinds import DOCUMENT_X_EXPERIENCE, ItemKind
from resume_backend.app.composition.ownership import verify_owner
from resume_backend.app.composition.relationships import RelationshipStore
from resume_backend.app.composition.snippets import SnippetStore, as_version
from resume_backend.app.db.context import RequestContext
from resume_backend.app.db.engine import unit_of_work
from resume_backend.app.db.models import Document as DocumentRow
from resume_backend.app.db.models import DocumentXExperience
from resume_backend.app.db.models import ExperienceXTextSnippet
from resume_backend.app.db.models import Experience as ExperienceRow
from resume_backend.app.db.models import TextSnippet as TextSnippetRow
from resume_backend.app.db.models import utcnow
from resume_backend.app.errors import BadRequestError, ConflictError, ForbiddenError
from resume_backend.app.models import (
    DocumentItemRelationship,
    SnippetRelationship,
    TextSnippet,
    TextSnippetCreate,
    TextSnippetEdit,
)
from resume_backend.app.utils.logging import track_operation

logger = logging.getLogger(__name__)


class CompositionService:
    """Operations on documents' content for one requesting user."""

    def __init__(self, session: AsyncSession, ctx: RequestContext) -> None:
        self._session = session
        self._ctx = ctx
        self._snippets = SnippetStore(session)

    @property
    def username(self) -> str:
        return self._ctx.username

    # ------------------------------------------------------------------
    # Document items (educations, experiences, sections)
    # ------------------------------------------------------------------

    async def attach_item(
        self, kind: ItemKind, document_id: uuid.UUID, item_id: uuid.UUID
    ) -> DocumentItemRelationship:
        """Attach an existing item to a document, after everything already there.

        Raises:
            NotFoundError: If the document or item does not exist
            ForbiddenError: If either belongs to someone else, or the document is locked
            ConflictError: If the item is already attached
        """
        async with track_operation(
            self._ctx, f"attach_{kind.label}", document_id=document_id, item_id=item_id
        ):
            async with unit_of_work(self._session):
                document = await self._owned_document(document_id)
                self._check_unlocked(document)
                await verify_owner(
                    self._session, kind.model, self.username, item_id, label=kind.label
                )

                row = await self._store(kind).append(document_id, item_id)
                document.last_updated = utcnow()
                return self._relationship(kind, row)

    async def create_and_attach_item(
        self, kind: ItemKind, document_id: uuid.UUID, props: BaseModel
    ) -> tuple[BaseModel, DocumentItemRelationship]:
        """Create an item and append it to a document in one transaction.

        Args:
            kind: Item kind to create
            document_id: Document receiving the new item
            props: Validated ``kind.create_schema`` instance

        Returns:
            The created item record and its relationship

        Raises:
            ForbiddenError: If the kind is master-only and the document is not
                the master resume, or the document is locked
        """
        async with track_operation(
            self._ctx, f"create_{kind.label}", document_id=document_id
        ):
            async with unit_of_work(self._session):
                document = await self._owned_document(document_id)
                self._check_unlocked(document)
                if kind.master_only:
                    self._check_master(document, kind.label)

                item = kind.model(id=uuid.uuid4(), owner=self.username, **props.model_dump())
                self._session.add(item)
                await self._session.flush()

                row = await self._store(kind).append(document_id, item.id)
                document.last_updated = utcnow()
                return kind.record.model_validate(item), self._relationship(kind, row)

    async def reorder_items(
        self,
        kind: ItemKind,
        document_id: uuid.UUID,
        ordered_item_ids: Sequence[uuid.UUID],
    ) -> list[BaseModel]:
        """Rewrite the order of a document's items.

        Returns:
            Items in their new order

        Raises:
            BadRequestError: If the ids are not exactly the attached items
        """
        async with track_operation(
            self._ctx, f"reorder_{kind.name}", document_id=document_id
        ):
            async with unit_of_work(self._session):
                document = await self._owned_document(document_id)
                self._check_unlocked(document)

                await self._store(kind).reorder(document_id, ordered_item_ids)
                document.last_updated = utcnow()
                return await items_in_document(self._session, kind, document_id)

    async def detach_item(
        self, kind: ItemKind, document_id: uuid.UUID, item_id: uuid.UUID
    ) -> None:
        """Remove an item from a document. Removing an absent item is a no-op."""
        async with track_operation(
            self._ctx, f"detach_{kind.label}", document_id=document_id, item_id=item_id
        ):
            async with unit_of_work(self._session):
                document = await self._owned_document(document_id)
                self._check_unlocked(document)

                if await self._store(kind).delete(document_id, item_id):
                    document.last_updated = utcnow()

    async def list_items(self, kind: ItemKind, document_id: uuid.UUID) -> list[BaseModel]:
        """Items attached to a document, in position order."""
        async with track_operation(self._ctx, f"list_{kind.name}", document_id=document_id):
            await self._owned_document(document_id)
            return await items_in_document(self._session, kind, document_id)

    async def list_owned_items(self, kind: ItemKind) -> list[BaseModel]:
        """Every item of a kind in the user's library."""
        async with track_operation(self._ctx, f"list_owned_{kind.name}"):
            result = await self._session.execute(
                select(kind.model)
                .where(kind.model.owner == self.username)
                .order_by(kind.model.id)
            )
            return [kind.record.model_validate(item) for item in result.scalars().all()]

    async def update_item(
        self, kind: ItemKind, item_id: uuid.UUID, props: BaseModel
    ) -> BaseModel:
        """Apply a partial update to an item.

        Only fields present in ``props`` change. ``None`` clears an optional
        field; clearing a required field is rejected. The change is visible in
        every document that references the item.

        Raises:
            BadRequestError: If a required field would be cleared, or the
                resulting dates are out of order
        """
        async with track_operation(self._ctx, f"update_{kind.label}", item_id=item_id):
            async with unit_of_work(self._session):
                item = await verify_owner(
                    self._session, kind.model, self.username, item_id, label=kind.label
                )

                changes: dict[str, Any] = props.model_dump(exclude_unset=True)
                cleared = sorted(
                    field
                    for field, value in changes.items()
                    if value is None and field in kind.required_fields
                )
                if cleared:
                    raise BadRequestError(
                        f"Can not remove required {kind.label} properties: {', '.join(cleared)}."
                    )

                for field, value in changes.items():
                    setattr(item, field, value)

                start_date = getattr(item, "start_date", None)
                end_date = getattr(item, "end_date", None)
                if start_date and end_date and end_date < start_date:
                    raise BadRequestError("End date can not be before start date.")

                await self._session.flush()
                return kind.record.model_validate(item)

    async def delete_item(self, kind: ItemKind, item_id: uuid.UUID) -> None:
        """Delete an item from the library and from every document."""
        async with track_operation(self._ctx, f"delete_{kind.label}", item_id=item_id):
            async with unit_of_work(self._session):
                item = await verify_owner(
                    self._session, kind.model, self.username, item_id, label=kind.label
                )
                await self._session.delete(item)

    # ------------------------------------------------------------------
    # Text snippets
    # ------------------------------------------------------------------

    async def create_snippet(
        self,
        document_id: uuid.UUID,
        experience_id: uuid.UUID,
        props: TextSnippetCreate,
    ) -> tuple[TextSnippet, SnippetRelationship]:
        """Create a snippet lineage and append it to an experience.

        Raises:
            ForbiddenError: If the document is not the master resume
            NotFoundError: If the experience is not in the document
        """
        async with track_operation(
            self._ctx,
            "create_text_snippet",
            document_id=document_id,
            experience_id=experience_id,
        ):
            async with unit_of_work(self._session):
                document = await self._owned_document(document_id)
                self._check_unlocked(document)
                self._check_master(document, "text snippet")
                scope = await self._scope(document_id, experience_id)

                snippet = await self._snippets.create_lineage(
                    self.username, props.type, props.content
                )
                row = await self._snippets.attach(scope.id, snippet.id, snippet.version)
                document.last_updated = utcnow()
                return TextSnippet.model_validate(snippet), self._snippet_relationship(row)

    async def attach_snippet(
        self,
        document_id: uuid.UUID,
        experience_id: uuid.UUID,
        lineage_id: uuid.UUID,
        version: datetime,
    ) -> SnippetRelationship:
        """Attach an existing snippet version to an experience within a document.

        Raises:
            ConflictError: If ``version`` is not the current version of the lineage
        """
        async with track_operation(
            self._ctx,
            "attach_text_snippet",
            document_id=document_id,
            experience_id=experience_id,
            text_snippet_id=lineage_id,
        ):
            async with unit_of_work(self._session):
                document = await self._owned_document(document_id)
                self._check_unlocked(document)
                scope = await self._scope(document_id, experience_id)
                snippet = await verify_owner(
                    self._session,
                    TextSnippetRow,
                    self.username,
                    (lineage_id, as_version(version)),
                    label="text snippet",
                )

                latest = await self._snippets.latest(lineage_id, lock=True)
                if latest.version != snippet.version:
                    raise ConflictError(
                        "Only the current version of a text snippet can be added "
                        "to an experience."
                    )

                row = await self._snippets.attach(scope.id, lineage_id, snippet.version)
                document.last_updated = utcnow()
                return self._snippet_relationship(row)

    async def edit_snippet_content(
        self,
        lineage_id: uuid.UUID,
        current_version: datetime,
        props: TextSnippetEdit,
    ) -> TextSnippet:
        """Write a new version of a snippet.

        Every experience referencing the lineage moves to the new version in
        the same transaction. The old version is kept.

        Raises:
            BadRequestError: If nothing would change
            ConflictError: If ``current_version`` has already been superseded
        """
        async with track_operation(
            self._ctx, "edit_text_snippet", text_snippet_id=lineage_id
        ):
            async with unit_of_work(self._session):
                prior = await verify_owner(
                    self._session,
                    TextSnippetRow,
                    self.username,
                    (lineage_id, as_version(current_version)),
                    label="text snippet",
                )

                latest = await self._snippets.latest(lineage_id, lock=True)
                if latest.version != prior.version:
                    raise ConflictError(
                        f"Text snippet with ID {lineage_id} has a newer version "
                        f"than {current_version}."
                    )

                changes = props.model_dump(exclude_unset=True, exclude_none=True)
                if not changes:
                    raise BadRequestError("No text snippet properties to update.")

                snippet = await self._snippets.create_version(prior, **changes)
                return TextSnippet.model_validate(snippet)

    async def reorder_snippets(
        self,
        document_id: uuid.UUID,
        experience_id: uuid.UUID,
        lineage_ids: Sequence[uuid.UUID],
    ) -> list[TextSnippet]:
        """Rewrite the order of an experience's snippets within a document."""
        async with track_operation(
            self._ctx,
            "reorder_text_snippets",
            document_id=document_id,
            experience_id=experience_id,
        ):
            async with unit_of_work(self._session):
                document = await self._owned_document(document_id)
                self._check_unlocked(document)
                scope = await self._scope(document_id, experience_id)

                await self._snippets.reorder(scope.id, lineage_ids)
                document.last_updated = utcnow()
                return [
                    TextSnippet.model_validate(snippet)
                    for snippet in await self._snippets.list_in_scope(scope.id)
                ]

    async def detach_snippet(
        self,
        document_id: uuid.UUID,
        experience_id: uuid.UUID,
        lineage_id: uuid.UUID,
    ) -> None:
        """Remove a snippet from an experience within a document if present."""
        async with track_operation(
            self._ctx,
            "detach_text_snippet",
            document_id=document_id,
            experience_id=experience_id,
            text_snippet_id=lineage_id,
        ):
            async with unit_of_work(self._session):
                document = await self._owned_document(document_id)
                self._check_unlocked(document)
                scope = await self._scope(document_id, experience_id)

                if await self._snippets.detach(scope.id, lineage_id):
                    document.last_updated = utcnow()

    async def list_snippets(
        self, document_id: uuid.UUID, experience_id: uuid.UUID
    ) -> list[TextSnippet]:
        """Snippets of an experience within a document, in position order."""
        async with track_operation(
            self._ctx,
            "list_text_snippets",
            document_id=document_id,
            experience_id=experience_id,
        ):
            await self._owned_document(document_id)
            scope = await self._scope(document_id, experience_id)
            return [
                TextSnippet.model_validate(snippet)
                for snippet in await self._snippets.list_in_scope(scope.id)
            ]

    async def list_snippet_versions(self, lineage_id: uuid.UUID) -> list[TextSnippet]:
        """Version history of a lineage, oldest first."""
        async with track_operation(
            self._ctx, "list_text_snippet_versions", text_snippet_id=lineage_id
        ):
            latest = await self._snippets.latest(lineage_id)
            await verify_owner(
                self._session,
                TextSnippetRow,
                self.username,
                (latest.id, latest.version),
                label="text snippet",
            )
            return [
                TextSnippet.model_validate(snippet)
                for snippet in await self._snippets.list_versions(lineage_id)
            ]

    async def list_owned_snippets(self) -> list[TextSnippet]:
        """Every snippet version in the user's library, grouped by lineage."""
        async with track_operation(self._ctx, "list_owned_text_snippets"):
            return [
                TextSnippet.model_validate(snippet)
                for snippet in await self._snippets.list_for_owner(self.username)
            ]

    async def delete_snippet(self, lineage_id: uuid.UUID, version: datetime) -> None:
        """Delete one version. Experiences referencing it lose the snippet."""
        async with track_operation(
            self._ctx, "delete_text_snippet", text_snippet_id=lineage_id
        ):
            async with unit_of_work(self._session):
                snippet = await verify_owner(
                    self._session,
                    TextSnippetRow,
                    self.username,
                    (lineage_id, as_version(version)),
                    label="text snippet",
                )
                await self._snippets.delete_version(snippet)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _store(self, kind: ItemKind) -> RelationshipStore[Any]:
        return RelationshipStore(kind.relationship, self._session)

    async def _owned_document(self, document_id: uuid.UUID) -> DocumentRow:
        return await verify_owner(
            self._session, DocumentRow, self.username, document_id, label="document"
        )

    async def _scope(
        self, document_id: uuid.UUID, experience_id: uuid.UUID
    ) -> DocumentXExperience:
        """The experience as placed in the document; snippets attach to this."""
        await verify_owner(
            self._session, ExperienceRow, self.username, experience_id, label="experience"
        )
        return await RelationshipStore(DOCUMENT_X_EXPERIENCE, self._session).get(
            document_id, experience_id
        )

    def _check_unlocked(self, document: DocumentRow) -> None:
        if document.is_locked:
            logger.warning(
                "user %r attempted to change locked document %s", self.username, document.id
            )
            raise ForbiddenError("Can not change the contents of a locked document.")

    def _check_master(self, document: DocumentRow, label: str) -> None:
        if not document.is_master:
            logger.warning(
                "user %r attempted to create a %s outside the master resume", self.username, label
            )
            raise ForbiddenError(
                f"{label.capitalize()}s can only be added to the master resume."
            )

    @staticmethod
    def _relationship(kind: ItemKind, row: Any) -> DocumentItemRelationship:
        return DocumentItemRelationship(
            kind=kind.name,
            document_id=row.document_id,
            item_id=getattr(row, kind.relationship.child_key),
            position=row.position,
            relationship_id=getattr(row, "id", None),
        )

    @staticmethod
    def _snippet_relationship(row: ExperienceXTextSnippet) -> SnippetRelationship:
        return SnippetRelationship(
            document_x_experience_id=row.document_x_experience_id,
            text_snippet_id=row.text_snippet_id,
            text_snippet_version=row.text_snippet_version,
            position=row.position,
        )


async def items_in_document(
    session: AsyncSession, kind: ItemKind, document_id: uuid.UUID
) -> list[BaseModel]:
    """Items of one kind attached to a document, in position order."""
    relationship = kind.relationship
    result = await session.execute(
        select(kind.model)
        .join(relationship.model, relationship.child_column == kind.model.id)
        .where(relationship.parent_column == document_id)
        .order_by(relationship.model.position)
    )
    return [kind.record.model_validate(item) for item in result.scalars().all()]
