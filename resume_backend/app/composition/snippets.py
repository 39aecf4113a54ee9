"""Append-only store for versioned text snippets.

A snippet lineage is identified by ``id``; each edit writes a new row with a
later ``version`` and repoints every relationship of the lineage to it. Old
rows are kept as history and are only reachable by explicit version lookup.
"""

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from resume_backend.app.composition.kinds import EXPERIENCE_X_TEXT_SNIPPET
from resume_backend.app.composition.relationships import RelationshipStore
from resume_backend.app.db.integrity import classify_integrity_error
from resume_backend.app.db.models import ExperienceXTextSnippet, TextSnippet, utcnow
from resume_backend.app.errors import ConflictError, NotFoundError, ServerError
from resume_backend.app.utils.metrics import PrometheusCompositionMetrics

logger = logging.getLogger(__name__)

_metrics = PrometheusCompositionMetrics()

# Smallest step between two versions of one lineage.
VERSION_TICK = timedelta(microseconds=1)


def as_version(value: datetime) -> datetime:
    """Version token as stored: naive UTC. Aware values are converted."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class SnippetStore:
    """Versioned text snippet rows and their experience relationships."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.relationships = RelationshipStore(EXPERIENCE_X_TEXT_SNIPPET, session)

    async def create_lineage(self, owner: str, type: str, content: str) -> TextSnippet:
        """Start a new lineage with its first version."""
        snippet = TextSnippet(
            id=uuid.uuid4(),
            version=utcnow(),
            owner=owner,
            parent=None,
            type=type,
            content=content,
        )
        self._session.add(snippet)
        await self._session.flush()
        logger.info("text snippet lineage %s created by %r", snippet.id, owner)
        return snippet

    async def find(self, lineage_id: uuid.UUID, version: datetime) -> TextSnippet | None:
        return await self._session.get(TextSnippet, (lineage_id, version))

    async def get(self, lineage_id: uuid.UUID, version: datetime) -> TextSnippet:
        """One version by its full identity.

        Raises:
            NotFoundError: If the version does not exist
        """
        snippet = await self.find(lineage_id, version)
        if snippet is None:
            raise NotFoundError(
                f"Can not find text snippet with ID {lineage_id} and version {version}."
            )
        return snippet

    async def latest(self, lineage_id: uuid.UUID, *, lock: bool = False) -> TextSnippet:
        """Current version of a lineage.

        With ``lock``, the current row is locked for the rest of the
        transaction first, so attaches and edits of one lineage are
        serialized. The latest version is then read again, since a version
        committed while waiting for the lock is not visible to the locking
        statement.

        Raises:
            NotFoundError: If the lineage has no versions
        """
        query = (
            select(TextSnippet)
            .where(TextSnippet.id == lineage_id)
            .order_by(TextSnippet.version.desc())
            .limit(1)
        )
        if lock:
            await self._session.execute(query.with_for_update())

        result = await self._session.execute(query)
        snippet = result.scalar_one_or_none()
        if snippet is None:
            raise NotFoundError(f"Can not find text snippet with ID {lineage_id}.")
        return snippet

    async def list_versions(self, lineage_id: uuid.UUID) -> list[TextSnippet]:
        """Every version of a lineage, oldest first."""
        result = await self._session.execute(
            select(TextSnippet)
            .where(TextSnippet.id == lineage_id)
            .order_by(TextSnippet.version)
        )
        return list(result.scalars().all())

    async def list_for_owner(self, owner: str) -> list[TextSnippet]:
        result = await self._session.execute(
            select(TextSnippet)
            .where(TextSnippet.owner == owner)
            .order_by(TextSnippet.id, TextSnippet.version)
        )
        return list(result.scalars().all())

    async def create_version(
        self,
        prior: TextSnippet,
        *,
        type: str | None = None,
        content: str | None = None,
    ) -> TextSnippet:
        """Write a new version derived from ``prior`` and repoint references.

        Unspecified fields are inherited from ``prior``. The new version token
        is strictly later than every existing version of the lineage. Every
        relationship row of the lineage is moved to the new version in the
        same transaction; ``prior`` itself is left untouched.

        Raises:
            ConflictError: If another version was written concurrently
        """
        current = await self.latest(prior.id)
        version = max(utcnow(), current.version + VERSION_TICK)

        snippet = TextSnippet(
            id=prior.id,
            version=version,
            owner=prior.owner,
            parent=prior.version,
            type=type if type is not None else prior.type,
            content=content if content is not None else prior.content,
        )
        self._session.add(snippet)

        try:
            await self._session.flush()
        except IntegrityError as e:
            if classify_integrity_error(e) == "unique":
                raise ConflictError(
                    f"Text snippet with ID {prior.id} was changed concurrently."
                ) from e
            logger.error("text snippet %s: unexpected database error: %s", prior.id, e)
            raise ServerError("Error when saving text snippet.") from e

        migrated = await self.migrate_references(prior.id, snippet.version)
        _metrics.inc_migrated(migrated)
        logger.info(
            "text snippet %s: version %s -> %s, %d relationship(s) migrated",
            prior.id,
            prior.version,
            snippet.version,
            migrated,
        )
        return snippet

    async def migrate_references(self, lineage_id: uuid.UUID, version: datetime) -> int:
        """Point every relationship row of a lineage at ``version``.

        Returns:
            Number of rows repointed
        """
        result = await self._session.execute(
            update(ExperienceXTextSnippet)
            .where(
                ExperienceXTextSnippet.text_snippet_id == lineage_id,
                ExperienceXTextSnippet.text_snippet_version != version,
            )
            .values(text_snippet_version=version)
        )
        return result.rowcount or 0

    async def attach(
        self, scope_id: uuid.UUID, lineage_id: uuid.UUID, version: datetime
    ) -> ExperienceXTextSnippet:
        """Append a version to an experience within one document."""
        return await self.relationships.append(
            scope_id, lineage_id, text_snippet_version=version
        )

    async def detach(self, scope_id: uuid.UUID, lineage_id: uuid.UUID) -> int:
        """Remove a lineage from a scope if present."""
        return await self.relationships.delete(scope_id, lineage_id)

    async def reorder(
        self, scope_id: uuid.UUID, lineage_ids: Sequence[uuid.UUID]
    ) -> list[ExperienceXTextSnippet]:
        return await self.relationships.reorder(scope_id, lineage_ids)

    async def list_in_scope(self, scope_id: uuid.UUID) -> list[TextSnippet]:
        """Snippet versions attached to a scope, in position order."""
        result = await self._session.execute(
            select(TextSnippet)
            .join(
                ExperienceXTextSnippet,
                and_(
                    TextSnippet.id == ExperienceXTextSnippet.text_snippet_id,
                    TextSnippet.version == ExperienceXTextSnippet.text_snippet_version,
                ),
            )
            .where(ExperienceXTextSnippet.document_x_experience_id == scope_id)
            .order_by(ExperienceXTextSnippet.position)
        )
        return list(result.scalars().all())

    async def delete_version(self, snippet: TextSnippet) -> None:
        """Delete one version. Its relationship rows go with it."""
        result = await self._session.execute(
            delete(TextSnippet).where(
                TextSnippet.id == snippet.id, TextSnippet.version == snippet.version
            )
        )
        logger.info(
            "text snippet %s version %s: %d row(s) deleted",
            snippet.id,
            snippet.version,
            result.rowcount or 0,
        )
