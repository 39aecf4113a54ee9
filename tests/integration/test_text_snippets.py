"""Integration tests for versioned text snippets."""

import uuid
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from resume_backend.app.composition import snippets as snippets_module
from resume_backend.app.composition.documents import DocumentService
from resume_backend.app.composition.kinds import EXPERIENCE
from resume_backend.app.composition.service import CompositionService
from resume_backend.app.composition.snippets import SnippetStore
from resume_backend.app.db.context import RequestContext
from resume_backend.app.db.engine import unit_of_work
from resume_backend.app.db.models import DocumentXExperience, ExperienceXTextSnippet
from resume_backend.app.db.models import TextSnippet as TextSnippetRow
from resume_backend.app.errors import NotFoundError
from resume_backend.app.models import Account, DocumentCreate, ExperienceCreate, TextSnippetCreate


async def make_experience(service: CompositionService, document_id: uuid.UUID) -> uuid.UUID:
    experience, _ = await service.create_and_attach_item(
        EXPERIENCE,
        document_id,
        ExperienceCreate(
            title="Engineer",
            organization="Acme",
            location="Remote",
            start_date=date(2020, 1, 1),
        ),
    )
    return experience.id


async def scope_id(session: AsyncSession, document_id: uuid.UUID) -> uuid.UUID:
    result = await session.execute(
        select(DocumentXExperience.id).where(DocumentXExperience.document_id == document_id)
    )
    return result.scalar_one()


async def references(session: AsyncSession, lineage_id: uuid.UUID) -> list[datetime]:
    result = await session.execute(
        select(ExperienceXTextSnippet.text_snippet_version)
        .where(ExperienceXTextSnippet.text_snippet_id == lineage_id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_create_lineage_starts_without_parent(session: AsyncSession, alice: Account) -> None:
    store = SnippetStore(session)

    async with unit_of_work(session):
        snippet = await store.create_lineage("alice", "plain", "Shipped the thing")

    assert snippet.parent is None
    assert (await store.latest(snippet.id)).version == snippet.version
    assert await store.list_for_owner("alice") == [snippet]


@pytest.mark.asyncio
async def test_locked_latest_sees_the_newest_version(
    session: AsyncSession, alice: Account
) -> None:
    store = SnippetStore(session)
    async with unit_of_work(session):
        first = await store.create_lineage("alice", "plain", "v1")
    async with unit_of_work(session):
        second = await store.create_version(first, content="v2")

    async with unit_of_work(session):
        latest = await store.latest(first.id, lock=True)

    assert latest.version == second.version


@pytest.mark.asyncio
async def test_create_version_inherits_and_keeps_history(
    session: AsyncSession, alice: Account
) -> None:
    store = SnippetStore(session)
    async with unit_of_work(session):
        first = await store.create_lineage("alice", "plain", "v1")

    async with unit_of_work(session):
        second = await store.create_version(first, content="v2")

    assert second.id == first.id
    assert second.version > first.version
    assert second.parent == first.version
    assert second.type == "plain"
    assert second.content == "v2"

    versions = await store.list_versions(first.id)
    assert [(v.version, v.content) for v in versions] == [
        (first.version, "v1"),
        (second.version, "v2"),
    ]
    assert (await store.get(first.id, first.version)).content == "v1"


@pytest.mark.asyncio
async def test_versions_strictly_increase_when_clock_stands_still(
    session: AsyncSession, alice: Account, monkeypatch: pytest.MonkeyPatch
) -> None:
    frozen = datetime(2026, 1, 1, 12, 0, 0)
    monkeypatch.setattr(snippets_module, "utcnow", lambda: frozen)
    store = SnippetStore(session)

    async with unit_of_work(session):
        first = await store.create_lineage("alice", "plain", "v1")
        second = await store.create_version(first, content="v2")
        third = await store.create_version(second, content="v3")

    assert first.version == frozen
    assert second.version == frozen + timedelta(microseconds=1)
    assert third.version == frozen + timedelta(microseconds=2)


@pytest.mark.asyncio
async def test_latest_of_unknown_lineage_is_not_found(session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await SnippetStore(session).latest(uuid.uuid4())


@pytest.mark.asyncio
async def test_get_unknown_version_is_not_found(session: AsyncSession, alice: Account) -> None:
    store = SnippetStore(session)
    async with unit_of_work(session):
        snippet = await store.create_lineage("alice", "plain", "v1")

    with pytest.raises(NotFoundError):
        await store.get(snippet.id, snippet.version + timedelta(seconds=1))


@pytest.mark.asyncio
async def test_new_version_repoints_every_scope(
    session: AsyncSession, alice: Account, alice_ctx: RequestContext
) -> None:
    """An edit moves the master resume and every other document to the new version."""
    service = CompositionService(session, alice_ctx)
    master_id = alice.master_document.id
    experience_id = await make_experience(service, master_id)
    tailored = await DocumentService(session, alice_ctx).create_document(
        DocumentCreate(document_name="Tailored")
    )
    await service.attach_item(EXPERIENCE, tailored.id, experience_id)

    snippet, _ = await service.create_snippet(
        master_id, experience_id, TextSnippetCreate(type="plain", content="v1")
    )
    await service.attach_snippet(tailored.id, experience_id, snippet.id, snippet.version)
    assert await references(session, snippet.id) == [snippet.version, snippet.version]

    store = SnippetStore(session)
    async with unit_of_work(session):
        prior = await store.get(snippet.id, snippet.version)
        edited = await store.create_version(prior, content="v2")

    assert await references(session, snippet.id) == [edited.version, edited.version]
    assert await session.get(TextSnippetRow, (snippet.id, snippet.version)) is not None
    tailored_scope = await scope_id(session, tailored.id)
    assert [s.content for s in await store.list_in_scope(tailored_scope)] == ["v2"]


@pytest.mark.asyncio
async def test_delete_version_cascades_to_relationships(
    session: AsyncSession, alice: Account, alice_ctx: RequestContext
) -> None:
    service = CompositionService(session, alice_ctx)
    master_id = alice.master_document.id
    experience_id = await make_experience(service, master_id)
    snippet, _ = await service.create_snippet(
        master_id, experience_id, TextSnippetCreate(type="plain", content="v1")
    )

    store = SnippetStore(session)
    async with unit_of_work(session):
        await store.delete_version(await store.get(snippet.id, snippet.version))

    assert await references(session, snippet.id) == []
    assert await store.list_versions(snippet.id) == []
