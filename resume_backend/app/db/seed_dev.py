"""Dev seeding helper for stub authentication."""

import asyncio
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from resume_backend.app.composition.kinds import DOCUMENT_X_SECTION
from resume_backend.app.composition.relationships import RelationshipStore
from resume_backend.app.config import Settings, get_settings
from resume_backend.app.db.engine import get_session_factory
from resume_backend.app.db.models import Document, Section, User, utcnow

# Default headings for a new library, first two placed on the master resume.
DEFAULT_SECTIONS = ("Education", "Work Experience", "Skills", "Certifications", "Projects")
MASTER_SECTIONS = 2


async def seed_dev_user(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    settings: Settings | None = None,
) -> uuid.UUID:
    """Seed the dev user, their master resume and default sections.

    This function is idempotent - safe to run multiple times. The user is
    the one stub auth falls back to when no bearer token is sent.

    Returns:
        ID of the dev user's master resume
    """
    settings = settings or get_settings()
    session_factory = session_factory or get_session_factory()
    username = settings.dev_username

    async with session_factory() as session:
        if await session.get(User, username) is None:
            print(f"Creating dev user {username!r}...")
            session.add(User(username=username, created_at=utcnow()))
            await session.flush()
        else:
            print(f"Dev user already exists: {username!r}")

        result = await session.execute(
            select(Document).where(Document.owner == username, Document.is_master)
        )
        master = result.scalar_one_or_none()

        if master is None:
            print("Creating master resume with default sections...")
            master = Document(
                id=uuid.uuid4(),
                owner=username,
                document_name=settings.master_document_name,
                created_on=utcnow(),
                is_master=True,
                is_template=False,
                is_locked=False,
            )
            session.add(master)

            sections = [
                Section(id=uuid.uuid4(), owner=username, section_name=name)
                for name in DEFAULT_SECTIONS
            ]
            session.add_all(sections)
            await session.flush()

            store = RelationshipStore(DOCUMENT_X_SECTION, session)
            for section in sections[:MASTER_SECTIONS]:
                await store.append(master.id, section.id)
        else:
            print(f"Master resume already exists: {master.id}")

        await session.commit()
        print("Dev seeding complete")
        return master.id


if __name__ == "__main__":
    asyncio.run(seed_dev_user())
