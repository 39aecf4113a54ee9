"""Integration tests for the HTTP API."""

import asyncio
from collections.abc import AsyncGenerator, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from resume_backend.app.db.engine import (
    create_session_factory,
    get_session,
    install_sqlite_pragmas,
)
from resume_backend.app.db.models import Base
from resume_backend.app.main import app

ALICE = {"Authorization": "Bearer alice"}
BOB = {"Authorization": "Bearer bob"}


@pytest.fixture
def client(tmp_path: Path) -> Iterator[TestClient]:
    """Test client backed by a fresh SQLite database."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'routes.db'}", poolclass=NullPool, echo=False
    )
    install_sqlite_pragmas(engine)
    session_factory = create_session_factory(engine)

    async def create_tables() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

    asyncio.run(engine.dispose())


def register(client: TestClient, username: str) -> str:
    response = client.post("/users", json={"username": username})
    assert response.status_code == 201
    return response.json()["master_document"]["id"]


def education_payload(school: str) -> dict[str, Any]:
    return {
        "school": school,
        "location": "Springfield",
        "start_date": "2010-09-01",
        "end_date": "2014-06-01",
        "degree": "BSc",
    }


def experience_payload(title: str) -> dict[str, Any]:
    return {
        "title": title,
        "organization": "Acme",
        "location": "Remote",
        "start_date": "2020-01-01",
    }


class TestUsers:
    def test_register_returns_master_resume(self, client: TestClient) -> None:
        response = client.post("/users", json={"username": "alice"})

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["username"] == "alice"
        assert data["master_document"]["is_master"] is True

    def test_register_duplicate_returns_409(self, client: TestClient) -> None:
        register(client, "alice")

        response = client.post("/users", json={"username": "alice"})

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "conflict"

    def test_register_invalid_username_returns_422(self, client: TestClient) -> None:
        response = client.post("/users", json={"username": "a b"})

        assert response.status_code == 422

    def test_contact_info_created_then_updated(self, client: TestClient) -> None:
        register(client, "alice")

        created = client.put(
            "/users/me/contact-info", json={"full_name": "Alice Liddell"}, headers=ALICE
        )
        updated = client.put("/users/me/contact-info", json={"phone": "555-0100"}, headers=ALICE)

        assert created.status_code == 201
        assert created.json()["outcome"] == "created"
        assert updated.status_code == 200
        assert updated.json()["outcome"] == "updated"
        assert updated.json()["contact_info"]["full_name"] == "Alice Liddell"

    def test_contact_info_without_full_name_returns_400(self, client: TestClient) -> None:
        register(client, "alice")

        response = client.put("/users/me/contact-info", json={"phone": "555"}, headers=ALICE)

        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "bad_request"


class TestDocuments:
    def test_document_lifecycle(self, client: TestClient) -> None:
        master_id = register(client, "alice")

        created = client.post("/documents", json={"document_name": "Draft"}, headers=ALICE)
        assert created.status_code == 201
        draft_id = created.json()["id"]

        listed = client.get("/documents", headers=ALICE)
        assert [d["id"] for d in listed.json()] == [master_id, draft_id]

        patched = client.patch(
            f"/documents/{draft_id}", json={"is_locked": True}, headers=ALICE
        )
        assert patched.status_code == 200
        assert patched.json()["is_locked"] is True

        assert client.delete(f"/documents/{draft_id}", headers=ALICE).status_code == 204
        assert client.delete(f"/documents/{draft_id}", headers=ALICE).status_code == 204
        assert client.get(f"/documents/{draft_id}", headers=ALICE).status_code == 404

    def test_master_can_not_be_deleted(self, client: TestClient) -> None:
        master_id = register(client, "alice")

        response = client.delete(f"/documents/{master_id}", headers=ALICE)

        assert response.status_code == 403
        assert response.json() == {
            "error": {"kind": "forbidden", "message": "Can not delete master resume."}
        }

    def test_other_users_document_returns_403(self, client: TestClient) -> None:
        master_id = register(client, "alice")
        register(client, "bob")

        response = client.get(f"/documents/{master_id}", headers=BOB)

        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "forbidden"

    def test_invalid_auth_header_returns_401(self, client: TestClient) -> None:
        response = client.get("/documents", headers={"Authorization": "Token abc"})

        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "unauthorized"


class TestItems:
    def test_create_reorder_detach_and_append(self, client: TestClient) -> None:
        master_id = register(client, "alice")
        base = f"/documents/{master_id}/educations"

        ids = []
        for school in ("A", "B", "C"):
            response = client.post(base, json=education_payload(school), headers=ALICE)
            assert response.status_code == 201
            ids.append(response.json()["item"]["id"])
        a, b, c = ids

        reordered = client.put(base, json={"ids": [c, a, b]}, headers=ALICE)
        assert reordered.status_code == 200
        assert [e["school"] for e in reordered.json()] == ["C", "A", "B"]

        assert client.delete(f"{base}/{a}", headers=ALICE).status_code == 204

        response = client.post(base, json=education_payload("X"), headers=ALICE)
        assert response.json()["relationship"]["position"] == 3

        listed = client.get(base, headers=ALICE)
        assert [e["school"] for e in listed.json()] == ["C", "B", "X"]

    def test_reorder_with_missing_id_returns_400(self, client: TestClient) -> None:
        master_id = register(client, "alice")
        base = f"/documents/{master_id}/sections"
        client.post(base, json={"section_name": "Skills"}, headers=ALICE)
        client.post(base, json={"section_name": "Projects"}, headers=ALICE)
        first = client.get(base, headers=ALICE).json()[0]["id"]

        response = client.put(base, json={"ids": [first]}, headers=ALICE)

        assert response.status_code == 400
        assert "All sections, and only those" in response.json()["error"]["message"]

    def test_attach_existing_item_to_other_document(self, client: TestClient) -> None:
        master_id = register(client, "alice")
        created = client.post(
            f"/documents/{master_id}/experiences", json=experience_payload("Engineer"), headers=ALICE
        )
        experience_id = created.json()["item"]["id"]
        draft_id = client.post(
            "/documents", json={"document_name": "Draft"}, headers=ALICE
        ).json()["id"]

        attached = client.post(
            f"/documents/{draft_id}/experiences/{experience_id}", headers=ALICE
        )
        again = client.post(f"/documents/{draft_id}/experiences/{experience_id}", headers=ALICE)

        assert attached.status_code == 201
        assert attached.json()["position"] == 0
        assert again.status_code == 409

    def test_create_on_non_master_returns_403(self, client: TestClient) -> None:
        register(client, "alice")
        draft_id = client.post(
            "/documents", json={"document_name": "Draft"}, headers=ALICE
        ).json()["id"]

        response = client.post(
            f"/documents/{draft_id}/educations", json=education_payload("A"), headers=ALICE
        )

        assert response.status_code == 403

    def test_library_update_and_delete(self, client: TestClient) -> None:
        master_id = register(client, "alice")
        created = client.post(
            f"/documents/{master_id}/educations",
            json={**education_payload("A"), "gpa": "3.9"},
            headers=ALICE,
        )
        education_id = created.json()["item"]["id"]

        patched = client.patch(
            f"/educations/{education_id}", json={"school": "Renamed", "gpa": ""}, headers=ALICE
        )
        assert patched.status_code == 200
        assert patched.json()["school"] == "Renamed"
        assert patched.json()["gpa"] is None

        cleared = client.patch(f"/educations/{education_id}", json={"school": ""}, headers=ALICE)
        assert cleared.status_code == 400

        assert [e["id"] for e in client.get("/educations", headers=ALICE).json()] == [
            education_id
        ]
        assert client.delete(f"/educations/{education_id}", headers=ALICE).status_code == 204
        assert client.get("/educations", headers=ALICE).json() == []

    def test_invalid_body_returns_422(self, client: TestClient) -> None:
        master_id = register(client, "alice")

        response = client.post(
            f"/documents/{master_id}/educations", json={"school": "A"}, headers=ALICE
        )

        assert response.status_code == 422

    def test_education_ending_before_start_returns_422(self, client: TestClient) -> None:
        master_id = register(client, "alice")
        payload = {**education_payload("A"), "start_date": "2014-01-01", "end_date": "2010-01-01"}

        response = client.post(
            f"/documents/{master_id}/educations", json=payload, headers=ALICE
        )

        assert response.status_code == 422


class TestTextSnippets:
    def test_create_edit_and_history(self, client: TestClient) -> None:
        master_id = register(client, "alice")
        experience_id = client.post(
            f"/documents/{master_id}/experiences", json=experience_payload("Engineer"), headers=ALICE
        ).json()["item"]["id"]
        base = f"/documents/{master_id}/experiences/{experience_id}/text-snippets"

        created = client.post(base, json={"type": "plain", "content": "v1"}, headers=ALICE)
        assert created.status_code == 201
        snippet = created.json()["text_snippet"]
        assert created.json()["relationship"]["position"] == 0

        edited = client.patch(
            f"/text-snippets/{snippet['id']}/{snippet['version']}",
            json={"content": "v2"},
            headers=ALICE,
        )
        assert edited.status_code == 201
        assert edited.json()["parent"] == snippet["version"]

        stale = client.patch(
            f"/text-snippets/{snippet['id']}/{snippet['version']}",
            json={"content": "v3"},
            headers=ALICE,
        )
        assert stale.status_code == 409

        listed = client.get(base, headers=ALICE)
        assert [s["content"] for s in listed.json()] == ["v2"]

        history = client.get(f"/text-snippets/{snippet['id']}", headers=ALICE)
        assert [s["content"] for s in history.json()] == ["v1", "v2"]

    def test_attach_reorder_and_detach(self, client: TestClient) -> None:
        master_id = register(client, "alice")
        experience_id = client.post(
            f"/documents/{master_id}/experiences", json=experience_payload("Engineer"), headers=ALICE
        ).json()["item"]["id"]
        master_base = f"/documents/{master_id}/experiences/{experience_id}/text-snippets"
        snippets = [
            client.post(
                master_base, json={"type": "plain", "content": content}, headers=ALICE
            ).json()["text_snippet"]
            for content in ("one", "two")
        ]
        draft_id = client.post(
            "/documents", json={"document_name": "Draft"}, headers=ALICE
        ).json()["id"]
        client.post(f"/documents/{draft_id}/experiences/{experience_id}", headers=ALICE)
        draft_base = f"/documents/{draft_id}/experiences/{experience_id}/text-snippets"

        for snippet in snippets:
            attached = client.post(
                f"{draft_base}/{snippet['id']}/{snippet['version']}", headers=ALICE
            )
            assert attached.status_code == 201

        reordered = client.put(
            draft_base, json={"ids": [snippets[1]["id"], snippets[0]["id"]]}, headers=ALICE
        )
        assert [s["content"] for s in reordered.json()] == ["two", "one"]

        assert client.delete(f"{draft_base}/{snippets[1]['id']}", headers=ALICE).status_code == 204
        assert [s["content"] for s in client.get(draft_base, headers=ALICE).json()] == ["one"]
        # The master resume is untouched.
        assert [s["content"] for s in client.get(master_base, headers=ALICE).json()] == [
            "one",
            "two",
        ]

    def test_delete_version(self, client: TestClient) -> None:
        master_id = register(client, "alice")
        experience_id = client.post(
            f"/documents/{master_id}/experiences", json=experience_payload("Engineer"), headers=ALICE
        ).json()["item"]["id"]
        base = f"/documents/{master_id}/experiences/{experience_id}/text-snippets"
        snippet = client.post(
            base, json={"type": "plain", "content": "v1"}, headers=ALICE
        ).json()["text_snippet"]

        response = client.delete(
            f"/text-snippets/{snippet['id']}/{snippet['version']}", headers=ALICE
        )

        assert response.status_code == 204
        assert client.get(base, headers=ALICE).json() == []

    def test_version_with_utc_suffix_and_library_listing(self, client: TestClient) -> None:
        master_id = register(client, "alice")
        experience_id = client.post(
            f"/documents/{master_id}/experiences", json=experience_payload("Engineer"), headers=ALICE
        ).json()["item"]["id"]
        base = f"/documents/{master_id}/experiences/{experience_id}/text-snippets"
        snippet = client.post(
            base, json={"type": "plain", "content": "v1"}, headers=ALICE
        ).json()["text_snippet"]

        edited = client.patch(
            f"/text-snippets/{snippet['id']}/{snippet['version']}Z",
            json={"content": "v2"},
            headers=ALICE,
        )
        assert edited.status_code == 201

        library = client.get("/text-snippets", headers=ALICE)
        assert library.status_code == 200
        assert [s["content"] for s in library.json()] == ["v1", "v2"]
