"""Tests for documents module."""

import asyncio

import pytest
from httpx import AsyncClient

from src.modules.documents.access import AccessResolver
from src.modules.documents.guard import MutationGuard


async def _create(client: AsyncClient, headers: dict, **overrides) -> dict:
    payload = {"title": "Test Doc", "content": "# Initial content", **overrides}
    response = await client.post("/documents", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["document"]


class TestDocumentCRUD:
    """Test document creation, listing, updating, and deletion."""

    @pytest.mark.asyncio
    async def test_create_document(
        self, async_client: AsyncClient, author, author_headers: dict
    ):
        """Test successful document creation."""
        doc = await _create(async_client, author_headers)

        assert doc["title"] == "Test Doc"
        assert doc["content"] == "# Initial content"
        assert doc["visibility"] == "private"
        assert doc["author_id"] == author.id
        assert doc["version"] == 1
        assert doc["access_token"] is None

    @pytest.mark.asyncio
    async def test_author_cannot_be_spoofed(
        self, async_client: AsyncClient, author, other, author_headers: dict
    ):
        doc = await _create(async_client, author_headers, author_id=other.id)
        assert doc["author_id"] == author.id

    @pytest.mark.asyncio
    async def test_create_link_only_issues_token(
        self, async_client: AsyncClient, author_headers: dict
    ):
        doc = await _create(async_client, author_headers, visibility="link_only")
        assert doc["visibility"] == "link_only"
        assert doc["access_token"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"title": "", "content": "body"},
            {"title": "   ", "content": "body"},
            {"content": "body"},
            {"title": "Title"},
            {"title": "Title", "content": "body", "visibility": "everyone"},
        ],
    )
    async def test_create_invalid_input(
        self, async_client: AsyncClient, store, author, author_headers: dict, payload
    ):
        response = await async_client.post(
            "/documents", json=payload, headers=author_headers
        )
        assert response.status_code == 400
        assert await store.list_documents_by_author(author.id) == []

    @pytest.mark.asyncio
    async def test_create_requires_authentication(self, async_client: AsyncClient):
        response = await async_client.post(
            "/documents", json={"title": "T", "content": "C"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list_documents(
        self, async_client: AsyncClient, author_headers: dict, other_headers: dict
    ):
        """Only the caller's own documents, newest update first."""
        first = await _create(async_client, author_headers, title="Doc 1")
        await _create(async_client, author_headers, title="Doc 2")
        await _create(async_client, other_headers, title="Not mine")
        await async_client.put(
            f"/documents/{first['id']}",
            json={"content": "touched"},
            headers=author_headers,
        )

        response = await async_client.get("/documents", headers=author_headers)
        assert response.status_code == 200
        docs = response.json()["documents"]
        assert {d["title"] for d in docs} == {"Doc 1", "Doc 2"}
        stamps = [d["updated_at"] for d in docs]
        assert stamps == sorted(stamps, reverse=True)

    @pytest.mark.asyncio
    async def test_list_requires_authentication(self, async_client: AsyncClient):
        response = await async_client.get("/documents")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_update_document(self, async_client: AsyncClient, author_headers: dict):
        """Edits change fields and updated_at but never the version."""
        doc = await _create(async_client, author_headers, title="Old Title")

        response = await async_client.put(
            f"/documents/{doc['id']}",
            json={"title": "New Title", "content": "Updated content"},
            headers=author_headers,
        )
        assert response.status_code == 200
        updated = response.json()["document"]
        assert updated["title"] == "New Title"
        assert updated["content"] == "Updated content"
        assert updated["version"] == 1
        assert updated["updated_at"] >= doc["updated_at"]

    @pytest.mark.asyncio
    async def test_update_visibility_by_author(
        self, async_client: AsyncClient, author_headers: dict
    ):
        doc = await _create(async_client, author_headers)

        response = await async_client.put(
            f"/documents/{doc['id']}",
            json={"visibility": "link_only"},
            headers=author_headers,
        )
        assert response.status_code == 200
        assert response.json()["document"]["access_token"]

        response = await async_client.put(
            f"/documents/{doc['id']}",
            json={"visibility": "password_protected"},
            headers=author_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_missing_document(
        self, async_client: AsyncClient, author_headers: dict
    ):
        response = await async_client.put(
            "/documents/60b8d545f1d2a12345678901",
            json={"title": "x"},
            headers=author_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_document(self, async_client: AsyncClient, author_headers: dict):
        """Test deleting document."""
        doc = await _create(async_client, author_headers, title="To Delete")

        response = await async_client.delete(
            f"/documents/{doc['id']}", headers=author_headers
        )
        assert response.status_code == 200
        assert response.json() == {"success": True}

        # Verify it's gone
        get_res = await async_client.get(
            f"/documents/{doc['id']}", headers=author_headers
        )
        assert get_res.status_code == 404

        again = await async_client.delete(
            f"/documents/{doc['id']}", headers=author_headers
        )
        assert again.status_code == 404


class TestDocumentPermissions:
    """Test document access control and collaborator roles."""

    @pytest.mark.asyncio
    async def test_private_document_hidden_from_strangers(
        self, async_client: AsyncClient, author_headers: dict, other_headers: dict
    ):
        doc = await _create(async_client, author_headers, title="Private Doc")

        response = await async_client.get(
            f"/documents/{doc['id']}", headers=other_headers
        )
        assert response.status_code == 404
        assert response.json()["detail"] == f"Document with id '{doc['id']}' not found"

        anonymous = await async_client.get(f"/documents/{doc['id']}")
        assert anonymous.status_code == 404

    @pytest.mark.asyncio
    async def test_public_document_readable_anonymously(
        self, async_client: AsyncClient, author_headers: dict
    ):
        doc = await _create(async_client, author_headers, visibility="public")

        response = await async_client.get(f"/documents/{doc['id']}")
        assert response.status_code == 200
        assert response.json()["document"]["title"] == "Test Doc"

        listing = await async_client.get("/documents/public")
        assert [d["id"] for d in listing.json()["documents"]] == [doc["id"]]

    @pytest.mark.asyncio
    async def test_link_only_hidden_from_authenticated_strangers(
        self, async_client: AsyncClient, author_headers: dict, other_headers: dict
    ):
        doc = await _create(async_client, author_headers, visibility="link_only")

        response = await async_client.get(
            f"/documents/{doc['id']}", headers=other_headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_share_token_only_shown_to_author(
        self,
        async_client: AsyncClient,
        other,
        author_headers: dict,
        other_headers: dict,
    ):
        doc = await _create(async_client, author_headers, visibility="link_only")
        await async_client.post(
            f"/documents/{doc['id']}/collaborators",
            json={"email": other.email, "permission": "read"},
            headers=author_headers,
        )

        response = await async_client.get(
            f"/documents/{doc['id']}", headers=other_headers
        )
        assert response.status_code == 200
        assert response.json()["document"]["access_token"] is None

    @pytest.mark.asyncio
    async def test_read_collaborator_cannot_edit(
        self,
        async_client: AsyncClient,
        other,
        author_headers: dict,
        other_headers: dict,
    ):
        doc = await _create(async_client, author_headers, title="View Only Doc")
        await async_client.post(
            f"/documents/{doc['id']}/collaborators",
            json={"email": other.email, "permission": "read"},
            headers=author_headers,
        )

        update_res = await async_client.put(
            f"/documents/{doc['id']}",
            json={"content": "Hacked!"},
            headers=other_headers,
        )
        assert update_res.status_code == 403

    @pytest.mark.asyncio
    async def test_stranger_edit_is_403_and_anonymous_is_401(
        self, async_client: AsyncClient, author_headers: dict, other_headers: dict
    ):
        doc = await _create(async_client, author_headers)

        stranger = await async_client.put(
            f"/documents/{doc['id']}", json={"content": "x"}, headers=other_headers
        )
        assert stranger.status_code == 403

        anonymous = await async_client.put(
            f"/documents/{doc['id']}", json={"content": "x"}
        )
        assert anonymous.status_code == 401

    @pytest.mark.asyncio
    async def test_writer_can_edit_but_not_delete_or_reshare(
        self,
        async_client: AsyncClient,
        other,
        author_headers: dict,
        other_headers: dict,
    ):
        doc = await _create(async_client, author_headers, title="Collaborative Doc")
        await async_client.post(
            f"/documents/{doc['id']}/collaborators",
            json={"email": other.email, "permission": "write"},
            headers=author_headers,
        )

        update_res = await async_client.put(
            f"/documents/{doc['id']}",
            json={"content": "Collaborative edit"},
            headers=other_headers,
        )
        assert update_res.status_code == 200

        visibility_res = await async_client.put(
            f"/documents/{doc['id']}",
            json={"visibility": "public"},
            headers=other_headers,
        )
        assert visibility_res.status_code == 403

        delete_res = await async_client.delete(
            f"/documents/{doc['id']}", headers=other_headers
        )
        assert delete_res.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_collaborator_cannot_delete(
        self,
        async_client: AsyncClient,
        other,
        author_headers: dict,
        other_headers: dict,
    ):
        doc = await _create(async_client, author_headers)
        await async_client.post(
            f"/documents/{doc['id']}/collaborators",
            json={"email": other.email, "permission": "admin"},
            headers=author_headers,
        )

        delete_res = await async_client.delete(
            f"/documents/{doc['id']}", headers=other_headers
        )
        assert delete_res.status_code == 403

    @pytest.mark.asyncio
    async def test_public_document_edits(
        self,
        async_client: AsyncClient,
        other,
        author_headers: dict,
        other_headers: dict,
    ):
        """On a public document everyone resolves to read; only the author edits."""
        doc = await _create(async_client, author_headers, visibility="public")
        await async_client.post(
            f"/documents/{doc['id']}/collaborators",
            json={"email": other.email, "permission": "write"},
            headers=author_headers,
        )

        writer = await async_client.put(
            f"/documents/{doc['id']}", json={"content": "x"}, headers=other_headers
        )
        assert writer.status_code == 403

        author = await async_client.put(
            f"/documents/{doc['id']}", json={"content": "y"}, headers=author_headers
        )
        assert author.status_code == 200
        assert author.json()["document"]["content"] == "y"

        snapshot = await async_client.post(
            f"/documents/{doc['id']}/versions", headers=author_headers
        )
        assert snapshot.status_code == 201

    @pytest.mark.asyncio
    async def test_invalid_token_is_401(self, async_client: AsyncClient):
        response = await async_client.get(
            "/documents/public", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401


class TestSharingScenario:
    @pytest.mark.asyncio
    async def test_private_then_write_collaborator(
        self,
        async_client: AsyncClient,
        other,
        author_headers: dict,
        other_headers: dict,
    ):
        doc = await _create(async_client, author_headers)
        url = f"/documents/{doc['id']}"

        assert (await async_client.get(url, headers=other_headers)).status_code == 404

        added = await async_client.post(
            f"{url}/collaborators",
            json={"email": other.email, "permission": "write"},
            headers=author_headers,
        )
        assert added.status_code == 201

        assert (await async_client.get(url, headers=other_headers)).status_code == 200

        share = await async_client.put(
            f"{url}/share", json={"visibility": "public"}, headers=other_headers
        )
        assert share.status_code == 403


class TestConcurrentUpdates:
    @pytest.mark.asyncio
    async def test_last_writer_wins_without_corruption(
        self, store, author, other, author_headers, async_client: AsyncClient
    ):
        doc = await _create(async_client, author_headers)
        await async_client.post(
            f"/documents/{doc['id']}/collaborators",
            json={"email": other.email, "permission": "write"},
            headers=author_headers,
        )

        resolver = AccessResolver(store)
        results = await asyncio.gather(
            MutationGuard(store, resolver, author.id).update_document(
                doc["id"], content="from author"
            ),
            MutationGuard(store, resolver, other.id).update_document(
                doc["id"], content="from writer"
            ),
        )

        assert len(results) == 2
        final = await store.find_document(doc["id"])
        assert final.content in {"from author", "from writer"}
        assert final.title == "Test Doc"
        assert final.author_id == author.id
        assert final.version == 1
