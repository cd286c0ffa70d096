"""
Users API integration tests.
"""

import asyncio

import pytest

FAKE_ID = "00000000-0000-0000-0000-000000000000"


class TestUsers:
    @pytest.mark.asyncio
    async def test_create_and_read_back(self, client):
        response = await client.post(
            "/api/users", json={"name": "Ada Lovelace", "email": "ada@example.com"}
        )

        assert response.status_code == 201
        user_id = response.json()["id"]
        fetched = await client.get(f"/api/users/{user_id}")
        assert fetched.json() == {
            "id": user_id,
            "name": "Ada Lovelace",
            "email": "ada@example.com",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"name": "Ada"},
            {"email": "ada@example.com"},
            {"name": "", "email": "ada@example.com"},
            {"name": "   ", "email": "ada@example.com"},
            {"name": "Ada", "email": "not-an-email"},
        ],
    )
    async def test_invalid_bodies_are_rejected(self, client, body):
        response = await client.post("/api/users", json=body)

        assert response.status_code == 400
        assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_list_users(self, client, create_user):
        first = await create_user(name="Ada Lovelace", email="ada@example.com")
        second = await create_user(name="Alan Turing", email="alan@example.com")

        response = await client.get("/api/users")

        assert response.status_code == 200
        assert sorted(user["id"] for user in response.json()) == sorted([first, second])

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client, create_user):
        user_id = await create_user()

        updated = await client.put(f"/api/users/{user_id}", json={"name": "Countess"})
        assert updated.status_code == 200
        assert updated.json() == {"id": user_id}
        assert (await client.get(f"/api/users/{user_id}")).json()["name"] == "Countess"

        deleted = await client.delete(f"/api/users/{user_id}")
        assert deleted.status_code == 204
        assert (await client.get(f"/api/users/{user_id}")).status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"email": "broken"},
            {"name": None},
            {"email": None},
            {"name": ""},
            {"name": "  "},
        ],
    )
    async def test_invalid_updates_are_rejected(self, client, create_user, body):
        user_id = await create_user()

        response = await client.put(f"/api/users/{user_id}", json=body)

        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", ["abc", "1234", "not-a-uuid"])
    async def test_malformed_ids_return_400(self, client, user_id):
        responses = [
            await client.get(f"/api/users/{user_id}"),
            await client.put(f"/api/users/{user_id}", json={"name": "x"}),
            await client.delete(f"/api/users/{user_id}"),
            await client.get(f"/api/users/{user_id}/books"),
        ]

        for response in responses:
            assert response.status_code == 400
            assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_unknown_ids_return_404(self, client):
        responses = [
            await client.get(f"/api/users/{FAKE_ID}"),
            await client.put(f"/api/users/{FAKE_ID}", json={"name": "x"}),
            await client.delete(f"/api/users/{FAKE_ID}"),
            await client.get(f"/api/users/{FAKE_ID}/books"),
        ]

        for response in responses:
            assert response.status_code == 404
            assert response.json() == {"error": "User not found"}


class TestOwnership:
    @pytest.mark.asyncio
    async def test_assign_list_remove(self, client, create_user, create_book):
        user_id = await create_user()
        book_id = await create_book()

        assigned = await client.post(f"/api/users/{user_id}/books/{book_id}")
        assert assigned.status_code == 200
        assert assigned.json() == {"message": "Book assigned to user"}

        owned = await client.get(f"/api/users/{user_id}/books")
        assert [book["id"] for book in owned.json()] == [book_id]

        removed = await client.delete(f"/api/users/{user_id}/books/{book_id}")
        assert removed.status_code == 204

        owned = await client.get(f"/api/users/{user_id}/books")
        assert owned.json() == []

        again = await client.delete(f"/api/users/{user_id}/books/{book_id}")
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_assignment_is_idempotent(self, client, create_user, create_book):
        user_id = await create_user()
        book_id = await create_book()

        for _ in range(2):
            response = await client.post(f"/api/users/{user_id}/books/{book_id}")
            assert response.status_code == 200

        owned = await client.get(f"/api/users/{user_id}/books")
        assert len(owned.json()) == 1

    @pytest.mark.asyncio
    async def test_concurrent_assignments_all_succeed(
        self, client, create_user, create_book
    ):
        user_id = await create_user()
        book_id = await create_book()

        responses = await asyncio.gather(
            *(client.post(f"/api/users/{user_id}/books/{book_id}") for _ in range(5))
        )

        assert [response.status_code for response in responses] == [200] * 5
        settled = await client.post(f"/api/users/{user_id}/books/{book_id}")
        assert settled.status_code == 200
        owned = await client.get(f"/api/users/{user_id}/books")
        assert [book["id"] for book in owned.json()] == [book_id]

    @pytest.mark.asyncio
    async def test_removing_never_assigned_edge_returns_404(
        self, client, create_user, create_book
    ):
        user_id = await create_user()
        book_id = await create_book()

        response = await client.delete(f"/api/users/{user_id}/books/{book_id}")

        assert response.status_code == 404
        assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_assign_unknown_entities_returns_404(
        self, client, create_user, create_book
    ):
        user_id = await create_user()
        book_id = await create_book()

        unknown_book = await client.post(f"/api/users/{user_id}/books/{FAKE_ID}")
        unknown_user = await client.post(f"/api/users/{FAKE_ID}/books/{book_id}")

        assert unknown_book.status_code == 404
        assert unknown_book.json() == {"error": "Book not found"}
        assert unknown_user.status_code == 404
        assert unknown_user.json() == {"error": "User not found"}

    @pytest.mark.asyncio
    async def test_assign_malformed_ids_returns_400(self, client, create_book):
        book_id = await create_book()

        responses = [
            await client.post(f"/api/users/abc/books/{book_id}"),
            await client.post(f"/api/users/{FAKE_ID}/books/1234"),
            await client.delete(f"/api/users/abc/books/{book_id}"),
        ]

        for response in responses:
            assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_deleting_book_removes_edges(self, client, create_user, create_book):
        user_id = await create_user()
        book_id = await create_book()
        await client.post(f"/api/users/{user_id}/books/{book_id}")
        assert len((await client.get(f"/api/users/{user_id}/books")).json()) == 1

        await client.delete(f"/api/books/{book_id}")

        assert (await client.get(f"/api/users/{user_id}/books")).json() == []
        removed = await client.delete(f"/api/users/{user_id}/books/{book_id}")
        assert removed.status_code == 404

    @pytest.mark.asyncio
    async def test_deleting_user_removes_edges(self, client, create_user, create_book):
        user_id = await create_user()
        book_id = await create_book()
        await client.post(f"/api/users/{user_id}/books/{book_id}")

        await client.delete(f"/api/users/{user_id}")

        assert (await client.get(f"/api/users/{user_id}/books")).status_code == 404
        popular = (await client.get("/api/books/popular")).json()
        assert popular[0]["id"] == book_id
        removed = await client.delete(f"/api/users/{user_id}/books/{book_id}")
        assert removed.status_code == 404
