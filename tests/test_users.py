"""
Tests for user endpoints — listing, lookup, renaming, deletion, balances.

These tests verify:
  - Admin listing with page-number paging (default 10, max 50)
  - Lookup by username for admins and for the user themself
  - Admin-only renaming, including the taken-username conflict and no-ops
  - Deleting a user removes their cards too
  - The aggregate balance sums all cards and is 0.00 without cards
"""

import uuid

from sqlalchemy import func, select

from app.models.card import Card
from app.models.user import UserRole


class TestListUsers:

    async def test_list_users(self, client, admin, user, other_user):
        response = await client.get("/api/v1/users", headers=admin.headers)
        assert response.status_code == 200
        usernames = [u["username"] for u in response.json()]
        assert usernames == [admin.username, user.username, other_user.username]

    async def test_response_never_contains_password(self, client, admin):
        response = await client.get("/api/v1/users", headers=admin.headers)
        for entry in response.json():
            assert "password" not in entry
            assert "hashed_password" not in entry

    async def test_default_page_size_is_ten(self, client, admin, make_user):
        for i in range(11):
            await make_user(f"member{i:02d}")

        response = await client.get("/api/v1/users", headers=admin.headers)
        assert len(response.json()) == 10

        second = await client.get("/api/v1/users", params={"page": 2}, headers=admin.headers)
        assert len(second.json()) == 2

    async def test_descending_order(self, client, admin, user):
        response = await client.get(
            "/api/v1/users", params={"asc": False}, headers=admin.headers
        )
        assert [u["username"] for u in response.json()] == [user.username, admin.username]


class TestGetUserByUsername:

    async def test_self_lookup(self, client, user):
        response = await client.get(
            f"/api/v1/users/username/{user.username}", headers=user.headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(user.id)
        assert data["username"] == user.username

    async def test_admin_lookup(self, client, admin, user):
        response = await client.get(
            f"/api/v1/users/username/{user.username}", headers=admin.headers
        )
        assert response.status_code == 200

    async def test_admin_sees_roles(self, client, admin):
        response = await client.get(
            f"/api/v1/users/username/{admin.username}", headers=admin.headers
        )
        assert response.json()["roles"] == ["ADMIN", "USER"]

    async def test_unknown_username(self, client, admin):
        response = await client.get("/api/v1/users/username/ghost", headers=admin.headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "User not found with username: ghost."


class TestUpdateUser:
    """PATCH /api/v1/users/{user_id} is admin-only."""

    async def test_user_cannot_rename_self(self, client, user):
        response = await client.patch(
            f"/api/v1/users/{user.id}", json={"username": "alice2"}, headers=user.headers
        )
        assert response.status_code == 403
        assert response.json()["error_type"] == "access_denied"

        lookup = await client.get(
            f"/api/v1/users/username/{user.username}", headers=user.headers
        )
        assert lookup.status_code == 200

    async def test_admin_renames_user(self, client, admin, user):
        response = await client.patch(
            f"/api/v1/users/{user.id}", json={"username": "alice2"}, headers=admin.headers
        )
        assert response.status_code == 204

        # The token is bound to the id, so it keeps working after a rename
        lookup = await client.get("/api/v1/users/username/alice2", headers=user.headers)
        assert lookup.status_code == 200
        assert lookup.json()["id"] == str(user.id)

    async def test_rename_to_taken_username(self, client, admin, user, other_user):
        response = await client.patch(
            f"/api/v1/users/{user.id}",
            json={"username": other_user.username},
            headers=admin.headers,
        )
        assert response.status_code == 409

    async def test_rename_to_same_username_is_noop(self, client, admin, user):
        response = await client.patch(
            f"/api/v1/users/{user.id}", json={"username": user.username}, headers=admin.headers
        )
        assert response.status_code == 204

    async def test_empty_update_is_noop(self, client, admin, user):
        response = await client.patch(f"/api/v1/users/{user.id}", json={}, headers=admin.headers)
        assert response.status_code == 204

        lookup = await client.get(
            f"/api/v1/users/username/{user.username}", headers=user.headers
        )
        assert lookup.status_code == 200

    async def test_admin_renames_unknown_user(self, client, admin):
        response = await client.patch(
            f"/api/v1/users/{uuid.uuid4()}", json={"username": "nobody"}, headers=admin.headers
        )
        assert response.status_code == 404


class TestDeleteUser:

    async def test_delete_user_and_cards(
        self, client, admin, user, other_user, issue_card, db_session
    ):
        await issue_card(user.id, "1.00")
        await issue_card(user.id, "2.00")
        survivor = await issue_card(other_user.id, "3.00")

        response = await client.delete(f"/api/v1/users/{user.id}", headers=admin.headers)
        assert response.status_code == 204

        cards_left = await db_session.execute(
            select(func.count()).select_from(Card).where(Card.owner_id == user.id)
        )
        assert cards_left.scalar() == 0
        roles_left = await db_session.execute(
            select(func.count()).select_from(UserRole).where(UserRole.user_id == user.id)
        )
        assert roles_left.scalar() == 0

        lookup = await client.get(
            f"/api/v1/users/username/{user.username}", headers=admin.headers
        )
        assert lookup.status_code == 404
        other = await client.get(f"/api/v1/cards/{survivor['id']}", headers=admin.headers)
        assert other.status_code == 200

    async def test_delete_unknown_user(self, client, admin):
        response = await client.delete(f"/api/v1/users/{uuid.uuid4()}", headers=admin.headers)
        assert response.status_code == 404


class TestBalance:

    async def test_balance_without_cards(self, client, user):
        response = await client.get(f"/api/v1/users/{user.id}/balance", headers=user.headers)
        assert response.status_code == 200
        assert response.json() == {"user_id": str(user.id), "total_balance": "0.00"}

    async def test_balance_sums_all_cards(self, client, admin, user, other_user, issue_card):
        await issue_card(user.id, "10.25")
        await issue_card(user.id, "0.75")
        await issue_card(other_user.id, "100.00")

        response = await client.get(f"/api/v1/users/{user.id}/balance", headers=admin.headers)
        assert response.json()["total_balance"] == "11.00"

    async def test_balance_unknown_user(self, client, admin):
        response = await client.get(
            f"/api/v1/users/{uuid.uuid4()}/balance", headers=admin.headers
        )
        assert response.status_code == 404
