"""
Integration tests for the users API.
"""

import pytest
from fastapi import status
from httpx import AsyncClient


class TestRegister:
    @pytest.mark.asyncio
    async def test_new_user_is_201(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/users",
            json={"email": "Newcomer@Example.com", "name": "Newcomer", "is_admin": True},
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["created"] is True
        assert data["user"]["email"] == "newcomer@example.com"
        assert data["user"]["is_admin"] is False

    @pytest.mark.asyncio
    async def test_existing_user_is_unchanged(self, async_client: AsyncClient, admin_user):
        response = await async_client.post(
            "/api/v1/users", json={"email": admin_user.email, "name": "Someone else"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "User already exists"
        assert data["created"] is False
        assert data["user"]["is_admin"] is True
        assert data["user"]["name"] == "Site Admin"


class TestRole:
    @pytest.mark.asyncio
    async def test_own_role(self, async_client: AsyncClient, premium_headers, premium_user):
        response = await async_client.get(
            f"/api/v1/users/role/{premium_user.email}", headers=premium_headers
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_premium"] is True
        assert response.json()["is_admin"] is False

    @pytest.mark.asyncio
    async def test_lapsed_premium_reads_false(
        self, async_client: AsyncClient, expired_headers, expired_premium_user
    ):
        response = await async_client.get(
            f"/api/v1/users/role/{expired_premium_user.email}", headers=expired_headers
        )

        assert response.json()["is_premium"] is False

    @pytest.mark.asyncio
    async def test_admin_reads_anyone(self, async_client: AsyncClient, admin_headers, regular_user):
        response = await async_client.get(
            f"/api/v1/users/role/{regular_user.email}", headers=admin_headers
        )
        assert response.status_code == status.HTTP_200_OK


class TestRoleUpdate:
    @pytest.mark.asyncio
    async def test_self_premium_grant_is_refused(
        self, async_client: AsyncClient, user_headers, regular_user
    ):
        response = await async_client.patch(
            f"/api/v1/users/role/update/{regular_user.email}",
            headers=user_headers,
            json={"is_premium": True},
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_admin_cannot_grant_premium_either(
        self, async_client: AsyncClient, admin_headers, regular_user
    ):
        response = await async_client.patch(
            f"/api/v1/users/role/update/{regular_user.email}",
            headers=admin_headers,
            json={"is_premium": True},
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_self_premium_clear(self, async_client: AsyncClient, premium_headers, premium_user):
        response = await async_client.patch(
            f"/api/v1/users/role/update/{premium_user.email}",
            headers=premium_headers,
            json={"is_premium": False},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_premium"] is False
        assert response.json()["premium_expires_at"] is None

    @pytest.mark.asyncio
    async def test_admin_flag_needs_admin(
        self, async_client: AsyncClient, user_headers, regular_user
    ):
        response = await async_client.patch(
            f"/api/v1/users/role/update/{regular_user.email}",
            headers=user_headers,
            json={"is_admin": True},
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_admin_promotes(self, async_client: AsyncClient, admin_headers, writer_user):
        response = await async_client.patch(
            f"/api/v1/users/role/update/{writer_user.email}",
            headers=admin_headers,
            json={"is_admin": True},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_admin"] is True

    @pytest.mark.asyncio
    async def test_empty_update_is_400(self, async_client: AsyncClient, admin_headers, writer_user):
        response = await async_client.patch(
            f"/api/v1/users/role/update/{writer_user.email}", headers=admin_headers, json={}
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestProfileUpdate:
    @pytest.mark.asyncio
    async def test_own_profile(self, async_client: AsyncClient, user_headers, regular_user):
        response = await async_client.patch(
            f"/api/v1/users/update/{regular_user.id}",
            headers=user_headers,
            json={"name": "Avid Reader"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Avid Reader"

    @pytest.mark.asyncio
    async def test_role_fields_rejected(self, async_client: AsyncClient, user_headers, regular_user):
        response = await async_client.patch(
            f"/api/v1/users/update/{regular_user.id}",
            headers=user_headers,
            json={"name": "Sneaky", "is_admin": True},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_someone_elses_profile(self, async_client: AsyncClient, user_headers, writer_user):
        response = await async_client.patch(
            f"/api/v1/users/update/{writer_user.id}",
            headers=user_headers,
            json={"name": "Hijacked"},
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_unknown_user_is_404(self, async_client: AsyncClient, user_headers):
        response = await async_client.patch(
            "/api/v1/users/update/missing", headers=user_headers, json={"name": "Ghost"}
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestListingAndSummary:
    @pytest.mark.asyncio
    async def test_admin_lists_users(
        self, async_client: AsyncClient, admin_headers, regular_user, writer_user
    ):
        response = await async_client.get(
            "/api/v1/users", headers=admin_headers, params={"skip": 0, "limit": 2}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 3
        assert len(data["items"]) == 2

    @pytest.mark.asyncio
    async def test_non_admin_cannot_list(self, async_client: AsyncClient, user_headers):
        response = await async_client.get("/api/v1/users", headers=user_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_summary(
        self, async_client: AsyncClient, writer_headers, writer_user, free_article, pending_article
    ):
        response = await async_client.get(
            f"/api/v1/users/{writer_user.email}", headers=writer_headers
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["user"]["email"] == writer_user.email
        assert data["articles"] == 2
        assert data["total_payment"] == 0

    @pytest.mark.asyncio
    async def test_counts_are_public(
        self, async_client: AsyncClient, regular_user, premium_user, expired_premium_user
    ):
        response = await async_client.get("/api/v1/users/counts")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"premium": 1, "non_premium": 2}


class TestLapsedPremiumIsReportedFalse:
    @pytest.mark.asyncio
    async def test_summary_matches_role(
        self, async_client: AsyncClient, expired_headers, expired_premium_user
    ):
        summary = await async_client.get(
            f"/api/v1/users/{expired_premium_user.email}", headers=expired_headers
        )
        role = await async_client.get(
            f"/api/v1/users/role/{expired_premium_user.email}", headers=expired_headers
        )

        assert summary.json()["user"]["is_premium"] is False
        assert role.json()["is_premium"] is False

    @pytest.mark.asyncio
    async def test_listing_and_registration(
        self, async_client: AsyncClient, admin_headers, expired_premium_user, premium_user
    ):
        listing = await async_client.get("/api/v1/users", headers=admin_headers)
        flags = {u["email"]: u["is_premium"] for u in listing.json()["items"]}
        assert flags[expired_premium_user.email] is False
        assert flags[premium_user.email] is True

        registered = await async_client.post(
            "/api/v1/users", json={"email": expired_premium_user.email}
        )
        assert registered.json()["user"]["is_premium"] is False

    @pytest.mark.asyncio
    async def test_profile_update(
        self, async_client: AsyncClient, expired_headers, expired_premium_user
    ):
        response = await async_client.patch(
            f"/api/v1/users/update/{expired_premium_user.id}",
            headers=expired_headers,
            json={"name": "Lapsed Reader"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_premium"] is False
