"""
Integration tests for how data store failures reach the client.
"""

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from api.dependencies import get_content_query


class QueryCanceled(Exception):
    sqlstate = "57014"


class FailingQuery:
    def __init__(self, exc: Exception):
        self.exc = exc

    async def approved(self, **kwargs):
        raise self.exc


@pytest.fixture
def failing_query(async_client):
    from main import app

    def install(exc: Exception):
        app.dependency_overrides[get_content_query] = lambda: FailingQuery(exc)

    return install


class TestDataStoreFailures:
    @pytest.mark.asyncio
    async def test_statement_timeout_is_504(self, async_client: AsyncClient, failing_query):
        failing_query(OperationalError("SELECT", {}, QueryCanceled("canceling statement")))

        response = await async_client.get("/api/v1/articles/approved")

        assert response.status_code == status.HTTP_504_GATEWAY_TIMEOUT
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_client_side_timeout_is_504(self, async_client: AsyncClient, failing_query):
        failing_query(TimeoutError())

        response = await async_client.get("/api/v1/articles/approved")

        assert response.status_code == status.HTTP_504_GATEWAY_TIMEOUT

    @pytest.mark.asyncio
    async def test_other_driver_error_is_502(self, async_client: AsyncClient, failing_query):
        failing_query(OperationalError("SELECT", {}, Exception("connection reset")))

        response = await async_client.get("/api/v1/articles/approved")

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["message"] == "Database error"
