"""
HTTP tests for the read-only catalog endpoints.

Reads go through the connection guard (fail fast on a down store) and the
retry executor (transient failures retried, then 503 with a reason).
"""

import pytest
from pymongo.errors import AutoReconnect, OperationFailure


@pytest.mark.api
class TestCatalogReads:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("collection,expected_ids", [
        ("artists", ["a1"]),
        ("albums", ["al1"]),
        ("songs", ["s1"]),
        ("playlists", []),
    ])
    async def test_list(self, client, collection, expected_ids):
        response = await client.get(f"/api/{collection}")

        assert response.status_code == 200
        assert [doc["id"] for doc in response.json()] == expected_ids

    @pytest.mark.asyncio
    async def test_get_by_id(self, client):
        response = await client.get("/api/songs/s1")

        assert response.status_code == 200
        assert response.json()["title"] == "Sinnerman"

    @pytest.mark.asyncio
    async def test_unknown_id_is_404(self, client):
        response = await client.get("/api/artists/nobody")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "NotFoundError"
        assert body["message"] == "Artist not found"


@pytest.mark.api
class TestStoreFailures:

    @pytest.mark.asyncio
    async def test_guard_down_fails_fast_with_503(self, client, services, document_store):
        """Cached health flag is false.

        ЧТО ПРОВЕРЯЕМ:
            503 connection_failed with timestamp, store never queried
        """
        document_store.ping_result = False
        await services.guard.refresh()

        response = await client.get("/api/artists")

        assert response.status_code == 503
        body = response.json()
        assert body["reason"] == "connection_failed"
        assert body["timestamp"]
        assert body["message"]
        assert document_store.read_calls == 0

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, client, document_store):
        document_store.failures = [AutoReconnect("connection reset")]

        response = await client.get("/api/albums")

        assert response.status_code == 200
        assert document_store.read_calls == 2

    @pytest.mark.asyncio
    async def test_retries_exhausted_is_503(self, client, document_store):
        document_store.failures = [ConnectionResetError("reset")] * 3

        response = await client.get("/api/songs")

        assert response.status_code == 503
        assert response.json()["reason"] == "retries_exhausted"
        assert document_store.read_calls == 3

    @pytest.mark.asyncio
    async def test_repeated_timeouts_are_503_timeout(self, client, document_store):
        document_store.failures = [TimeoutError("operation timeout")] * 3

        response = await client.get("/api/songs/s1")

        assert response.status_code == 503
        assert response.json()["reason"] == "timeout"

    @pytest.mark.asyncio
    async def test_non_retryable_failure_is_500_without_leaking(self, client, document_store):
        document_store.failures = [OperationFailure("secret internal detail")]

        response = await client.get("/api/playlists")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "UnclassifiedError"
        assert "secret internal detail" not in response.text
        assert document_store.read_calls == 1

    @pytest.mark.asyncio
    async def test_error_details_exposed_when_enabled(self, client, services, document_store):
        services.settings.expose_error_details = True
        document_store.failures = [OperationFailure("secret internal detail")]

        response = await client.get("/api/playlists")

        assert response.status_code == 500
        assert "secret internal detail" in response.json()["cause"]
