"""
Tests for the error taxonomy and its HTTP rendering.

Covers:
- Status codes and log levels per error class
- Structured body (error, message, reason, timestamp)
- Internal details hidden by default
- Unhandled exceptions rendered as a generic 500
- Routing and validation failures rendered in the same shape
"""

import logging

import httpx
import pytest
from fastapi import FastAPI

from spotibuds.api import register_exception_handlers
from spotibuds.common.logging.correlation import correlation_id_var
from spotibuds.core.errors import (
    CacheError,
    ClientInputError,
    NotFoundError,
    RangeNotSatisfiableError,
    RetryExhausted,
    ServiceUnavailableError,
    SpotibudsError,
    UnclassifiedError,
)


@pytest.mark.unit
class TestTaxonomy:

    @pytest.mark.parametrize("error_cls,status", [
        (ClientInputError, 400),
        (NotFoundError, 404),
        (ServiceUnavailableError, 503),
        (UnclassifiedError, 500),
        (CacheError, 500),
    ])
    def test_status_codes(self, error_cls, status):
        assert error_cls("boom").status_code == status
        assert issubclass(error_cls, SpotibudsError)

    def test_range_error_carries_length(self):
        error = RangeNotSatisfiableError("nope", content_length=42)
        assert error.status_code == 416
        assert error.content_length == 42

    def test_service_unavailable_body(self):
        error = ServiceUnavailableError("db down", reason=ServiceUnavailableError.TIMEOUT)
        body = error.to_dict()

        assert body["error"] == "ServiceUnavailableError"
        assert body["message"] == "db down"
        assert body["reason"] == "timeout"
        assert body["timestamp"]

    def test_details_hidden_by_default(self):
        error = UnclassifiedError("Internal server error", data={"q": 1}, cause=RuntimeError("stack"))

        assert "cause" not in error.to_dict()
        assert error.to_dict(include_details=True)["cause"] == "stack"
        assert error.to_dict(include_details=True)["data"] == {"q": 1}

    def test_retry_exhausted_keeps_last_error(self):
        last = ConnectionResetError("reset")
        error = RetryExhausted(3, last)

        assert error.attempts == 3
        assert error.cause is last
        assert "3 attempts" in error.message

    def test_correlation_id_captured(self):
        token = correlation_id_var.set("abc12345")
        try:
            error = NotFoundError("missing")
        finally:
            correlation_id_var.reset(token)

        assert error.to_dict()["correlation_id"] == "abc12345"

    def test_client_errors_log_as_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="spotibuds.core.errors"):
            ClientInputError("URL parameter is required")

        records = [r for r in caplog.records if r.name == "spotibuds.core.errors"]
        assert records and records[-1].levelno == logging.WARNING

    def test_server_errors_log_as_error(self, caplog):
        with caplog.at_level(logging.WARNING, logger="spotibuds.core.errors"):
            UnclassifiedError("boom", cause=RuntimeError("x"))

        records = [r for r in caplog.records if r.name == "spotibuds.core.errors"]
        assert records and records[-1].levelno == logging.ERROR


@pytest.mark.api
class TestExceptionHandlers:

    @pytest.fixture
    def app(self):
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/input")
        async def bad_input():
            raise ClientInputError("URL must be absolute (scheme and host)")

        @app.get("/unavailable")
        async def unavailable():
            raise ServiceUnavailableError("db down")

        @app.get("/page")
        async def page(size: int):
            return {"size": size}

        @app.get("/crash")
        async def crash():
            raise RuntimeError("secret stack detail")

        return app

    @pytest.mark.asyncio
    async def test_taxonomy_error_rendered(self, app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://t") as client:
            response = await client.get("/input")

        assert response.status_code == 400
        assert response.json()["message"] == "URL must be absolute (scheme and host)"

    @pytest.mark.asyncio
    async def test_503_has_reason_and_timestamp(self, app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://t") as client:
            response = await client.get("/unavailable")

        body = response.json()
        assert response.status_code == 503
        assert body["reason"] == "connection_failed"
        assert body["timestamp"]

    @pytest.mark.asyncio
    async def test_unhandled_exception_is_generic_500(self, app):
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        async with httpx.AsyncClient(transport=transport, base_url="http://t") as client:
            response = await client.get("/crash")

        assert response.status_code == 500
        assert response.json()["error"] == "UnclassifiedError"
        assert "secret stack detail" not in response.text

    @pytest.mark.asyncio
    async def test_unknown_route_has_error_body(self, app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://t") as client:
            response = await client.get("/api/nope/x/y")

        body = response.json()
        assert response.status_code == 404
        assert body["error"] == "NotFoundError"
        assert body["message"] == "Not Found"
        assert "correlation_id" in body
        assert "detail" not in body

    @pytest.mark.asyncio
    async def test_wrong_method_keeps_allow_header(self, app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://t") as client:
            response = await client.post("/input")

        assert response.status_code == 405
        assert response.json()["error"] == "RequestRejectedError"
        assert "GET" in response.headers["allow"]

    @pytest.mark.asyncio
    async def test_validation_failure_is_client_input(self, app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://t") as client:
            response = await client.get("/page", params={"size": "many"})

        body = response.json()
        assert response.status_code == 400
        assert body["error"] == "ClientInputError"
        assert body["message"] == "Invalid request parameters: query.size"
