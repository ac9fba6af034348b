"""Tests for request context middleware."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from name_enricher.api.middleware import REQUEST_ID_HEADER, RequestContextMiddleware, get_request_id


@pytest.fixture
def client():
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)

    @app.get("/echo")
    async def echo():
        return {"request_id": get_request_id()}

    return TestClient(app)


class TestRequestContextMiddleware:
    def test_generates_request_id(self, client):
        response = client.get("/echo")
        request_id = response.headers[REQUEST_ID_HEADER]
        assert len(request_id) == 36
        assert response.json()["request_id"] == request_id

    def test_propagates_supplied_request_id(self, client):
        response = client.get("/echo", headers={"X-Request-ID": "abc-123"})
        assert response.headers[REQUEST_ID_HEADER] == "abc-123"
        assert response.json()["request_id"] == "abc-123"

    def test_each_request_gets_its_own_id(self, client):
        first = client.get("/echo").headers[REQUEST_ID_HEADER]
        second = client.get("/echo").headers[REQUEST_ID_HEADER]
        assert first != second

    def test_context_is_reset_after_request(self, client):
        client.get("/echo", headers={"X-Request-ID": "abc-123"})
        assert get_request_id() == ""
