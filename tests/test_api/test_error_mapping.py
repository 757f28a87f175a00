"""
Tests for domain error -> HTTP status mapping
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from event_locator.api.errors import register_exception_handlers
from event_locator.domain.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DependencyUnavailableError,
    EventNotFoundError,
    ValidationError,
)


def _client_raising(exc: Exception) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    def boom():
        raise exc

    return TestClient(app)


@pytest.mark.parametrize(
    ("exc", "status_code", "code"),
    [
        (ValidationError("bad", ["title"]), 400, "VALIDATION_FAILED"),
        (AuthenticationError("no session"), 401, "UNAUTHENTICATED"),
        (AuthorizationError("not yours"), 403, "FORBIDDEN"),
        (EventNotFoundError(7), 404, "NOT_FOUND"),
        (ConflictError("email taken"), 409, "CONFLICT"),
        (DependencyUnavailableError("redis"), 503, "DEPENDENCY_UNAVAILABLE"),
    ],
)
def test_status_follows_error_code(exc, status_code, code):
    response = _client_raising(exc).get("/boom")

    assert response.status_code == status_code
    assert response.json()["success"] is False
    assert response.json()["code"] == code


def test_conflict_message_is_localized():
    client = _client_raising(ConflictError("email taken"))

    assert client.get("/boom").json()["message"] == "Already exists"
    assert client.get("/boom", headers={"Accept-Language": "es"}).json()["message"] == "Ya existe"
