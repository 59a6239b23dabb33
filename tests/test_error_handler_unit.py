"""Focused unit tests for global exception handling behaviors.

These tests exercise the public contract via FastAPI test app using the installed
exception handlers and ExceptionNormalizationMiddleware.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from unittest.mock import patch

import pytest
from fastapi import FastAPI, HTTPException, status
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from core.error_handler import register_exception_handlers
from core.exceptions import ProjectNotFoundError
from core.middleware import CORRELATION_HEADER, CorrelationIdMiddleware


class Item(BaseModel):
    name: str = Field(min_length=3)
    qty: int = Field(ge=1)


def _build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    app.add_middleware(CorrelationIdMiddleware)

    @app.post("/items")
    async def create_item(item: Item):  # pragma: no cover - executed via client
        return {"ok": True, "item": item.model_dump()}

    @app.get("/project-missing")
    async def project_missing():
        raise ProjectNotFoundError("abc")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("Exploded with secret=should_not_leak")

    @app.get("/conflict")
    async def conflict():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Already rendering"
        )

    return app


@pytest.fixture
def build_test_app() -> Iterator[Callable[[str], TestClient]]:
    """Client factory; the environment setting is patched per test."""
    with patch("core.error_handler.get_settings") as mocked:

        def _build(env: str) -> TestClient:
            mocked.return_value.ENVIRONMENT = env
            return TestClient(_build_app(), raise_server_exceptions=False)

        yield _build


def test_validation_error_production(build_test_app):
    client = build_test_app("production")
    resp = client.post("/items", json={"name": "ab", "qty": 0})
    assert resp.status_code == 422
    data = resp.json()
    assert data["error"]["type"] == "validation_error"
    # production should not include validation_errors
    assert "validation_errors" not in data["error"]


def test_validation_error_development(build_test_app):
    client = build_test_app("development")
    resp = client.post("/items", json={"name": "ab", "qty": 0})
    assert resp.status_code == 422
    assert "validation_errors" in resp.json()["error"]


def test_project_not_found_maps_to_404(build_test_app):
    client = build_test_app("production")
    resp = client.get("/project-missing")
    assert resp.status_code == 404
    data = resp.json()
    assert data["success"] is False
    assert data["error"]["type"] == "domain_error"
    assert "details" not in data["error"]


def test_project_not_found_development_details(build_test_app):
    client = build_test_app("development")
    resp = client.get("/project-missing")
    assert resp.status_code == 404
    assert resp.json()["error"]["details"]["detail"] == "Project with id abc not found"


def test_generic_exception_production(build_test_app):
    client = build_test_app("production")
    resp = client.get("/boom")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"]["type"] == "internal_server_error"
    assert "traceback" not in body["error"]
    assert "secret=should_not_leak" not in str(body)


def test_generic_exception_development(build_test_app):
    client = build_test_app("development")
    resp = client.get("/boom")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"]["type"] == "internal_server_error"
    assert "traceback" in body["error"]


def test_http_exception_keeps_status_and_message(build_test_app):
    client = build_test_app("production")
    resp = client.get("/conflict")
    assert resp.status_code == 409
    body = resp.json()
    assert body["message"] == "Already rendering"
    assert body["error"]["type"] == "http_error"
    assert "details" not in body["error"]


def test_correlation_id_echoed_in_header_and_body(build_test_app):
    client = build_test_app("production")
    resp = client.get("/project-missing", headers={CORRELATION_HEADER: "req-42"})
    assert resp.headers[CORRELATION_HEADER] == "req-42"
    assert resp.json()["error"]["correlation_id"] == "req-42"
