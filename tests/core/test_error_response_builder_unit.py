import json
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError
from starlette.requests import Request

from core.error_handler import (
    _build_error_response,
    global_exception_handler,
    set_correlation_id,
)
from core.exceptions import DomainError, ProjectNotFoundError


class EngravingTooLongError(DomainError):
    pass


def _request() -> Request:
    return Request({"type": "http", "method": "POST", "path": "/", "headers": []})


async def _handle(exc: Exception, environment: str):
    settings = MagicMock(ENVIRONMENT=environment)
    set_correlation_id("cid-7")
    try:
        with patch("core.error_handler.get_settings", return_value=settings):
            resp = await global_exception_handler(_request(), exc)
    finally:
        set_correlation_id(None)
    return resp, json.loads(resp.body)


@pytest.mark.asyncio
async def test_missing_project_development_carries_detail():
    resp, body = await _handle(ProjectNotFoundError("p-42"), "development")

    assert resp.status_code == 404
    assert body["success"] is False
    assert body["message"] == "The requested resource was not found"
    assert body["error"] == {
        "correlation_id": "cid-7",
        "type": "domain_error",
        "details": {"detail": "Project with id p-42 not found"},
    }


@pytest.mark.asyncio
async def test_missing_project_production_hides_project_id():
    resp, body = await _handle(ProjectNotFoundError("p-42"), "production")

    assert resp.status_code == 404
    assert body["error"] == {"correlation_id": "cid-7", "type": "domain_error"}
    assert "p-42" not in resp.body.decode()


@pytest.mark.asyncio
async def test_unmapped_domain_error_is_bad_request():
    resp, body = await _handle(EngravingTooLongError("too long"), "development")

    assert resp.status_code == 400
    assert body["message"] == "Domain error"
    assert body["error"]["details"] == {"detail": "too long"}


@pytest.mark.asyncio
async def test_integrity_error_is_conflict_without_sql():
    exc = IntegrityError(
        "INSERT INTO messages ...", {}, Exception("UNIQUE constraint failed")
    )

    resp, body = await _handle(exc, "development")

    assert resp.status_code == 409
    assert body["error"]["type"] == "integrity_error"
    assert "INSERT INTO" not in resp.body.decode()


def test_empty_details_are_omitted_even_in_development():
    resp = _build_error_response(
        correlation_id="cid",
        error_type="domain_error",
        message="Domain error",
        environment="development",
        details={},
        status_code=400,
    )

    assert "details" not in json.loads(resp.body)["error"]
