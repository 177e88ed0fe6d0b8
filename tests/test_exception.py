import pytest
import json
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from app import exceptions


@pytest.mark.asyncio
async def test_api_exception_handler():
    exc = exceptions.ConflictException("User with this email already exists")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.api_exception_handler(request, exc)

    assert response.status_code == 409
    # JSONResponse body is bytes, need to decode and parse
    body = json.loads(response.body.decode())
    assert body == {"kind": "conflict", "detail": "User with this email already exists"}


@pytest.mark.asyncio
async def test_upstream_exception_handler():
    exc = exceptions.UpstreamException("Failed to upload image to Cloudinary: timeout")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.api_exception_handler(request, exc)

    assert response.status_code == 502
    body = json.loads(response.body.decode())
    assert body["kind"] == "upstream_failure"


@pytest.mark.asyncio
async def test_validation_exception_handler():
    exc = RequestValidationError([{"loc": ("query", "limit"), "msg": "too big", "type": "less_than_equal"}])
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.validation_exception_handler(request, exc)

    assert response.status_code == 422
    body = json.loads(response.body.decode())
    assert body["kind"] == "validation_failure"
    assert body["detail"][0]["loc"] == ["query", "limit"]


@pytest.mark.asyncio
async def test_http_exception_handler():
    exc = HTTPException(status_code=403, detail="Forbidden")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.http_exception_handler(request, exc)

    assert response.status_code == 403
    body = json.loads(response.body.decode())
    assert body == {"kind": "http_error", "detail": "Forbidden"}


@pytest.mark.asyncio
async def test_generic_exception_handler():
    exc = ValueError("Something went wrong")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.generic_exception_handler(request, exc)

    assert response.status_code == 500
    body = json.loads(response.body.decode())
    assert body == {"kind": "internal_error", "detail": "An unexpected error occurred."}


def test_custom_exceptions_inherit_api_exception():
    exc = exceptions.InvalidImageException("Bad format")
    assert isinstance(exc, exceptions.APIException)
    assert exc.status_code == 400
    assert exc.kind == "validation_failure"
    assert "Bad format" in str(exc)


def test_authentication_exception_defaults_to_uniform_message():
    exc = exceptions.AuthenticationException()
    assert exc.status_code == 401
    assert exc.detail == "Invalid credentials"
