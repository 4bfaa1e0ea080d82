"""
Uniform JSON envelope for every API outcome.

Success and failure share one shape:
``{statusCode, data, message, success, errors?}``.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("vidtube")


class ApiError(Exception):
    """Typed failure raised by handlers; rendered as an envelope by the app."""

    def __init__(self, status_code: int, message: str = "Something went wrong", errors: list[str] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class ApiResponse(JSONResponse):
    def __init__(self, status_code: int, data: Any = None, message: str = "Success", **kwargs):
        content = {
            "statusCode": status_code,
            "data": jsonable_encoder(data),
            "message": message,
            "success": status_code < 400,
        }
        super().__init__(content=content, status_code=status_code, **kwargs)


def error_response(status_code: int, message: str, errors: list[str] | None = None) -> JSONResponse:
    content = {
        "statusCode": status_code,
        "data": None,
        "message": message,
        "success": False,
        "errors": errors or [],
    }
    return JSONResponse(content=content, status_code=status_code)


def _format_validation_errors(exc: RequestValidationError) -> list[str]:
    errors = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
        errors.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return errors


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return error_response(exc.status_code, exc.message, exc.errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return error_response(exc.status_code, message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", _format_validation_errors(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")
