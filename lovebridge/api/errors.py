from __future__ import annotations

"""Error taxonomy and JSON exception handlers.

Every error body is `{"error": <message>, "success": false, ...extra}`.
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lovebridge.services.logging import get_logger
from lovebridge.services.translator import TranslatorNotConfigured, UpstreamFailure


class ApiError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra


class ClientInputError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED


class MethodNotAllowed(ApiError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED


class QuotaExceeded(ApiError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


def _body(message: str, **extra: Any) -> dict[str, Any]:
    return {"error": message, "success": False, **extra}


async def _api_error(request: Request, exc: ApiError) -> JSONResponse:
    get_logger().info(
        "request_rejected",
        path=request.url.path,
        status=exc.status_code,
        error=exc.message,
    )
    headers = None
    retry_after = exc.extra.get("retryAfter")
    if retry_after:
        headers = {"Retry-After": str(retry_after)}
    return JSONResponse(status_code=exc.status_code, content=_body(exc.message, **exc.extra), headers=headers)


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    get_logger().info("request_invalid", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_body("Invalid input parameters"))


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return JSONResponse(
            status_code=exc.status_code,
            content=_body("Method not allowed", method=request.method),
            headers=getattr(exc, "headers", None),
        )
    return JSONResponse(status_code=exc.status_code, content=_body(str(exc.detail)))


async def _not_configured(request: Request, exc: TranslatorNotConfigured) -> JSONResponse:
    get_logger().error("translator_not_configured", path=request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_body(str(exc)))


async def _upstream_failure(request: Request, exc: UpstreamFailure) -> JSONResponse:
    get_logger().error("translation_failed", path=request.url.path, error=str(exc), upstream_status=exc.status)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_body("Translation failed"))


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    get_logger().error("request_failed", path=request.url.path, exc_info=exc)
    # runs outside CORSMiddleware, so the header is set here
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_body("Internal server error"),
        headers={"Access-Control-Allow-Origin": "*"},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_error)  # type: ignore[arg-type]
    app.add_exception_handler(TranslatorNotConfigured, _not_configured)  # type: ignore[arg-type]
    app.add_exception_handler(UpstreamFailure, _upstream_failure)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled)
