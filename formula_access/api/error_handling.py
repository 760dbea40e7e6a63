"""Render core errors as a uniform JSON envelope: {error, code, timestamp, details?}."""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from formula_access.core.errors import AppError

logger = logging.getLogger(__name__)


def _error_response(exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers for AppError and request validation errors."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Server error: code=%s path=%s method=%s message=%s",
                exc.code,
                request.url.path,
                request.method,
                exc.message,
            )
        else:
            logger.info(
                "Request refused: status=%s code=%s path=%s",
                exc.status_code,
                exc.code,
                request.url.path,
            )
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content={
                "error": "Validation failed",
                "code": "VALIDATION_ERROR",
                "timestamp": datetime.now(UTC).isoformat(),
                "details": {"errors": details},
            },
        )
