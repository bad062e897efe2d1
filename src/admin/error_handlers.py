"""Global exception handlers for the admin API.

AdminActionError → {"error": kind, "message": text} with the mapped status.
RequestValidationError → 400 invalid_input with field details.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.admin.errors import AdminActionError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all admin error handlers on the FastAPI app."""

    @app.exception_handler(AdminActionError)
    async def admin_action_error_handler(request: Request, exc: AdminActionError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", exc.kind, request.url.path, exc.message)
        else:
            logger.info("%s on %s: %s", exc.kind, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "invalid_input",
                "message": "Invalid request data",
                "details": jsonable_encoder(exc.errors()),
            },
        )
