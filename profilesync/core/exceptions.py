# =============================================================================
# File: profilesync/core/exceptions.py
# Description: Exception handlers for FastAPI application
# =============================================================================

import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette import status
from starlette.responses import JSONResponse

from profilesync.common.exceptions.exceptions import NotFoundError, ValidationError
from profilesync.profile_sync.exceptions import ApplyError, RollbackError

logger = logging.getLogger("profilesync.exceptions")


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""

    app.add_exception_handler(ValidationError, domain_validation_exception_handler)
    app.add_exception_handler(NotFoundError, not_found_exception_handler)
    app.add_exception_handler(ApplyError, apply_exception_handler)
    app.add_exception_handler(RollbackError, rollback_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")


async def domain_validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Unknown section or wrong value shape; nothing was written"""
    logger.warning(f"Rejected request on path {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc), "type": type(exc).__name__},
    )


async def not_found_exception_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "type": type(exc).__name__},
    )


async def apply_exception_handler(request: Request, exc: ApplyError) -> JSONResponse:
    """Authoritative write failed; the update was not queued"""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
            "operation_id": exc.operation_id,
            "subject_id": exc.subject_id,
            "section": exc.section,
        },
    )


async def rollback_exception_handler(request: Request, exc: RollbackError) -> JSONResponse:
    """Compensating write failed; the record may not match what the caller expects"""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
            "operation_id": exc.operation_id,
            "subject_id": exc.subject_id,
            "section": exc.section,
            "inconsistent_state": True,
        },
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors"""
    logger.warning(f"Validation error on path {request.url.path}: {exc.errors()}")

    errors = []
    for error in exc.errors():
        error_dict = {
            "loc": error["loc"],
            "msg": error["msg"],
            "type": error["type"],
        }
        if "ctx" in error:
            error_dict["ctx"] = {
                key: str(value) if isinstance(value, Exception) else value
                for key, value in error["ctx"].items()
            }
        errors.append(error_dict)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general unhandled exceptions"""
    logger.error(f"Unhandled exception on path {request.url.path}: {str(exc)}", exc_info=True)

    if os.getenv("ENVIRONMENT", "development") == "production":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An internal server error occurred."}
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "type": type(exc).__name__}
    )
