"""Exception handlers that render every failure as ``{error, detail}``."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from services.exceptions import AccountingError

logger = logging.getLogger(__name__)


async def accounting_error_handler(request: Request, exc: AccountingError) -> JSONResponse:
    logger.warning(
        "%s %s rejected (%s): %s", request.method, request.url.path, exc.reason, exc
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc), "detail": exc.reason},
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning("%s %s invalid payload", request.method, request.url.path)
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "detail": jsonable_encoder(exc.errors())},
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Store failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Store error", "detail": "store_error"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal error", "detail": "internal_error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the accounting error handlers to an app."""
    app.add_exception_handler(AccountingError, accounting_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
