from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.api.schemas import ErrorResponse
from storefront.payments.errors import CheckoutError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


async def handle_checkout_error(request: Request, exc: CheckoutError) -> JSONResponse:
    log = logger.info if exc.status_code < 500 else logger.error
    log(
        exc.event_code,
        extra={
            "endpoint": request.url.path,
            "transaction_id": exc.transaction_id,
            "error": str(exc),
        },
    )
    return error_response(exc.status_code, exc.client_message)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(
        "request_body_invalid",
        extra={"endpoint": request.url.path, "errors": len(exc.errors())},
    )
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body")


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error",
        extra={"endpoint": request.url.path, "error": exc.__class__.__name__},
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_error_handlers(application: FastAPI) -> None:
    application.add_exception_handler(CheckoutError, handle_checkout_error)
    application.add_exception_handler(RequestValidationError, handle_request_validation_error)
    application.add_exception_handler(Exception, handle_unexpected_error)
