"""HTTP status mapping for order errors.

Registered after Protean's generic handlers so the more specific order
errors take precedence.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

from ordering.order.errors import UniquenessConflict

STATUS_CODES = {
    ValidationError: 400,
    ObjectNotFoundError: 404,
    InvalidOperationError: 409,
    UniquenessConflict: 503,
}


def _handler_for(status_code):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"error": exc.messages})

    return handler


def register_order_exception_handlers(app: FastAPI) -> None:
    for exc_class, status_code in STATUS_CODES.items():
        app.add_exception_handler(exc_class, _handler_for(status_code))
