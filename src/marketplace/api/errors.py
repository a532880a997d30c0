"""Translate marketplace errors into HTTP responses.

Protean's handlers cover its base exceptions; the marketplace taxonomy is
registered on top. Starlette resolves a handler by walking the exception's
MRO, so the most specific class listed here wins.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from marketplace.errors import (
    Conflict,
    EmptyCart,
    InsufficientStock,
    InvalidState,
    NotFound,
    NotOwner,
    ProductUnavailable,
)

_STATUS_BY_ERROR = {
    NotFound: 404,
    NotOwner: 403,
    Conflict: 409,
    InvalidState: 409,
    EmptyCart: 400,
    InsufficientStock: 409,
    ProductUnavailable: 409,
}


def _responder(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        body = {"error": type(exc).__name__, "detail": getattr(exc, "messages", str(exc))}
        if isinstance(exc, InsufficientStock):
            body["available"] = exc.available
        return JSONResponse(status_code=status_code, content=body)

    return handler


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    for error_cls, status_code in _STATUS_BY_ERROR.items():
        app.add_exception_handler(error_cls, _responder(status_code))
