"""Mapping from domain exceptions to HTTP errors."""

from typing import NoReturn

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..core.exceptions import DomainException


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


async def _domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    # Domain errors raised outside a route's own try block
    http_exc = exc.to_http_exception()
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, _domain_exception_handler)
