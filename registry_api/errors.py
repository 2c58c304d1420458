"""Exceptions shared across the API and their HTTP renderings."""

import logging

from elasticsearch import ApiError, ConnectionTimeout, TransportError
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class InvalidPlaceId(ValueError):
    """An opaque place id that does not decode to a dimension tuple."""


class StoreResponseError(RuntimeError):
    """The search store answered with a payload we cannot interpret."""


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _context(request: Request) -> str:
    return f"{request.method} {request.url.path}?{request.url.query}"


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def _http_error(request: Request, exc: HTTPException) -> JSONResponse:
        return _failure(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def _invalid_params(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
            for err in exc.errors()
        )
        return _failure(422, problems or "Invalid request parameters.")

    @app.exception_handler(InvalidPlaceId)
    async def _invalid_place(request: Request, exc: InvalidPlaceId) -> JSONResponse:
        return _failure(400, str(exc) or "Invalid place id.")

    @app.exception_handler(ConnectionTimeout)
    async def _store_timeout(request: Request, exc: ConnectionTimeout) -> JSONResponse:
        logger.error("Search store timed out for %s: %s", _context(request), exc)
        return _failure(504, "Search store timed out.")

    @app.exception_handler(TransportError)
    async def _store_unreachable(request: Request, exc: TransportError) -> JSONResponse:
        logger.error("Search store unreachable for %s: %s", _context(request), exc)
        return _failure(503, "Search store unavailable.")

    @app.exception_handler(ApiError)
    async def _store_rejected(request: Request, exc: ApiError) -> JSONResponse:
        logger.error("Search store rejected query for %s: status=%s %s", _context(request), exc.meta.status, exc.message)
        return _failure(502, "Search store query failed.")

    @app.exception_handler(StoreResponseError)
    async def _store_malformed(request: Request, exc: StoreResponseError) -> JSONResponse:
        logger.error("Malformed search store response for %s: %s", _context(request), exc)
        return _failure(502, "Search store returned an unexpected response.")
