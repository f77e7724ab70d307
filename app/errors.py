"""
Error taxonomy for uploads. Every error carries the HTTP status it maps to;
one FastAPI handler turns them into {"detail": ...} responses.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TubelyError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TubelyError):
    """Bad ID, bad form, wrong media type, oversized body."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(TubelyError):
    """Missing/invalid/expired credential or ownership mismatch."""
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(TubelyError):
    status_code = status.HTTP_404_NOT_FOUND


class ProcessingError(TubelyError):
    """ffprobe/ffmpeg failure, malformed probe output, no video stream."""


class StorageError(TubelyError):
    """Local disk I/O, object store or record store failure."""


async def tubely_error_handler(request: Request, exc: TubelyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc.__cause__)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed path/form input is a client fault: 400 rather than FastAPI's default 422."""
    logger.info("%s %s rejected (400): %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "Couldn't parse form data"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TubelyError, tubely_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
