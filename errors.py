# path: errors.py
from __future__ import annotations

from enum import Enum

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    INVALID_OPERATION = "INVALID_OPERATION"
    CONFLICT = "CONFLICT"
    INVALID_SCORE = "INVALID_SCORE"


class DomainError(Exception):
    """
    Error de negocio con un tipo cerrado (ErrorKind).
    Los services levantan estas excepciones; la capa HTTP las traduce a status.
    """

    kind: ErrorKind = ErrorKind.INVALID_OPERATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class NotFound(DomainError):
    kind = ErrorKind.NOT_FOUND


class Forbidden(DomainError):
    kind = ErrorKind.FORBIDDEN


class InvalidOperation(DomainError):
    kind = ErrorKind.INVALID_OPERATION


class Conflict(DomainError):
    kind = ErrorKind.CONFLICT


class InvalidScore(DomainError):
    kind = ErrorKind.INVALID_SCORE


HTTP_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.INVALID_OPERATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_SCORE: 422,
}


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    status_code = HTTP_STATUS_BY_KIND[exc.kind]

    logger.bind(
        http_status=status_code,
        http_method=request.method,
        url_path=str(request.url.path),
    ).warning(f"{exc.kind.value}: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": exc.kind.value},
    )
