import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CustomError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, data: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def as_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code, "status": self.status_code, "data": self.data}


class NotFoundError(CustomError):
    status_code = 404
    code = "ENTITY_NOT_FOUND"

    def __init__(self, entity_name: str, entity_id: Any = None) -> None:
        super().__init__(f"{entity_name} not found.", {"entity": entity_name, "id": entity_id})


class InvalidInputError(CustomError):
    status_code = 400
    code = "BAD_USER_INPUT"

    def __init__(self, fields: dict[str, str], message: str = "There were validation errors.") -> None:
        super().__init__(message, {"fields": fields})
        self.fields = fields


class InvalidTokenError(CustomError):
    status_code = 401
    code = "INVALID_TOKEN"

    def __init__(self, message: str = "Authentication token is invalid.") -> None:
        super().__init__(message)


class ConcurrencyConflictError(CustomError):
    status_code = 500
    code = "CONCURRENCY_CONFLICT"


def _error_response(error: CustomError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"error": error.as_dict()})


async def handle_custom_error(request: Request, exc: CustomError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields: dict[str, str] = {}
    for item in exc.errors():
        # loc is ("body", "field", ...) or ("query", "field")
        name = ".".join(str(part) for part in item["loc"][1:]) or str(item["loc"][0])
        fields.setdefault(name, item["msg"])
    return _error_response(InvalidInputError(fields))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(CustomError("Something went wrong, please contact our support."))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CustomError, handle_custom_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
