"""Domain errors and their HTTP rendering

Services raise these (all are ``ValueError`` subclasses, so callers that only
care about "the operation was rejected" can keep catching ``ValueError``).
The handlers registered in ``app.main`` turn them into the JSON envelope
``{"success": false, "message": ..., **extra}``.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(ValueError):
    """Base class for errors raised by the service layer"""
    status_code = 400

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra: Dict[str, Any] = extra

    def to_dict(self) -> Dict[str, Any]:
        body = {"success": False, "message": self.message}
        body.update(self.extra)
        return body


class ValidationError(ServiceError):
    status_code = 400


class UnauthorizedError(ServiceError):
    status_code = 401


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


def error_response(status_code: int, message: str, extra: Optional[Dict[str, Any]] = None) -> JSONResponse:
    content = {"success": False, "message": message}
    if extra:
        content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


async def service_error_handler(request: Request, exc: ServiceError):
    """Render a domain error raised anywhere below a route"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Render schema violations as 400 instead of FastAPI's default 422"""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return error_response(400, message, {"errors": [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors
    ]})
