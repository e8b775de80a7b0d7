from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.shared.error_codes import ERROR_CODES
from src.shared.logging import get_logger

logger = get_logger(__name__)


# ───────────────────────── Base & Domain Exceptions ─────────────────────────
class DomainError(Exception):
    """Base class for domain-level errors. Services should raise these, never HTTPException."""
    code: str = "domain_error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str
    details: Optional[Any]
    error: Optional[str]

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
        error: Optional[str] = None,
    ) -> None:
        super().__init__(message or self.__class__.__name__)
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.message = message or ERROR_CODES.get(self.code, {}).get("message", self.__class__.__name__)
        self.details = details
        self.error = error


class InvalidInputError(DomainError):
    code = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthenticatedError(DomainError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(DomainError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(DomainError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    # Duplicate 1:1 children are reported as 400 with the existing row in `details`.
    code = "conflict"
    status_code = status.HTTP_400_BAD_REQUEST


class SchedulingConflictError(ConflictError):
    code = "scheduling_conflict"

    def __init__(self, date: str, time: str) -> None:
        super().__init__(
            f"The veterinarian already has an appointment on {date} at {time}",
            details={"date": date, "time": time},
        )


class InvalidStateError(DomainError):
    code = "invalid_state"
    status_code = status.HTTP_400_BAD_REQUEST


class DependencyError(DomainError):
    """A remote service failed, timed out or answered with an unexpected status."""
    code = "dependency_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "", *, service: Optional[str] = None, upstream: Optional[str] = None) -> None:
        super().__init__(
            message,
            details={"service": service} if service else None,
            error=upstream or message or None,
        )


# ───────────────────────────── Helpers ──────────────────────────────────────

def _envelope(
    code: str,
    message: str,
    *,
    data: Optional[Any] = None,
    error: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message, "code": code}
    if data is not None:
        body["data"] = data
    if error:
        body["error"] = error
    if correlation_id:
        body["correlation_id"] = correlation_id
    return jsonable_encoder(body)


def _extract_correlation_id(req: Request) -> Optional[str]:
    return getattr(getattr(req, "state", None), "correlation_id", None)


def _http_for(code: str) -> int:
    return int(ERROR_CODES.get(code, {}).get("http", status.HTTP_500_INTERNAL_SERVER_ERROR))


def _msg_for(code: str) -> str:
    return str(ERROR_CODES.get(code, {}).get("message", code))


# ─────────────────────────── Registration ───────────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def handle_domain_error(req: Request, exc: DomainError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log("request.domain_error", code=exc.code, message=exc.message, error=exc.error)
        return JSONResponse(
            status_code=exc.status_code,
            content=_envelope(
                exc.code,
                exc.message,
                data=exc.details,
                error=exc.error,
                correlation_id=_extract_correlation_id(req),
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(req: Request, exc: RequestValidationError):
        code = "invalid_input"
        return JSONResponse(
            status_code=_http_for(code),
            content=_envelope(
                code,
                _msg_for(code),
                data={"errors": exc.errors()},
                correlation_id=_extract_correlation_id(req),
            ),
        )

    @app.exception_handler(PydanticValidationError)
    async def handle_pydantic_validation(req: Request, exc: PydanticValidationError):
        code = "invalid_input"
        return JSONResponse(
            status_code=_http_for(code),
            content=_envelope(
                code,
                _msg_for(code),
                data={"errors": exc.errors()},
                correlation_id=_extract_correlation_id(req),
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(req: Request, exc: StarletteHTTPException):
        # map HTTP status → first matching ERROR_CODES entry
        reverse_map: Dict[int, str] = {}
        for key, value in ERROR_CODES.items():
            reverse_map.setdefault(value["http"], key)
        code = reverse_map.get(exc.status_code, "internal_error")
        detail = getattr(exc, "detail", None)
        return JSONResponse(
            status_code=exc.status_code,
            content=_envelope(
                code,
                str(detail) if isinstance(detail, str) else _msg_for(code),
                correlation_id=_extract_correlation_id(req),
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(req: Request, exc: Exception):
        code = "internal_error"
        logger.exception("request.unhandled_error", error_type=exc.__class__.__name__)
        return JSONResponse(
            status_code=_http_for(code),
            content=_envelope(
                code,
                _msg_for(code),
                error=str(exc) or exc.__class__.__name__,
                correlation_id=_extract_correlation_id(req),
            ),
        )
