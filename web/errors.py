"""Exception handlers rendering every failure as a {"error": ...} JSON envelope"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ecolimpio.utils.exceptions import AccountLockedError, EcoLimpioError, RateLimitError
from ecolimpio.utils.logger import get_logger

logger = get_logger(__name__)

GENERIC_ERROR = "Ha ocurrido un error. Inténtalo de nuevo más tarde."
INVALID_BODY = "Datos de la solicitud inválidos"


def error_response(message: str, status_code: int, headers: dict = None, **extra) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code, headers=headers)


async def ecolimpio_error_handler(request: Request, exc: EcoLimpioError) -> JSONResponse:
    headers = None
    extra = dict(exc.extra)
    if isinstance(exc, RateLimitError) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}
    if isinstance(exc, AccountLockedError):
        extra["lockoutMinutes"] = exc.lockout_minutes

    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=exc.message,
        )
        return error_response(GENERIC_ERROR, exc.status_code)
    return error_response(exc.message, exc.status_code, headers=headers, **extra)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else GENERIC_ERROR
    return error_response(message, exc.status_code, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    logger.debug("Request body rejected", path=request.url.path, errors=len(errors))
    return error_response(INVALID_BODY, 400)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, error=str(exc))
    return error_response(GENERIC_ERROR, 500)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EcoLimpioError, ecolimpio_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
