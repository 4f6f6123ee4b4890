import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .observability import REQUEST_ID_HEADER, get_request_id, log_ctx, log_ctx_json

logger = logging.getLogger("hobhob-errors")

_HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


class HobHobError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, details: Optional[dict] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


def unauthorized(message: str = "Authentication required") -> HobHobError:
    return HobHobError(code="UNAUTHORIZED", message=message, status_code=401)


def validation_failed(field: str, issue: str) -> HobHobError:
    return HobHobError(
        code="VALIDATION_FAILED",
        message="Invalid request",
        status_code=400,
        details={"fieldErrors": [{"field": field, "issue": issue}]},
    )


def invalid_timezone(tz_name: str) -> HobHobError:
    return HobHobError(
        code="INVALID_TIMEZONE",
        message="Unknown timezone",
        status_code=400,
        details={"timezone": tz_name},
    )


def _error_body(code: str, message: str, details: Optional[dict] = None) -> dict:
    return {"error": {"code": code, "message": message, "details": details or {}}}


def setup_error_handlers(app: FastAPI):
    def _json_error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
        response = JSONResponse(status_code=status_code, content=content)
        request_id = get_request_id(request)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.exception_handler(HobHobError)
    async def hobhob_error_handler(request: Request, exc: HobHobError):
        if exc.status_code >= 500:
            logger.error(
                "HOBHOB_ERROR code=%s context=%s",
                exc.code,
                log_ctx_json(log_ctx(request, extra={"status_code": exc.status_code})),
            )
        return _json_error_response(
            request=request,
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        field_errors = [
            {
                "field": ".".join(str(p) for p in error["loc"]),
                "issue": error["msg"],
            }
            for error in exc.errors()
        ]
        return _json_error_response(
            request=request,
            status_code=400,
            content=_error_body("VALIDATION_FAILED", "Invalid request", {"fieldErrors": field_errors}),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        code = _HTTP_ERROR_CODES.get(exc.status_code, "INTERNAL_ERROR")
        return _json_error_response(
            request=request,
            status_code=exc.status_code,
            content=_error_body(code, exc.detail if isinstance(exc.detail, str) else "Error"),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception context=%s",
            log_ctx_json(log_ctx(request, extra={"status_code": 500})),
            exc_info=True,
        )
        return _json_error_response(
            request=request,
            status_code=500,
            content=_error_body("INTERNAL_ERROR", "Internal server error"),
        )
