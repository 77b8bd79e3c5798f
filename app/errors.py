import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


def _error_payload(code: str, message: str, details):
    return {"code": code, "message": message, "details": details}


def _http_error_parts(exc: HTTPException) -> tuple[str, str, object]:
    detail = exc.detail
    if isinstance(detail, dict):
        return (
            detail.get("code", f"http_{exc.status_code}"),
            detail.get("message", "Request failed"),
            detail.get("details"),
        )
    if isinstance(detail, str):
        return f"http_{exc.status_code}", detail, None
    return f"http_{exc.status_code}", "Request failed", detail


def register_error_handlers(app) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        code, message, details = _http_error_parts(exc)
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(code, message, details),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        # ctx may hold raw exception objects
        errors = [
            {k: str(v) if k == "ctx" else v for k, v in err.items() if k != "url"}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=_error_payload("validation_error", "Validation error", errors),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        # racing certificate ids or duplicate archives trip unique constraints
        logger.warning(
            "Integrity error on %s %s: %s", request.method, request.url.path, exc.orig
        )
        return JSONResponse(
            status_code=409,
            content=_error_payload(
                "conflict", "Record conflicts with existing data, retry the request", None
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_payload("internal_error", "Internal server error", None),
        )
