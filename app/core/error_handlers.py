from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
import logging

from .exceptions import SchoolHubException

logger = logging.getLogger(__name__)


def format_validation_errors(errors) -> str:
    """Flatten pydantic errors into 'field: message; ...'."""
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        parts.append(f"{field}: {err.get('msg')}")
    return "; ".join(parts)

async def schoolhub_exception_handler(request: Request, exc: SchoolHubException):
    """Handle custom application exceptions"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{exc.__class__.__name__}: {exc.message} - Path: {request.url.path}")
    content = {"error": exc.message}
    if exc.code:
        content["code"] = exc.code
    content.update(exc.extra)
    return JSONResponse(status_code=exc.status_code, content=content)

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = format_validation_errors(exc.errors())
    logger.warning(f"Validation error: {details} - Path: {request.url.path}")
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": details}
    )

async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )

async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {str(exc)} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SchoolHubException, schoolhub_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
