"""
Domain error -> HTTP response mapping.

Bodies use the same envelope as successful responses, with a stable ``code``
and a message rendered in the caller's language.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from event_locator.domain.errors import DomainError, ErrorCode, ValidationError
from event_locator.i18n import render, resolve_locale

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.VALIDATION_FAILED: 400,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.DEPENDENCY_UNAVAILABLE: 503,
}


def _locale(request: Request) -> str:
    return resolve_locale(request.headers.get("accept-language"))


def error_body(code: ErrorCode, message: str, fields: list[str] | None = None) -> dict:
    body = {"success": False, "code": code.value, "message": message}
    if fields:
        body["fields"] = fields
    return body


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    status_code = STATUS_BY_CODE.get(exc.code, 400)
    if status_code >= 500:
        logger.warning("%s %s -> %s", request.method, request.url.path, exc)
    message = render(exc.message_key, _locale(request), exc.params)
    fields = exc.fields if isinstance(exc, ValidationError) else None
    return JSONResponse(error_body(exc.code, message, fields), status_code=status_code)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields: list[str] = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    message = render("validation.invalid", _locale(request), {"fields": ", ".join(fields)})
    return JSONResponse(error_body(ErrorCode.VALIDATION_FAILED, message, fields), status_code=400)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
