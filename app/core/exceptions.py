from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException


def api_error(status_code: int, message: str, code: str | None = None, **extra: Any) -> HTTPException:
    """HTTPException whose detail is rendered as {"success": false, "message", "code", ...}."""
    detail: dict[str, Any] = {"message": message}
    if code:
        detail["code"] = code
    detail.update(extra)
    return HTTPException(status_code=status_code, detail=detail)


def _format_validation_error(error: dict[str, Any]) -> str:
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    msg = str(error.get("msg", "Invalid value"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    if error.get("loc", ("",))[0] == "path":
        return f"Invalid {loc[-1] if loc else 'identifier'}"
    return f"{'.'.join(loc)}: {msg}" if loc else msg


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        content = {"success": False, **exc.detail}
        content.setdefault("message", "Request failed")
    else:
        content = {"success": False, "message": str(exc.detail)}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = [_format_validation_error(err) for err in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": ", ".join(messages) or "Validation failed",
            "errors": messages,
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"🔥 Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
