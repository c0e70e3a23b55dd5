"""
Error envelopes.

Routes under /functions/v1 mirror the edge functions they replace and answer
{"success": false, "error": "..."}; everything else keeps FastAPI's {"detail": ...}.
"""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.exception_handlers import http_exception_handler, request_validation_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

FUNCTIONS_PREFIX = "/functions/v1"


def _is_function_route(request: Request) -> bool:
    return request.url.path.startswith(FUNCTIONS_PREFIX)


def error_envelope(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


async def envelope_http_exception_handler(request: Request, exc: StarletteHTTPException):
    if not _is_function_route(request):
        return await http_exception_handler(request, exc)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return error_envelope(exc.status_code, message, headers=getattr(exc, "headers", None))


async def envelope_validation_exception_handler(request: Request, exc: RequestValidationError):
    if not _is_function_route(request):
        return await request_validation_exception_handler(request, exc)
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return error_envelope(400, message)
