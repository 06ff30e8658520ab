"""
Handler de errores de validación de requests

FastAPI responde 422 por defecto; el frontend espera 400 con
{success: false, message}.
"""
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


def describe_validation_error(exc: RequestValidationError) -> str:
    """Mensaje legible a partir del primer error de validación"""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    error_type = first.get("type")

    if error_type == "json_invalid":
        return "Invalid JSON body"

    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "path", "query")]
    field = loc[0] if loc else "body"

    if error_type == "missing":
        return f"Missing required field: {field}"

    if field == "ticketId":
        if error_type == "value_error":
            return str(first.get("ctx", {}).get("error", "invalid ticketId"))
        return "ticketId must be a string or number"

    if field == "price":
        if error_type in ("decimal_max_digits", "decimal_max_places", "decimal_whole_digits"):
            return "price has too many digits"
        return "price must be a non-negative number"

    return f"{field}: {first.get('msg', 'invalid value')}"


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = describe_validation_error(exc)

    logger.warning(f"Request inválido - Path: {request.url.path}, Error: {message}")

    return JSONResponse(
        status_code=400,
        content={"success": False, "message": message}
    )
