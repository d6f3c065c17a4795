"""
Response envelope shared by all routes and error handlers:
{ "success": true|false, "message": str|null, "data": ... }.
"""

from typing import Any

from fastapi.responses import JSONResponse

from sqlgate.engines.sql.result import to_json_safe


def envelope(data: Any, *, success: bool = True, message: str | None = None) -> dict[str, Any]:
    return {"success": success, "message": message, "data": to_json_safe(data)}


def error_response(status_code: int, message: str, data: Any = None) -> JSONResponse:
    """Standard envelope { success: false, message, data } for errors."""
    return JSONResponse(
        status_code=status_code,
        content=envelope(data, success=False, message=message),
    )
