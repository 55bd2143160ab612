"""Standard JSON envelope shared by every endpoint."""

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success_response(data: Any = None, message: Optional[str] = None) -> dict:
    """Build a success envelope: {success, data, message?, timestamp}."""
    body = {"success": True, "data": jsonable_encoder(data)}
    if message:
        body["message"] = message
    body["timestamp"] = utc_timestamp()
    return body


def created_response(data: Any = None, message: Optional[str] = None) -> JSONResponse:
    return JSONResponse(status_code=201, content=success_response(data, message))


def error_response(
    status_code: int,
    error: str,
    code: Optional[str] = None,
    message: Optional[str] = None,
    headers: Optional[dict] = None,
    **extra: Any,
) -> JSONResponse:
    """Build an error envelope: {success: false, error, code?, message?, timestamp}."""
    body: dict = {"success": False, "error": error}
    if code:
        body["code"] = code
    if message:
        body["message"] = message
    body.update(extra)
    body["timestamp"] = utc_timestamp()
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)
