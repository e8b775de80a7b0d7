# /src/shared/http/responses.py
"""
HTTP response helpers for the success envelope `{success, message?, data?}`.
Errors use the same envelope via src.shared.exceptions.register_exception_handlers.

- ok(data, message=None, status=200)
- created(data, message=None)
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse


def envelope(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonable_encoder(body)


def ok(data: Any = None, message: Optional[str] = None, status: int = 200) -> JSONResponse:
    return JSONResponse(envelope(data, message), status_code=status)


def created(data: Any, message: Optional[str] = None) -> JSONResponse:
    return JSONResponse(envelope(data, message), status_code=201)
