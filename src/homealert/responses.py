"""
JSON response envelope shared by every HTTP endpoint.
"""

from typing import Any

from fastapi.responses import JSONResponse


def json_envelope(status_code: int, success: bool, **fields: Any) -> JSONResponse:
    """
    Build a ``{"success": ..., **fields}`` JSON response.

    Fields whose value is None are dropped.
    """
    body = {"success": success}
    body.update({key: value for key, value in fields.items() if value is not None})
    return JSONResponse(content=body, status_code=status_code)


def error_envelope(status_code: int, error: str, **fields: Any) -> JSONResponse:
    return json_envelope(status_code, False, error=error, **fields)
