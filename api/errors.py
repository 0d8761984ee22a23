"""
api/errors.py -- HTTP error taxonomy for userhub routes.

Each class is an HTTPException carrying a structured detail dict, so the
single http_exception_handler in api/main.py renders all of them into the
same ErrorResponse envelope:

    {"error": {"code": "...", "message": "..."}}

Internal failures (StoreError, CredentialHashError, anything unexpected) are
not raised as Internal by route code -- they propagate and the dedicated
handlers in api/main.py log them and answer with Internal's body.
"""

from __future__ import annotations

from fastapi import HTTPException


class ApiError(HTTPException):
    status_code_default = 500
    code_default = "error"

    def __init__(self, message: str, code: str | None = None, headers: dict | None = None) -> None:
        super().__init__(
            status_code=self.status_code_default,
            detail={"code": code or self.code_default, "message": message},
            headers=headers,
        )


class BadRequest(ApiError):
    status_code_default = 400
    code_default = "bad_request"


class Unauthorized(ApiError):
    status_code_default = 401
    code_default = "unauthorized"


class NotFound(ApiError):
    status_code_default = 404
    code_default = "not_found"


class Conflict(ApiError):
    status_code_default = 409
    code_default = "conflict"


class Internal(ApiError):
    status_code_default = 500
    code_default = "internal_error"

    def __init__(self, message: str = "An unexpected error occurred.", code: str | None = None) -> None:
        super().__init__(message, code)
