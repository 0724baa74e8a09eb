"""Domain errors raised by the share registry and the public gateway.

Handlers in ``cloudimega.main`` turn them into ``{"detail", "reason"}`` JSON
bodies. ``reason`` is a stable code clients use to pick a UI message.
"""
from typing import Optional


class ShareError(Exception):
    status_code = 500
    reason = "internal"
    detail = "Internal Server Error"

    def __init__(self, detail: Optional[str] = None, *, reason: Optional[str] = None):
        if detail is not None:
            self.detail = detail
        if reason is not None:
            self.reason = reason
        super().__init__(self.detail)


class NotFound(ShareError):
    status_code = 404
    reason = "not_found"
    detail = "Share not found"


class InvalidArgument(ShareError):
    status_code = 400
    reason = "invalid_argument"
    detail = "Invalid argument"


class Unauthorized(ShareError):
    status_code = 401
    reason = "password_required"
    detail = "Password required"


class Gone(ShareError):
    status_code = 410
    reason = "revoked"
    detail = "Share is no longer active"


class Internal(ShareError):
    pass


class RangeNotSatisfiable(ShareError):
    status_code = 416
    reason = "invalid_range"
    detail = "Requested range not satisfiable"
