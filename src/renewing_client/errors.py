# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from typing import Optional


class RequestError(RuntimeError):
    """Base class for every terminal outcome of a dispatched request."""


class TransportError(RequestError):
    """The request never produced a response (connection failure or timeout)."""


class AuthExpiredError(RequestError):
    """The access credential was rejected and no renewal was attempted."""


class AuthExhaustedError(AuthExpiredError):
    """Renewal failed, or the single credential-refresh retry was already used."""


class ApplicationError(RequestError):
    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class HttpStatusError(RequestError):
    def __init__(self, status_code: int, message: str, body: Optional[object] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.body = body


def error_status(e: Exception) -> Optional[int]:
    """Best-effort status or application code carried by a request error."""
    if isinstance(e, HttpStatusError):
        return e.status_code
    if isinstance(e, ApplicationError):
        return e.code
    if isinstance(e, AuthExpiredError):
        return 401
    return None
