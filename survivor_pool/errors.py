# survivor_pool/errors.py
from __future__ import annotations

__all__ = [
    "SurvivorError",
    "InvalidArgument",
    "Forbidden",
    "NotFound",
    "Conflict",
    "UpstreamUnavailable",
]


class SurvivorError(Exception):
    """
    Base for outcomes the caller can act on. Each subclass carries the HTTP
    status it is rendered with by the app-level exception handler.
    """

    status_code = 400
    kind = "error"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(SurvivorError):
    status_code = 400
    kind = "invalid_argument"


class Forbidden(SurvivorError):
    status_code = 403
    kind = "forbidden"


class NotFound(SurvivorError):
    status_code = 404
    kind = "not_found"


class Conflict(SurvivorError):
    status_code = 409
    kind = "conflict"


class UpstreamUnavailable(SurvivorError):
    status_code = 503
    kind = "upstream_unavailable"
    retryable = True
