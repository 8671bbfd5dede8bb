"""
Error taxonomy shared by services and routes.

- ValidationError: missing or invalid form input, raised before any store call.
- AuthError: bad credentials or a duplicate unique key (email, membership).
- RemoteError: the record store failed; `message` carries the store's text.
- UpstreamError: the chat model or the speech service failed.

Routes catch these at the call site: pages turn them into a flash toast,
JSON endpoints into a status code (see `status_for`).
"""
from __future__ import annotations


class AgriVerseError(Exception):
    code = "error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.code
        super().__init__(self.message)


class ValidationError(AgriVerseError, ValueError):
    code = "invalid_input"


class AuthError(AgriVerseError):
    code = "invalid_credentials"


class RemoteError(AgriVerseError):
    code = "remote_failed"


class UpstreamError(AgriVerseError):
    code = "upstream_failed"


_STATUS = {
    ValidationError: 400,
    AuthError: 409,
    RemoteError: 502,
    UpstreamError: 502,
}


def status_for(exc: Exception) -> int:
    """HTTP status for JSON endpoints; bad credentials are 401, duplicates 409."""
    if isinstance(exc, AuthError) and exc.message == "invalid_credentials":
        return 401
    for cls, status in _STATUS.items():
        if isinstance(exc, cls):
            return status
    if isinstance(exc, PermissionError):
        return 403
    if isinstance(exc, LookupError):
        return 404
    return 500


__all__ = ["AgriVerseError", "ValidationError", "AuthError", "RemoteError", "UpstreamError", "status_for"]
