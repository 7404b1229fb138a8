"""Exception types shared by the backend client and the core."""

from __future__ import annotations


class BackendError(RuntimeError):
    """A backend call failed: transport error, HTTP error status or bad body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(BackendError):
    """The backend answered, but not with the expected shape."""
