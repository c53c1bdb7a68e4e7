from typing import Optional
from fastapi import HTTPException, status


class BackendError(Exception):
    """Base class for everything a backend call can fail with."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthenticationError(BackendError):
    """No session, or the backend refused the caller."""

    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(BackendError):
    """No row matched, or an update affected zero rows."""

    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(BackendError):
    """Input rejected locally or by a backend constraint."""

    status_code = status.HTTP_400_BAD_REQUEST


class RemoteError(BackendError):
    """Timeout, transport failure or unexpected backend response."""

    status_code = status.HTTP_502_BAD_GATEWAY


def to_http_exception(exc: BackendError) -> HTTPException:
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return HTTPException(status_code=exc.status_code, detail=exc.message, headers=headers)
