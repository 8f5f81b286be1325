from typing import Optional


class BoardError(Exception):
    pass


class ApiError(BoardError):
    """The remote authority answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportError(ApiError):
    """Network failure, timeout or unreachable authority."""


class NotFoundError(ApiError):
    """Task or project no longer exists at the authority."""
