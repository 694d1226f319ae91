from typing import List, Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized", details: Optional[List[str]] = None):
        super().__init__(message, details)


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class RateLimitError(AppError):
    status_code = 429

    def __init__(self, message: str, wait_seconds: int):
        super().__init__(message)
        self.wait_seconds = wait_seconds


class DownstreamError(AppError):
    """A hashing, signing, database or email failure. The client only sees a generic message."""

    status_code = 500
