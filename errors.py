from typing import Optional


# =========================
# Programmer Errors (raised, never enveloped)
# =========================

class InvalidArgumentError(ValueError):
    """
    Raised synchronously before any I/O when a call is malformed
    (amount out of range, missing category collection).
    """


# =========================
# Structural Errors (decoder)
# =========================

class DecodeError(ValueError):
    """
    A present field has the wrong shape, or a tag is outside its closed set.
    """


# =========================
# Envelope Errors
# =========================

class ApiError(Exception):
    """
    Error carried inside an ApiResponse.
    The original exception (if any) is kept as the cause.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.__cause__ = cause

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__


class RequestCancelledError(ApiError):
    """The caller cancelled while the HTTP round trip was pending."""


class ThrottleCancelledError(ApiError):
    """The caller cancelled while waiting for its rate-limit turn."""


class OperationCancelled(Exception):
    """Internal signal raised by the cancellation helpers."""
