"""
Extraction Errors
=================

Request-aborting failures of the extraction service. Each carries the HTTP
status it is rendered with; the message becomes the `error` field of the
response body.

Parse failures and shape violations are deliberately absent: they never
abort a request and only feed the review flag.

Version: 0.1.0
"""

from fastapi import status


class ExtractionError(Exception):
    """Base class for errors that abort an extraction request."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MissingFieldError(ExtractionError):
    """A required request field is absent or empty."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, field: str) -> None:
        super().__init__(f"Missing field: {field}")
        self.field = field


class InvalidFieldError(ExtractionError):
    """A request field is present but malformed."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, field: str) -> None:
        super().__init__(f"Invalid field: {field}")
        self.field = field


class ConfigurationError(ExtractionError):
    """Server misconfiguration, such as missing provider credentials."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ModelInvocationError(ExtractionError):
    """The LLM provider rejected the call or could not be reached."""

    status_code = status.HTTP_502_BAD_GATEWAY


class PersistenceError(ExtractionError):
    """The requirement store could not be written."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Failed to save extracted data") -> None:
        super().__init__(message)
