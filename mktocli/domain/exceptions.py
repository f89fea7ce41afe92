"""Exception hierarchy for mktocli.

Single-call client methods let these propagate; the fan-out and batched
activity reads convert them into a failed ``AggregatedResult`` instead.
"""

from typing import Optional


class MktoError(Exception):
    """Base class for all errors raised by mktocli."""
    pass


class ConfigurationError(MktoError):
    """Raised when required settings (endpoint, credentials) are missing or invalid."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"Configuration Error: {self.message}"


class TransportError(MktoError):
    """Network or HTTP failure while talking to the REST API."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        """
        Args:
            message: Main error message.
            status_code: HTTP status code of the response, if there was one.
            url: The URL being requested when the error occurred.
        """
        self.message = message
        self.status_code = status_code
        self.url = url
        full_message = "Transport Error"
        if self.url:
            full_message += f" accessing {self.url}"
        if self.status_code:
            full_message += f" (Status Code: {self.status_code})"
        full_message += f": {self.message}"
        super().__init__(full_message)


class ApiValidationError(MktoError):
    """The remote service rejected caller-supplied data."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(f"{message} (code {code})" if code else message)
