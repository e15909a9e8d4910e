"""Transport-level errors raised out of the generation loop.

Tool-level failures are never raised; they are returned as result strings.
"""

from typing import Optional


class ChatClientError(Exception):
    """Base class for failures talking to the model endpoint."""


class ChatAPIError(ChatClientError):
    """The endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"API error {status_code}: {message}")


class ChatTransportError(ChatClientError):
    """Network failure or a malformed top-level response."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class EmptyResponseError(ChatClientError):
    """A non-streaming response carried no choices[0].message."""
