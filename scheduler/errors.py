"""
Domain errors for the chat turn protocol.

Each error carries the HTTP status and the fixed public message it maps to,
so the API layer can translate it without inspecting internals.
"""

from fastapi import status


class SchedulerError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: str = "Internal server error"


class InvalidInput(SchedulerError):
    """Raised when the message is missing or not text. Checked before any I/O."""

    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Message is required"


class UpstreamUnavailable(SchedulerError):
    """Raised when the history store cannot be read or written."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    public_message = "Session store unavailable"


class InferenceUnavailable(SchedulerError):
    """Raised when every configured inference provider failed or timed out."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Inference failed"


class MalformedProviderResponse(Exception):
    """Provider answered with a success status but no usable completion.

    Never reaches the caller: the gateway turns it into a fallback reply.
    """
    pass


class ProviderError(Exception):
    """Raised by a provider adapter on a non-success status or transport error."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
