"""Error taxonomy for the journaling service.

Service code raises these; ``guided_journal.main`` maps them to
``{"error": ...}`` JSON responses.
"""
from fastapi import status


class JournalError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: str = "Internal server error"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.public_message)
        self.detail = detail or self.public_message


class UnauthorizedError(JournalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "Unauthorized"


class ConversationNotFoundError(JournalError):
    status_code = status.HTTP_404_NOT_FOUND
    public_message = "Conversation not found"


class ConcurrentTurnError(JournalError):
    status_code = status.HTTP_409_CONFLICT
    public_message = "Conversation was updated by another request"


class RateLimitExceededError(JournalError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    public_message = "Rate limit exceeded"


class UpstreamFailureError(JournalError):
    """The completion endpoint could not produce a response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Internal server error"
