"""
Errors raised while handling client messages.

Each error carries the text that is sent back to the client.
"""
from typing import Any


class RelayError(Exception):
    """Base class for errors answered with a message to the client."""

    message = "Request failed"
    response_type = "error"

    def __init__(self, message: str = ""):
        self.message = message or self.message
        super().__init__(self.message)

    def to_message(self) -> dict:
        return {"type": self.response_type, "message": self.message}


class AuthenticationError(RelayError):
    """Bad credentials. The client may retry."""
    message = "Invalid credentials"
    response_type = "auth_failed"


class AuthorizationError(RelayError):
    """Protected operation requested before authenticating."""
    message = "Not authenticated"


class ValidationError(RelayError):
    """A required field is missing or empty."""
    message = "Event ID required"


class NotSubscribedError(ValidationError):
    message = "No match subscribed"


class UpstreamFetchError(RelayError):
    """The match data provider failed or returned nothing."""
    message = "Failed to refresh match data"


class MalformedMessageError(RelayError):
    """Inbound frame is not a valid message envelope."""
    message = "Invalid message format"


class UnknownMessageTypeError(RelayError):
    """Inbound frame has a type no handler is registered for."""

    def __init__(self, message_type: Any):
        self.message_type = message_type
        super().__init__(f"Unknown message type: {message_type}")
