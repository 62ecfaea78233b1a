"""
Per-connection session state.

A Session is created when a client connects and dropped when it
disconnects. It is the only place the connection's authentication and
subscription state live.
"""
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol


class Transport(Protocol):
    """The part of a WebSocket connection the relay needs."""

    async def send_text(self, data: str) -> None:
        ...


@dataclass(eq=False)
class Session:
    """State of one client connection."""
    transport: Transport
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    authenticated: bool = False
    subscribed_match_id: Optional[str] = None

    @property
    def is_subscribed(self) -> bool:
        return self.subscribed_match_id is not None

    async def send(self, message_type: str, **fields: Any) -> None:
        """Send a `{type, ...fields}` JSON message to the client."""
        payload = {"type": message_type, **fields}
        await self.transport.send_text(json.dumps(payload))

    async def send_message(self, message: dict) -> None:
        await self.transport.send_text(json.dumps(message))

    def __repr__(self) -> str:
        return (
            f"Session(id={self.session_id}, authenticated={self.authenticated}, "
            f"match={self.subscribed_match_id})"
        )
