"""
Pydantic schemas for inbound WebSocket messages
Every frame is a JSON object with a string `type` plus type-specific fields
"""
from pydantic import BaseModel, Field
from typing import Any, Optional


# ===== ENVELOPE =====

class MessageEnvelope(BaseModel):
    """Common part of every inbound message"""
    type: str


# ===== MESSAGE BODIES =====

class AuthenticateMessage(BaseModel):
    """authenticate{username, password}"""
    # Untyped: a wrong-typed credential is a failed login, not a bad frame
    username: Optional[Any] = None
    password: Optional[Any] = None


class SubscribeMessage(BaseModel):
    """subscribe{eventId} - ids are checked by the subscribe handler"""
    event_id: Optional[Any] = Field(default=None, alias="eventId")

    class Config:
        populate_by_name = True


# ===== SERVICE SCHEMAS =====

class HealthResponse(BaseModel):
    """GET /health"""
    status: str
    source: str
    mode: str


class RelayStats(BaseModel):
    """GET /stats"""
    sessions: int
    authenticated_sessions: int
    subscribed_sessions: int
    monitored_matches: list[str]
    poll_interval_seconds: float
