from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from app.exceptions import ChatValidationError


def utc_timestamp() -> str:
    """ISO-8601 UTC with milliseconds and a trailing Z, e.g. 2024-05-01T09:30:00.123Z"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def from_turn_type(cls, turn_type: Any) -> "Role":
        # Anything other than an exact "user" was written by the assistant
        return cls.USER if turn_type == "user" else cls.ASSISTANT


class HistoryTurn(BaseModel):
    type: Any = None   # exactly "user", or anything else (assistant), including missing
    text: str

    @property
    def role(self) -> Role:
        return Role.from_turn_type(self.type)


class ChatRequest(BaseModel):
    message: str
    conversationHistory: List[HistoryTurn] = []

    @classmethod
    def from_payload(cls, payload: Any) -> "ChatRequest":
        """
        Build a request from a decoded body. The message is checked by hand so
        a missing or non-string value is a 400 rather than a schema error;
        a malformed history still fails model validation.
        """
        fields: Dict[str, Any] = payload if isinstance(payload, dict) else {}
        message = fields.get("message")
        if not isinstance(message, str) or not message.strip():
            raise ChatValidationError()
        return cls.model_validate(fields)


class ChatResponse(BaseModel):
    success: bool = True
    response: Optional[str] = None
    timestamp: str = Field(default_factory=utc_timestamp)
    source: Literal["openai", "fallback"]
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "OK"
    service: str = "Portfolio Chatbot Backend"
    timestamp: str = Field(default_factory=utc_timestamp)


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[str] = None
    availableRoutes: Optional[List[str]] = None
