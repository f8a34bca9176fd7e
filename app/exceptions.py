from enum import Enum
from typing import Optional
from fastapi import HTTPException

AVAILABLE_ROUTES = ["/health", "/api/chat"]


class ChatValidationError(HTTPException):
    def __init__(self, detail: str = "Message is required and must be a non-empty string"):
        super().__init__(status_code=400, detail=detail)


class ChatProcessingError(HTTPException):
    def __init__(self, details: Optional[str] = None):
        super().__init__(status_code=500, detail="Failed to process chat message. Please try again.")
        self.details = details


class UpstreamFailureKind(str, Enum):
    REGION_DENIED = "region_denied"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_CREDENTIAL = "invalid_credential"
    EMPTY_RESPONSE = "empty_response"
    UNSPECIFIED = "unspecified"


class UpstreamFailure(Exception):
    """The completion provider failed or returned nothing usable."""

    def __init__(self, kind: UpstreamFailureKind, detail: str = ""):
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail
