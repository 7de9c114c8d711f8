"""
Auth Core - Schemas Module

Pydantic models for request/response validation.
"""

from authcore.schemas.auth import (
    LogoutRequest,
    MessageResponse,
    RefreshRequest,
    RequestOTPRequest,
    VerifyOTPRequest,
)
from authcore.schemas.token import CurrentUser, TokenPairResponse

__all__ = [
    # Auth
    "RequestOTPRequest",
    "VerifyOTPRequest",
    "RefreshRequest",
    "LogoutRequest",
    "MessageResponse",
    # Token
    "TokenPairResponse",
    "CurrentUser",
]
