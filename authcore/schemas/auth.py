"""
Auth Schemas

Pydantic models for authentication request/response validation.
"""

from pydantic import BaseModel, EmailStr, Field


class RequestOTPRequest(BaseModel):
    """Schema for requesting a login code."""

    email: EmailStr = Field(..., description="User's email address")


class VerifyOTPRequest(BaseModel):
    """Schema for signing in with a login code."""

    email: EmailStr = Field(..., description="User's email address")
    code: str = Field(..., pattern=r"^\d{6}$", description="6-digit login code")


class RefreshRequest(BaseModel):
    """Schema for exchanging a refresh token."""

    refresh_token: str = Field(..., min_length=1, description="Refresh token from the last sign-in")


class LogoutRequest(BaseModel):
    """Schema for revoking a refresh token."""

    refresh_token: str = Field(..., min_length=1, description="Refresh token to revoke")


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
