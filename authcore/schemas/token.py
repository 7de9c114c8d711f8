"""
Token Schemas

Pydantic models for token responses.
"""

import uuid

from pydantic import BaseModel


class TokenPairResponse(BaseModel):
    """Schema for a freshly issued token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class CurrentUser(BaseModel):
    """Schema for the authenticated caller."""

    user_id: uuid.UUID
