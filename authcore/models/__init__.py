"""
Auth Core - Models Module

This module exports the SQLAlchemy models and shared enums.
"""

from authcore.core.database import Base

# Enums
from authcore.models.enums import AuthErrorCode

# Models
from authcore.models.user import User

__all__ = [
    # Base
    "Base",
    # Enums
    "AuthErrorCode",
    # Models
    "User",
]
