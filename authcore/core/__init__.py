"""
Auth Core - Core Module

This module contains configuration, database setup, the ephemeral store
and security utilities.
"""

from authcore.core.config import get_settings, settings
from authcore.core.database import Base, get_engine, get_session_maker

__all__ = ["settings", "get_settings", "Base", "get_engine", "get_session_maker"]
