"""
Enums

String enums shared by the service layer and the API schemas.
"""

import enum


class AuthErrorCode(str, enum.Enum):
    """Stable error codes for the credential lifecycle."""
    USER_NOT_FOUND = "user_not_found"
    OTP_COOLDOWN = "otp_cooldown"
    OTP_INVALID = "otp_invalid"
    OTP_MAX_ATTEMPTS = "otp_max_attempts"
    REFRESH_INVALID = "refresh_invalid"
    TOKEN_INVALID = "token_invalid"
    STORE_UNAVAILABLE = "store_unavailable"
