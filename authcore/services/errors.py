"""
Credential Errors

Closed set of failures raised by the store, the token signer and the
credential service. Every error carries a stable code, an HTTP status for
the API layer and whether the caller may retry.
"""

from typing import Optional

from authcore.models.enums import AuthErrorCode


class AuthError(Exception):
    """Base class for every credential lifecycle failure."""

    code: AuthErrorCode
    status_code: int = 400
    retryable: bool = False
    default_message: str = "authentication failed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if not hasattr(cls, "code"):
            raise TypeError(f"{cls.__name__} must declare an AuthErrorCode")


class UserNotFoundError(AuthError):
    """No identity is registered for the email."""
    code = AuthErrorCode.USER_NOT_FOUND
    default_message = "user not found"


class OnCooldownError(AuthError):
    """A new code was requested before the cooldown elapsed."""
    code = AuthErrorCode.OTP_COOLDOWN
    status_code = 429
    retryable = True
    default_message = "please wait before requesting another code"


class OTPInvalidError(AuthError):
    """Wrong code, or no code pending for the email."""
    code = AuthErrorCode.OTP_INVALID
    default_message = "invalid or expired code"


class MaxAttemptsExceededError(AuthError):
    """The verification budget for the pending code is spent."""
    code = AuthErrorCode.OTP_MAX_ATTEMPTS
    default_message = "maximum code attempts exceeded"


class RefreshInvalidError(AuthError):
    """Unknown, expired or already rotated refresh token."""
    code = AuthErrorCode.REFRESH_INVALID
    status_code = 401
    default_message = "invalid or expired refresh token"


class TokenInvalidError(AuthError):
    """Access token failed signature, issuer, expiry or claim checks."""
    code = AuthErrorCode.TOKEN_INVALID
    status_code = 401
    default_message = "invalid access token"


class StoreUnavailableError(AuthError):
    """The ephemeral store could not be reached or answered with an error."""
    code = AuthErrorCode.STORE_UNAVAILABLE
    status_code = 503
    retryable = True
    default_message = "credential store unavailable"


__all__ = [
    "AuthError",
    "UserNotFoundError",
    "OnCooldownError",
    "OTPInvalidError",
    "MaxAttemptsExceededError",
    "RefreshInvalidError",
    "TokenInvalidError",
    "StoreUnavailableError",
]
