"""
Security Utilities

Secret hashing and JWT access token management.
"""

import hashlib
import hmac
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from jose import JWTError, jwt

from authcore.services.errors import TokenInvalidError


OTP_DIGITS = 6
REFRESH_TOKEN_BYTES = 32


def generate_otp() -> str:
    """Generate a uniformly random, zero-padded 6-digit code."""
    return f"{secrets.randbelow(10 ** OTP_DIGITS):0{OTP_DIGITS}d}"


def generate_refresh_token() -> str:
    """Generate a 256-bit refresh token as 64 hex characters."""
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def hash_secret(value: str) -> str:
    """Hash an OTP code or refresh token using SHA-256."""
    return hashlib.sha256(value.encode()).hexdigest()


def secrets_match(candidate_hash: str, stored_hash: str) -> bool:
    """Constant-time comparison of two hex digests."""
    return hmac.compare_digest(candidate_hash.encode(), stored_hash.encode())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenSigner:
    """
    Issues and validates HS256 access tokens.

    Tokens carry only ``iss``, ``sub``, ``iat``, ``exp`` and ``user_id``.
    Validation never touches the network: it depends on the token string,
    the key and the supplied clock reading.
    """

    def __init__(
        self,
        signing_key: str,
        issuer: str,
        expiry: timedelta,
        algorithm: str = "HS256",
    ):
        if not signing_key:
            raise ValueError("signing key must not be empty")
        if expiry <= timedelta(0):
            raise ValueError("token expiry must be positive")
        self._signing_key = signing_key
        self.issuer = issuer
        self.expiry = expiry
        self.algorithm = algorithm

    def issue(self, user_id: Union[uuid.UUID, str], now: Optional[datetime] = None) -> str:
        """
        Create a signed access token for ``user_id``.

        Args:
            user_id: Identifier placed in both ``sub`` and ``user_id``.
            now: Issue time; defaults to the current UTC time.

        Returns:
            str: Encoded JWT.
        """
        now = now or _utcnow()
        subject = str(user_id)
        claims = {
            "iss": self.issuer,
            "sub": subject,
            "iat": now,
            "exp": now + self.expiry,
            "user_id": subject,
        }
        return jwt.encode(claims, self._signing_key, algorithm=self.algorithm)

    def validate(self, token: str, now: Optional[datetime] = None) -> uuid.UUID:
        """
        Validate an access token and return its user identifier.

        Args:
            token: Encoded JWT.
            now: Reference time for the expiry check.

        Returns:
            uuid.UUID: The ``user_id`` claim.

        Raises:
            TokenInvalidError: If any signature, issuer, expiry or claim check fails.
        """
        try:
            payload = jwt.decode(
                token,
                self._signing_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                # expiry is checked against the caller's clock below
                options={"verify_exp": False, "require_iss": True},
            )
        except JWTError as exc:
            raise TokenInvalidError(f"failed to parse token: {type(exc).__name__}") from exc

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)):
            raise TokenInvalidError("token has no expiry")
        now = now or _utcnow()
        if now.timestamp() >= exp:
            raise TokenInvalidError("token expired")

        user_id = payload.get("user_id")
        if not isinstance(user_id, str):
            raise TokenInvalidError("user_id claim not found")
        try:
            return uuid.UUID(user_id)
        except ValueError as exc:
            raise TokenInvalidError("invalid user_id format") from exc
