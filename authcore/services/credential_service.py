"""
Credential Service

Passwordless sign-in: one-time code issuance and verification, and
rotating single-use refresh tokens.

All mutable state lives in the ephemeral store; the service itself holds
only its injected collaborators and can run in any number of processes.

State per email:
    NoOTP --request--> OTPPending --verify ok--> NoOTP (+ token pair)
    OTPPending --wrong code, attempts <= max--> OTPPending
    OTPPending --call after max attempts--> NoOTP (MaxAttemptsExceededError)
    OTPPending --cancel--> NoOTP (cooldown lifted)
    OTPPending --TTL--> NoOTP
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from authcore.core.config import Settings
from authcore.core.security import (
    TokenSigner,
    generate_otp,
    generate_refresh_token,
    hash_secret,
    secrets_match,
)
from authcore.core.store import EphemeralStore
from authcore.services.errors import (
    MaxAttemptsExceededError,
    OnCooldownError,
    OTPInvalidError,
    RefreshInvalidError,
    UserNotFoundError,
)
from authcore.services.identity import IdentityDirectory, normalize_email


# ============== Store Keys ==============

def otp_code_key(email: str) -> str:
    return f"otp:code:{email}"


def otp_attempts_key(email: str) -> str:
    return f"otp:attempts:{email}"


def otp_cooldown_key(email: str) -> str:
    return f"otp:cooldown:{email}"


def refresh_token_key(token_hash: str) -> str:
    return f"refresh:token:{token_hash}"


@dataclass(frozen=True)
class TokenPair:
    """Access token plus the plaintext refresh token, handed out exactly once."""
    access_token: str
    refresh_token: str

    def __repr__(self) -> str:
        return "TokenPair(access_token=<redacted>, refresh_token=<redacted>)"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialService:
    """Orchestrates the OTP lifecycle and refresh token rotation."""

    def __init__(
        self,
        store: EphemeralStore,
        signer: TokenSigner,
        directory: IdentityDirectory,
        *,
        otp_expiry: timedelta,
        otp_cooldown: timedelta,
        otp_max_attempts: int,
        refresh_expiry: timedelta,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if otp_max_attempts < 1:
            raise ValueError("otp_max_attempts must be at least 1")
        for name, duration in (
            ("otp_expiry", otp_expiry),
            ("otp_cooldown", otp_cooldown),
            ("refresh_expiry", refresh_expiry),
        ):
            if duration <= timedelta(0):
                raise ValueError(f"{name} must be positive")

        self.store = store
        self.signer = signer
        self.directory = directory
        self.otp_expiry = otp_expiry
        self.otp_cooldown = otp_cooldown
        self.otp_max_attempts = otp_max_attempts
        self.refresh_expiry = refresh_expiry
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: EphemeralStore,
        directory: IdentityDirectory,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> "CredentialService":
        signer = TokenSigner(
            settings.SECRET_KEY,
            settings.JWT_ISSUER,
            settings.access_token_expiry,
            algorithm=settings.ALGORITHM,
        )
        return cls(
            store,
            signer,
            directory,
            otp_expiry=settings.otp_expiry,
            otp_cooldown=settings.otp_cooldown,
            otp_max_attempts=settings.OTP_MAX_ATTEMPTS,
            refresh_expiry=settings.refresh_expiry,
            logger=logger,
        )

    # ============== One-time Codes ==============

    async def request_otp(self, email: str) -> str:
        """
        Issue a new one-time code for ``email``.

        Replaces any pending code and resets its attempt counter, then starts
        the cooldown window. Delivery of the code is the caller's job.

        Returns:
            str: The plaintext 6-digit code.

        Raises:
            UserNotFoundError: No identity for the email; nothing is written.
            OnCooldownError: A code was issued less than ``otp_cooldown`` ago.
            StoreUnavailableError: The store failed.
        """
        email = normalize_email(email)
        if await self.directory.lookup_user_by_email(email) is None:
            raise UserNotFoundError()

        if await self.store.exists(otp_cooldown_key(email)):
            raise OnCooldownError()

        code = generate_otp()
        await self.store.put_and_clear(
            otp_code_key(email),
            hash_secret(code),
            self.otp_expiry,
            otp_attempts_key(email),
        )
        await self.store.put_with_expiry(otp_cooldown_key(email), "", self.otp_cooldown)

        self.logger.info("OTP issued", extra={"email": email})
        return code

    async def cancel_otp(self, email: str) -> None:
        """Withdraw a pending code and lift its cooldown, e.g. after failed delivery."""
        email = normalize_email(email)
        await self.store.delete(
            otp_code_key(email),
            otp_attempts_key(email),
            otp_cooldown_key(email),
        )
        self.logger.info("OTP withdrawn", extra={"email": email})

    async def verify_otp(self, email: str, code: str) -> TokenPair:
        """
        Check ``code`` against the pending code for ``email``.

        Every call spends one attempt before the comparison. With
        ``otp_max_attempts=3`` three wrong guesses are tolerated and the
        fourth call fails regardless of the code, removing it.

        Raises:
            OTPInvalidError: Wrong code, or no code pending.
            MaxAttemptsExceededError: Attempt budget spent; the code is gone.
            UserNotFoundError: The identity disappeared after the code was issued.
            StoreUnavailableError: The store failed.
        """
        email = normalize_email(email)
        code_key = otp_code_key(email)
        attempts_key = otp_attempts_key(email)

        stored_hash = await self.store.get(code_key)
        if stored_hash is None:
            raise OTPInvalidError()

        attempts = await self.store.increment_with_expiry(attempts_key, self.otp_expiry)
        if attempts > self.otp_max_attempts:
            await self.store.delete(code_key, attempts_key)
            self.logger.warning("OTP attempts exhausted", extra={"email": email})
            raise MaxAttemptsExceededError()

        if not secrets_match(hash_secret(code), stored_hash):
            self.logger.info(
                "OTP verification failed",
                extra={"email": email, "attempts": attempts},
            )
            raise OTPInvalidError()

        # Only the caller that removes this exact hash wins; a replacement code is left alone
        if not await self.store.delete_if_equals(code_key, stored_hash):
            raise OTPInvalidError()
        await self.store.delete(attempts_key)

        user_id = await self.directory.lookup_user_by_email(email)
        if user_id is None:
            raise UserNotFoundError()

        return await self.issue_token_pair(user_id)

    # ============== Refresh Tokens ==============

    async def refresh(self, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new pair.

        The presented token is consumed before the new pair is issued, so it
        is single-use even if issuance fails afterwards.

        Raises:
            RefreshInvalidError: Unknown, expired or already rotated token.
            StoreUnavailableError: The store failed.
        """
        owner = await self.store.get_and_delete(refresh_token_key(hash_secret(refresh_token)))
        if owner is None:
            raise RefreshInvalidError()

        try:
            user_id = uuid.UUID(owner)
        except ValueError:
            self.logger.error("refresh token mapped to malformed user id")
            raise RefreshInvalidError()

        pair = await self.issue_token_pair(user_id)
        self.logger.info("refresh token rotated", extra={"user_id": str(user_id)})
        return pair

    async def logout(self, refresh_token: str) -> None:
        """Revoke a refresh token. Safe to call repeatedly with the same token."""
        owner = await self.store.get_and_delete(refresh_token_key(hash_secret(refresh_token)))
        if owner:
            self.logger.info("user logged out", extra={"user_id": owner})

    # ============== Access Tokens ==============

    def validate_token(self, access_token: str) -> uuid.UUID:
        """Return the user id of a valid access token, else raise TokenInvalidError."""
        return self.signer.validate(access_token, now=self._clock())

    async def issue_token_pair(self, user_id: uuid.UUID) -> TokenPair:
        """
        Mint an access token and store the hash of a fresh refresh token.

        The plaintext refresh token exists only in the returned pair.
        """
        access_token = self.signer.issue(user_id, now=self._clock())
        raw_refresh = generate_refresh_token()
        await self.store.put_with_expiry(
            refresh_token_key(hash_secret(raw_refresh)),
            str(user_id),
            self.refresh_expiry,
        )
        return TokenPair(access_token=access_token, refresh_token=raw_refresh)
