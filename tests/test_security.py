"""
Security Unit Tests

Tests for secret hashing and access token signing/validation.
"""

import re
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from authcore.core.security import (
    TokenSigner,
    generate_otp,
    generate_refresh_token,
    hash_secret,
    secrets_match,
)
from authcore.services.errors import TokenInvalidError


NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class TestSecrets:
    """Tests for code and refresh token generation."""

    def test_otp_format(self):
        """Verify every generated code is six digits."""
        for _ in range(200):
            assert re.fullmatch(r"\d{6}", generate_otp())

    def test_refresh_token_is_64_hex(self):
        """Verify refresh tokens carry 256 bits as hex."""
        token = generate_refresh_token()

        assert re.fullmatch(r"[0-9a-f]{64}", token)
        assert generate_refresh_token() != token

    def test_hash_is_sha256_hex(self):
        """Verify the hash matches the known SHA-256 digest."""
        assert hash_secret("123456") == (
            "8d969eef6ecad3c29a3a629280e686cf0c3f5d5a86aff3ca12020c923adc6c92"
        )

    def test_secrets_match(self):
        """Verify digest comparison."""
        assert secrets_match(hash_secret("a"), hash_secret("a")) is True
        assert secrets_match(hash_secret("a"), hash_secret("b")) is False


class TestTokenSigner:
    """Tests for the HS256 token signer."""

    @pytest.fixture
    def signer(self) -> TokenSigner:
        return TokenSigner("test-secret-key", "test-issuer", timedelta(hours=1))

    def test_issue_returns_jwt(self, signer):
        """Verify the token is a three-segment JWT."""
        token = signer.issue(uuid.uuid4(), now=NOW)

        assert token.count(".") == 2

    def test_claims(self, signer):
        """Verify the claim set is exactly iss, sub, iat, exp and user_id."""
        user_id = uuid.uuid4()

        token = signer.issue(user_id, now=NOW)
        claims = jwt.get_unverified_claims(token)

        assert set(claims) == {"iss", "sub", "iat", "exp", "user_id"}
        assert claims["iss"] == "test-issuer"
        assert claims["sub"] == str(user_id)
        assert claims["user_id"] == str(user_id)
        assert claims["iat"] == int(NOW.timestamp())
        assert claims["exp"] == int((NOW + timedelta(hours=1)).timestamp())

    def test_issue_is_deterministic(self, signer):
        """Verify identical inputs produce identical tokens."""
        user_id = uuid.uuid4()

        assert signer.issue(user_id, now=NOW) == signer.issue(user_id, now=NOW)

    def test_validate_round_trip(self, signer):
        """Verify a fresh token validates to its user id."""
        user_id = uuid.uuid4()
        token = signer.issue(user_id, now=NOW)

        assert signer.validate(token, now=NOW + timedelta(minutes=5)) == user_id

    def test_garbage_token(self, signer):
        """Verify unparsable input is rejected."""
        with pytest.raises(TokenInvalidError) as exc_info:
            signer.validate("invalid-token", now=NOW)

        assert "failed to parse token" in str(exc_info.value)

    def test_wrong_secret(self):
        """Verify a token signed with another key is rejected."""
        signer_1 = TokenSigner("secret-1", "test-issuer", timedelta(hours=1))
        signer_2 = TokenSigner("secret-2", "test-issuer", timedelta(hours=1))
        token = signer_1.issue(uuid.uuid4(), now=NOW)

        with pytest.raises(TokenInvalidError):
            signer_2.validate(token, now=NOW)

    def test_wrong_issuer(self):
        """Verify a token from another issuer is rejected."""
        ours = TokenSigner("shared", "issuer-a", timedelta(hours=1))
        theirs = TokenSigner("shared", "issuer-b", timedelta(hours=1))
        token = theirs.issue(uuid.uuid4(), now=NOW)

        with pytest.raises(TokenInvalidError):
            ours.validate(token, now=NOW)

    def test_expired_relative_to_now(self, signer):
        """Verify expiry is judged against the supplied clock."""
        token = signer.issue(uuid.uuid4(), now=NOW)

        signer.validate(token, now=NOW + timedelta(minutes=59))
        with pytest.raises(TokenInvalidError):
            signer.validate(token, now=NOW + timedelta(hours=1))

    def test_missing_user_id_claim(self):
        """Verify tokens without user_id are rejected."""
        token = jwt.encode(
            {"iss": "test-issuer", "sub": "x", "exp": NOW + timedelta(hours=1)},
            "test-secret-key",
            algorithm="HS256",
        )
        signer = TokenSigner("test-secret-key", "test-issuer", timedelta(hours=1))

        with pytest.raises(TokenInvalidError):
            signer.validate(token, now=NOW)

    def test_malformed_user_id_claim(self):
        """Verify a non-UUID user_id is rejected."""
        token = jwt.encode(
            {
                "iss": "test-issuer",
                "sub": "x",
                "exp": NOW + timedelta(hours=1),
                "user_id": "not-a-uuid",
            },
            "test-secret-key",
            algorithm="HS256",
        )
        signer = TokenSigner("test-secret-key", "test-issuer", timedelta(hours=1))

        with pytest.raises(TokenInvalidError):
            signer.validate(token, now=NOW)

    def test_missing_expiry(self):
        """Verify tokens without exp are rejected."""
        token = jwt.encode(
            {"iss": "test-issuer", "user_id": str(uuid.uuid4())},
            "test-secret-key",
            algorithm="HS256",
        )
        signer = TokenSigner("test-secret-key", "test-issuer", timedelta(hours=1))

        with pytest.raises(TokenInvalidError):
            signer.validate(token, now=NOW)

    def test_rejects_empty_key(self):
        """Verify an empty signing key is refused."""
        with pytest.raises(ValueError):
            TokenSigner("", "issuer", timedelta(hours=1))

    def test_rejects_non_positive_expiry(self):
        """Verify expiry must be positive."""
        with pytest.raises(ValueError):
            TokenSigner("key", "issuer", timedelta(0))
