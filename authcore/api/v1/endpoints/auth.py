"""
Authentication Routes

Handles login code requests, code verification, refresh token rotation
and logout.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from authcore.api.deps import get_credential_service, get_current_user_id
from authcore.schemas.auth import (
    LogoutRequest,
    MessageResponse,
    RefreshRequest,
    RequestOTPRequest,
    VerifyOTPRequest,
)
from authcore.schemas.token import CurrentUser, TokenPairResponse
from authcore.services import email_service
from authcore.services.credential_service import CredentialService
from authcore.services.errors import (
    MaxAttemptsExceededError,
    OnCooldownError,
    OTPInvalidError,
    RefreshInvalidError,
    UserNotFoundError,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Same copy whether or not the email is registered
OTP_SENT_MESSAGE = "A login code has been sent if your email is registered."
INVALID_CODE_MESSAGE = "Invalid or expired code."


@router.post(
    "/otp/request",
    response_model=MessageResponse,
    summary="Request a one-time login code",
)
async def request_otp(
    data: RequestOTPRequest,
    service: Annotated[CredentialService, Depends(get_credential_service)],
) -> MessageResponse:
    """
    Generate a login code and email it to the user.

    Unknown emails get the same response as registered ones so the endpoint
    cannot be used to enumerate accounts.

    Raises:
        HTTPException: 429 if a code was requested too recently.
        HTTPException: 503 if the code could not be delivered.
    """
    email = str(data.email)
    try:
        code = await service.request_otp(email)
    except UserNotFoundError:
        return MessageResponse(message=OTP_SENT_MESSAGE)
    except OnCooldownError:
        logger.warning("OTP request blocked by cooldown", extra={"email": email})
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Please wait before requesting another code.",
            headers={"Retry-After": str(int(service.otp_cooldown.total_seconds()))},
        )

    if not await email_service.send_login_code(email, code):
        # Undelivered codes must not hold the cooldown
        await service.cancel_otp(email)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not send the login code. Please try again later.",
            headers={"Retry-After": "1"},
        )

    return MessageResponse(message=OTP_SENT_MESSAGE)


@router.post(
    "/otp/verify",
    response_model=TokenPairResponse,
    summary="Sign in with a one-time login code",
)
async def verify_otp(
    data: VerifyOTPRequest,
    service: Annotated[CredentialService, Depends(get_credential_service)],
) -> TokenPairResponse:
    """
    Verify a login code and return an access/refresh token pair.

    Raises:
        HTTPException: 400 if the code is wrong, expired, exhausted, or the
            account is gone. The detail is identical in every case.
    """
    email = str(data.email)
    try:
        pair = await service.verify_otp(email, data.code)
    except (OTPInvalidError, MaxAttemptsExceededError, UserNotFoundError) as exc:
        logger.warning("OTP verification failed", extra={"email": email, "reason": exc.code.value})
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=INVALID_CODE_MESSAGE,
        )

    logger.info("User authenticated via OTP", extra={"email": email})
    return TokenPairResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post(
    "/refresh",
    response_model=TokenPairResponse,
    summary="Rotate a refresh token",
)
async def refresh_tokens(
    data: RefreshRequest,
    service: Annotated[CredentialService, Depends(get_credential_service)],
) -> TokenPairResponse:
    """
    Exchange a refresh token for a new pair. The old token stops working.

    Raises:
        HTTPException: 401 if the refresh token is unknown, expired or reused.
    """
    try:
        pair = await service.refresh(data.refresh_token)
    except RefreshInvalidError:
        logger.warning("Refresh token rejected: invalid or expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenPairResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Revoke a refresh token",
)
async def logout(
    data: LogoutRequest,
    service: Annotated[CredentialService, Depends(get_credential_service)],
) -> MessageResponse:
    await service.logout(data.refresh_token)
    return MessageResponse(message="Logged out successfully.")


@router.get(
    "/me",
    response_model=CurrentUser,
    summary="Return the authenticated caller",
)
async def read_current_user(
    user_id: Annotated[uuid.UUID, Depends(get_current_user_id)],
) -> CurrentUser:
    return CurrentUser(user_id=user_id)
