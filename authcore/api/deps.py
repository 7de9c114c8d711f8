"""
API Dependencies

Reusable dependencies for API routes including authentication.
"""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from authcore.core.config import settings
from authcore.core.database import get_session_maker
from authcore.core.store import get_store
from authcore.services.credential_service import CredentialService
from authcore.services.errors import TokenInvalidError
from authcore.services.identity import IdentityDirectory, SQLAlchemyIdentityDirectory


# Bearer scheme for token extraction from Authorization header
bearer_scheme = HTTPBearer(auto_error=False)

_identity_directory: Optional[IdentityDirectory] = None
_credential_service: Optional[CredentialService] = None


def get_identity_directory() -> IdentityDirectory:
    """Get or create the shared identity directory."""
    global _identity_directory
    if _identity_directory is None:
        _identity_directory = SQLAlchemyIdentityDirectory(get_session_maker())
    return _identity_directory


def get_credential_service() -> CredentialService:
    """
    Get or create the shared credential service.

    The service is stateless, so one instance serves every request.
    """
    global _credential_service
    if _credential_service is None:
        _credential_service = CredentialService.from_settings(
            settings,
            get_store(),
            get_identity_directory(),
        )
    return _credential_service


async def get_current_user_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    service: Annotated[CredentialService, Depends(get_credential_service)],
    directory: Annotated[IdentityDirectory, Depends(get_identity_directory)],
) -> uuid.UUID:
    """
    Dependency to get the id of the authenticated caller.

    This dependency:
    1. Extracts the bearer token from the Authorization header
    2. Validates signature, issuer, expiry and user_id claim
    3. Confirms the user still exists in the identity directory
    4. Raises 401 if any step fails

    Returns:
        uuid.UUID: The authenticated user's id.

    Raises:
        HTTPException: 401 if authentication fails.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise credentials_exception

    try:
        user_id = service.validate_token(credentials.credentials)
    except TokenInvalidError:
        raise credentials_exception

    if not await directory.lookup_user_by_id(user_id):
        raise credentials_exception

    return user_id
