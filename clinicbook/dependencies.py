"""FastAPI dependencies."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clinicbook.core.exceptions import ForbiddenException
from clinicbook.core.locks import ProviderLockManager, get_lock_manager
from clinicbook.core.security import decode_access_token
from clinicbook.database import get_db
from clinicbook.schemas.bookings import ActorRole, Identity
from clinicbook.services.notification_service import NotificationDispatcher, get_dispatcher

# Missing credentials are reported as 401 below rather than by HTTPBearer
security = HTTPBearer(auto_error=False)


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Identity:
    """
    Resolve the caller identity from the bearer token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Actor id and role carried by the token

    Raises:
        HTTPException: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise _credentials_error("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _credentials_error()

    actor_id = payload.get("sub")
    role = payload.get("role")
    if not isinstance(actor_id, str) or role not in {r.value for r in ActorRole}:
        raise _credentials_error()

    try:
        return Identity(actor_id=UUID(actor_id), role=ActorRole(role))
    except ValueError:
        raise _credentials_error("Invalid actor ID format")


async def require_provider(
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> Identity:
    """Caller identity, which must be a provider."""
    if not identity.is_provider:
        raise ForbiddenException("Provider access required")
    return identity


async def require_patient(
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> Identity:
    """Caller identity, which must be a patient."""
    if not identity.is_patient:
        raise ForbiddenException("Patient access required")
    return identity


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
CurrentProvider = Annotated[Identity, Depends(require_provider)]
CurrentPatient = Annotated[Identity, Depends(require_patient)]
LockManager = Annotated[ProviderLockManager, Depends(get_lock_manager)]
Dispatcher = Annotated[NotificationDispatcher, Depends(get_dispatcher)]
