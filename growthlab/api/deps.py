"""
FastAPI dependencies for authentication, database sessions and collaborators.
"""

import uuid
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.database import get_db
from growthlab.engines.evidence.storage import HttpObjectStorage, ObjectStorage
from growthlab.integrations.notifier import WebhookNotifier
from growthlab.kernel.identity.directory import CollaboratorDirectory
from growthlab.kernel.identity.jwt import verify_access_token
from growthlab.kernel.models.directory import Collaborator


# Security scheme
security = HTTPBearer(auto_error=False)


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_actor(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> Collaborator:
    """Resolve the bearer token to an active collaborator or raise 401."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = uuid.UUID(payload.sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
            headers={"WWW-Authenticate": "Bearer"},
        )

    actor = await CollaboratorDirectory(db).get_by_user_id(user_id)
    if not actor:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No active collaborator for this account",
        )
    return actor


CurrentActor = Annotated[Collaborator, Depends(get_current_actor)]


@lru_cache
def get_storage() -> ObjectStorage:
    """Object storage for image evidence."""
    return HttpObjectStorage()


@lru_cache
def get_notifier() -> WebhookNotifier:
    """Outbound lifecycle webhook (no-op when unconfigured)."""
    return WebhookNotifier()


Storage = Annotated[ObjectStorage, Depends(get_storage)]
Notifier = Annotated[WebhookNotifier, Depends(get_notifier)]
