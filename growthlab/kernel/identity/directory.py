"""
Read-only lookups over the client and collaborator directory.

The console owns these tables; the lab only resolves names, roles and the
current actor from them.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.kernel.models.directory import Client, ClientFunnel, Collaborator


class CollaboratorDirectory:
    """Resolves collaborators by id or auth identity."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, collaborator_id: uuid.UUID) -> Optional[Collaborator]:
        return await self.session.get(Collaborator, collaborator_id)

    async def get_by_user_id(self, user_id: uuid.UUID) -> Optional[Collaborator]:
        """Find the active collaborator behind an auth identity."""
        result = await self.session.execute(
            select(Collaborator).where(
                Collaborator.user_id == user_id,
                Collaborator.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def exists(self, collaborator_id: uuid.UUID) -> bool:
        return await self.get(collaborator_id) is not None

    async def list_active(self) -> List[Collaborator]:
        result = await self.session.execute(
            select(Collaborator)
            .where(Collaborator.is_active.is_(True))
            .order_by(Collaborator.name)
        )
        return list(result.scalars().all())


class ClientDirectory:
    """Resolves clients and their funnels."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, client_id: uuid.UUID) -> Optional[Client]:
        return await self.session.get(Client, client_id)

    async def list_funnels(self, client_id: uuid.UUID) -> List[str]:
        """Funnel labels for a client, alphabetical, used as selection aids."""
        result = await self.session.execute(
            select(ClientFunnel.label)
            .where(ClientFunnel.client_id == client_id)
            .order_by(ClientFunnel.label)
        )
        return list(result.scalars().all())
