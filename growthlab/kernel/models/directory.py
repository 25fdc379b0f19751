"""
Directory models: clients, their funnels, and collaborators.

These tables belong to the wider console. The lifecycle engine only reads
them (names for display, roles for permission checks).
"""

import uuid
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from growthlab.kernel.models.base import Base, TimestampMixin, generate_uuid


class CollaboratorRole(str, Enum):
    """Roles a collaborator can hold in the experiment lab."""
    ADMIN = "admin"
    MANAGER = "manager"
    VIEWER = "viewer"


class Client(Base, TimestampMixin):
    """A client account experiments are run for."""

    __tablename__ = "clients"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Client {self.name}>"


class ClientFunnel(Base):
    """A funnel label associated with a client."""

    __tablename__ = "client_funnels"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )


class Collaborator(Base, TimestampMixin):
    """A team member. `user_id` is the hosted auth identity (token subject)."""

    __tablename__ = "collaborators"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        unique=True,
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    avatar_url: Mapped[Optional[str]] = mapped_column(
        String(1000),
        nullable=True,
    )
    role: Mapped[CollaboratorRole] = mapped_column(
        String(50),
        default=CollaboratorRole.VIEWER,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Collaborator {self.name}>"
