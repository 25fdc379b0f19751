"""
Immutable audit trail for experiments.

Every mutating command appends exactly one entry in the same flush as the
change it records. The table is append-only - no updates or deletes.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from growthlab.kernel.models.base import Base, enum_value, generate_uuid, utcnow

if TYPE_CHECKING:
    from growthlab.kernel.models.experiment import Experiment


class AuditAction(str, Enum):
    """Action kinds recorded in the audit trail."""

    CREATED = "criado"
    EDITED = "editado"
    STATUS_CHANGED = "status_alterado"
    VALIDATION_CHANGED = "validacao_alterada"
    ARCHIVED = "arquivado"
    COMMENT_ADDED = "comentario_adicionado"
    DUPLICATED = "duplicado"
    EVIDENCE_ADDED = "evidencia_adicionada"
    EVIDENCE_REMOVED = "evidencia_removida"


class AuditEntry(Base):
    """One recorded action against an experiment."""

    __tablename__ = "experiment_audit_log"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    experiment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("experiments.id", ondelete="CASCADE"),
        nullable=False,
    )
    action: Mapped[AuditAction] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )

    # What changed
    changed_field: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    previous_value: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    new_value: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Actor
    actor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("collaborators.id"),
        nullable=False,
        index=True,
    )

    # Timestamp (immutable)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    # Orders the INSERT after a new experiment in the same flush
    experiment: Mapped["Experiment"] = relationship("Experiment")

    __table_args__ = (
        Index("ix_experiment_audit_log_experiment_time", "experiment_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AuditEntry {enum_value(self.action)} experiment:{self.experiment_id}>"
