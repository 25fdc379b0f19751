"""
Experiment templates - named presets for new experiment drafts.
"""

import uuid
from typing import List, Optional

from sqlalchemy import Boolean, Float, ForeignKey, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from growthlab.kernel.models.base import Base, TimestampMixin, generate_uuid
from growthlab.kernel.models.experiment import Channel, ExperimentType, TargetMetric


class ExperimentTemplate(Base, TimestampMixin):
    """
    A reusable preset.

    Never hard-deleted: deactivation flips `active` so experiments seeded from
    it keep a valid `template_id`.
    """

    __tablename__ = "experiment_templates"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Defaults merged into drafts
    experiment_type: Mapped[Optional[ExperimentType]] = mapped_column(String(50), nullable=True)
    channel: Mapped[Optional[Channel]] = mapped_column(String(50), nullable=True)
    hypothesis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    target_metric: Mapped[Optional[TargetMetric]] = mapped_column(String(50), nullable=True)
    target_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Ordered list of {"item": str, "checked": bool}
    checklist: Mapped[List[dict]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("collaborators.id"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ExperimentTemplate {self.name} active={self.active}>"
