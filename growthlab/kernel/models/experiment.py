"""
Experiment models - the tracked marketing tests and what hangs off them.

An Experiment owns its Evidence and Comments. Status changes only go
through the lifecycle controller; see growthlab.orchestration.
"""

import math
import uuid
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from growthlab.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow


class ExperimentStatus(str, Enum):
    """Lifecycle stage of an experiment."""
    PLANNED = "planned"
    RUNNING = "running"
    PAUSED = "paused"
    CONCLUDED = "concluded"
    CANCELED = "canceled"


# Display/sort order for the status column
STATUS_ORDER = [
    ExperimentStatus.PLANNED,
    ExperimentStatus.RUNNING,
    ExperimentStatus.PAUSED,
    ExperimentStatus.CONCLUDED,
    ExperimentStatus.CANCELED,
]


class ValidationOutcome(str, Enum):
    """Verdict assigned when an experiment concludes."""
    IN_TEST = "in_test"
    GOOD = "good"
    BAD = "bad"
    INCONCLUSIVE = "inconclusive"


class ExperimentType(str, Enum):
    """What the experiment varies."""
    CREATIVE = "creative"
    COPY = "copy"
    AUDIENCE = "audience"
    LANDING_PAGE = "landing_page"
    BID_BUDGET = "bid_budget"
    OTHER = "other"


class Channel(str, Enum):
    """Where the experiment runs."""
    PAID_SOCIAL = "paid_social"
    SEARCH = "search"
    EMAIL = "email"
    ORGANIC = "organic"
    OTHER = "other"


class TargetMetric(str, Enum):
    """Primary metric an experiment is judged on."""
    CTR = "ctr"
    CPL = "cpl"
    CPA = "cpa"
    ROAS = "roas"
    LP_CONVERSION = "lp_conversion"


class EvidenceKind(str, Enum):
    """Kinds of supporting evidence."""
    IMAGE = "image"
    LINK = "link"


# The three external reference link columns checked by the evidence gate
LINK_FIELDS = ("ad_link", "campaign_link", "experiment_link")


class Experiment(Base, TimestampMixin):
    """
    One marketing experiment.

    Uses a version counter so concurrent saves can be detected instead of
    silently overwriting each other.
    """

    __tablename__ = "experiments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )

    # Ownership and placement
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("collaborators.id"),
        nullable=False,
        index=True,
    )
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("clients.id"),
        nullable=True,
        index=True,
    )
    funnel: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    # Classification
    experiment_type: Mapped[ExperimentType] = mapped_column(
        String(50),
        nullable=False,
    )
    channel: Mapped[Channel] = mapped_column(
        String(50),
        nullable=False,
    )
    status: Mapped[ExperimentStatus] = mapped_column(
        String(50),
        default=ExperimentStatus.PLANNED,
        nullable=False,
        index=True,
    )
    validation: Mapped[ValidationOutcome] = mapped_column(
        String(50),
        default=ValidationOutcome.IN_TEST,
        nullable=False,
    )

    # Metric
    target_metric: Mapped[Optional[TargetMetric]] = mapped_column(
        String(50),
        nullable=True,
    )
    target_value: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
    )
    observed_value: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
    )

    # Narrative
    hypothesis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    change_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    team_observation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    learnings: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    next_experiments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # External references
    ad_link: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)
    campaign_link: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)
    experiment_link: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)

    # Dates
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    template_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("experiment_templates.id"),
        nullable=True,
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("collaborators.id"),
        nullable=False,
    )
    archived: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_experiments_archived_created", "archived", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Experiment {self.name} status={self.status}>"

    @property
    def links(self) -> List[Optional[str]]:
        return [getattr(self, name) for name in LINK_FIELDS]

    def has_reference_link(self) -> bool:
        """True when at least one external link is non-blank."""
        return any(link and link.strip() for link in self.links)

    @property
    def target_progress(self) -> Optional[int]:
        """Observed value as a percentage of the target, capped at 100."""
        if self.observed_value is None or not self.target_value:
            return None
        return min(math.floor(self.observed_value / self.target_value * 100 + 0.5), 100)


class Evidence(Base):
    """An image or link proving the experiment ran or was measured."""

    __tablename__ = "experiment_evidence"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    experiment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("experiments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    kind: Mapped[EvidenceKind] = mapped_column(
        String(20),
        nullable=False,
    )
    url: Mapped[str] = mapped_column(
        String(2000),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    uploaded_by: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("collaborators.id"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    # Relationships
    experiment: Mapped["Experiment"] = relationship("Experiment")

    def __repr__(self) -> str:
        return f"<Evidence {self.kind} {self.url}>"


class Comment(Base):
    """A note left on an experiment. There is no edit operation."""

    __tablename__ = "experiment_comments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    experiment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("experiments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("collaborators.id"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    # Relationships
    experiment: Mapped["Experiment"] = relationship("Experiment")
