"""
Kernel Data Models

Core SQLAlchemy models for the experiment lab.
"""

from growthlab.kernel.models.base import Base, TimestampMixin, enum_value, generate_uuid, utcnow
from growthlab.kernel.models.directory import (
    Client,
    ClientFunnel,
    Collaborator,
    CollaboratorRole,
)
from growthlab.kernel.models.experiment import (
    Experiment,
    ExperimentStatus,
    ExperimentType,
    Channel,
    TargetMetric,
    ValidationOutcome,
    Evidence,
    EvidenceKind,
    Comment,
    LINK_FIELDS,
    STATUS_ORDER,
)
from growthlab.kernel.models.template import ExperimentTemplate
from growthlab.kernel.models.audit_log import AuditEntry, AuditAction

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "enum_value",
    "generate_uuid",
    "utcnow",
    # Directory
    "Client",
    "ClientFunnel",
    "Collaborator",
    "CollaboratorRole",
    # Experiments
    "Experiment",
    "ExperimentStatus",
    "ExperimentType",
    "Channel",
    "TargetMetric",
    "ValidationOutcome",
    "Evidence",
    "EvidenceKind",
    "Comment",
    "LINK_FIELDS",
    "STATUS_ORDER",
    # Templates
    "ExperimentTemplate",
    # Audit
    "AuditEntry",
    "AuditAction",
]
