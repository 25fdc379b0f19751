"""
Pydantic schemas for API request/response validation.
"""

from growthlab.schemas.common import (
    PaginatedResponse,
    ErrorResponse,
    HealthResponse,
    CollaboratorOption,
)
from growthlab.schemas.experiment import (
    ExperimentDraft,
    ExperimentUpdate,
    ConcludeRequest,
    SetValidationRequest,
    ExperimentFilters,
    QuickFilter,
    SortKey,
    SortDirection,
    ExperimentResponse,
    ExperimentSummary,
)
from growthlab.schemas.evidence import (
    LinkEvidenceCreate,
    ImageEvidenceCreate,
    EvidenceResponse,
    CommentCreate,
    CommentResponse,
    AuditEntryResponse,
)
from growthlab.schemas.template import (
    ChecklistItem,
    TemplateCreate,
    TemplateUpdate,
    TemplateResponse,
)
from growthlab.schemas.report import (
    CountBucket,
    ReportResponse,
    DeadlineAlert,
    DeadlineItem,
)

__all__ = [
    # Common
    "PaginatedResponse",
    "ErrorResponse",
    "HealthResponse",
    "CollaboratorOption",
    # Experiments
    "ExperimentDraft",
    "ExperimentUpdate",
    "ConcludeRequest",
    "SetValidationRequest",
    "ExperimentFilters",
    "QuickFilter",
    "SortKey",
    "SortDirection",
    "ExperimentResponse",
    "ExperimentSummary",
    # Evidence, comments, audit
    "LinkEvidenceCreate",
    "ImageEvidenceCreate",
    "EvidenceResponse",
    "CommentCreate",
    "CommentResponse",
    "AuditEntryResponse",
    # Templates
    "ChecklistItem",
    "TemplateCreate",
    "TemplateUpdate",
    "TemplateResponse",
    # Reports
    "CountBucket",
    "ReportResponse",
    "DeadlineAlert",
    "DeadlineItem",
]
