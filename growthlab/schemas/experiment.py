"""
Experiment schemas.

`ExperimentDraft` is the typed value object every creation goes through;
building one from loose data raises the domain ValidationError.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from growthlab.kernel.errors import ValidationError
from growthlab.kernel.models.experiment import (
    Channel,
    ExperimentStatus,
    ExperimentType,
    TargetMetric,
    ValidationOutcome,
)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ExperimentDraft(BaseModel):
    """New experiment request."""

    name: str = Field(..., min_length=1, max_length=500)
    owner_id: uuid.UUID
    experiment_type: Optional[ExperimentType] = None
    channel: Optional[Channel] = None
    client_id: Optional[uuid.UUID] = None
    funnel: Optional[str] = Field(None, max_length=255)
    hypothesis: Optional[str] = None
    change_description: Optional[str] = None
    team_observation: Optional[str] = None
    notes: Optional[str] = None
    target_metric: Optional[TargetMetric] = None
    target_value: Optional[float] = None
    ad_link: Optional[str] = Field(None, max_length=2000)
    campaign_link: Optional[str] = Field(None, max_length=2000)
    experiment_link: Optional[str] = Field(None, max_length=2000)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    template_id: Optional[uuid.UUID] = None  # Preset merged in before validation

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator(
        "funnel", "hypothesis", "change_description", "team_observation", "notes",
        "ad_link", "campaign_link", "experiment_link",
        mode="before",
    )
    @classmethod
    def blank_is_none(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @classmethod
    def build(cls, data: Union["ExperimentDraft", Dict[str, Any]]) -> "ExperimentDraft":
        """Validate loose data into a draft, raising the domain ValidationError."""
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise _to_domain_error(e) from e

    def require_complete(self) -> None:
        """Type and channel may come from a template; after merging both must be set."""
        if self.experiment_type is None:
            raise ValidationError("Experiment type is required", field="experiment_type")
        if self.channel is None:
            raise ValidationError("Channel is required", field="channel")


class ExperimentUpdate(BaseModel):
    """
    Partial experiment update.

    Status, validation and the archived flag are not accepted here; they move
    only through lifecycle commands.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=500)
    owner_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None
    funnel: Optional[str] = Field(None, max_length=255)
    experiment_type: Optional[ExperimentType] = None
    channel: Optional[Channel] = None
    target_metric: Optional[TargetMetric] = None
    target_value: Optional[float] = None
    observed_value: Optional[float] = None
    hypothesis: Optional[str] = None
    change_description: Optional[str] = None
    team_observation: Optional[str] = None
    notes: Optional[str] = None
    learnings: Optional[str] = None
    next_experiments: Optional[str] = None
    ad_link: Optional[str] = Field(None, max_length=2000)
    campaign_link: Optional[str] = Field(None, max_length=2000)
    experiment_link: Optional[str] = Field(None, max_length=2000)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    # Optimistic concurrency: version the caller last read
    expected_version: Optional[int] = None

    class Config:
        extra = "forbid"

    @classmethod
    def build(cls, data: Union["ExperimentUpdate", Dict[str, Any]]) -> "ExperimentUpdate":
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise _to_domain_error(e) from e

    def changes(self) -> Dict[str, Any]:
        """Fields the caller actually sent, minus the version guard."""
        values = self.model_dump(exclude_unset=True)
        values.pop("expected_version", None)
        return values


class ConcludeRequest(BaseModel):
    """Conclude an experiment with a verdict and a result description."""

    validation: ValidationOutcome
    result_description: str = ""
    observed_value: Optional[float] = None
    learnings: Optional[str] = None


class SetValidationRequest(BaseModel):
    validation: ValidationOutcome


class QuickFilter(str, Enum):
    """Shortcut filters on the experiment list."""
    ALL = "all"
    MINE = "mine"
    WINNERS = "winners"


class SortKey(str, Enum):
    """Sortable experiment list columns."""
    CREATED_AT = "created_at"
    NAME = "name"
    STATUS = "status"
    CLIENT = "client"
    FUNNEL = "funnel"
    TYPE = "type"
    OWNER = "owner"
    VALIDATION = "validation"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ExperimentFilters(BaseModel):
    """Explicit list/report filters. Nothing is remembered between calls."""

    search: Optional[str] = None
    client_id: Optional[uuid.UUID] = None
    funnel: Optional[str] = None
    owner_id: Optional[uuid.UUID] = None
    experiment_type: Optional[ExperimentType] = None
    channel: Optional[Channel] = None
    status: Optional[ExperimentStatus] = None
    validation: Optional[ValidationOutcome] = None
    created_from: Optional[date] = None
    created_to: Optional[date] = None
    quick_filter: QuickFilter = QuickFilter.ALL
    include_archived: bool = False


class ExperimentResponse(BaseModel):
    """Full experiment response."""

    id: uuid.UUID
    name: str
    owner_id: uuid.UUID
    owner_name: Optional[str] = None
    client_id: Optional[uuid.UUID] = None
    client_name: Optional[str] = None
    funnel: Optional[str] = None
    experiment_type: str
    channel: str
    status: str
    validation: str
    target_metric: Optional[str] = None
    target_value: Optional[float] = None
    observed_value: Optional[float] = None
    hypothesis: Optional[str] = None
    change_description: Optional[str] = None
    team_observation: Optional[str] = None
    notes: Optional[str] = None
    learnings: Optional[str] = None
    next_experiments: Optional[str] = None
    ad_link: Optional[str] = None
    campaign_link: Optional[str] = None
    experiment_link: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    template_id: Optional[uuid.UUID] = None
    created_by: uuid.UUID
    archived: bool
    version: int
    target_progress: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ExperimentSummary(BaseModel):
    """Experiment list item."""

    id: uuid.UUID
    name: str
    owner_id: uuid.UUID
    owner_name: Optional[str] = None
    client_id: Optional[uuid.UUID] = None
    client_name: Optional[str] = None
    funnel: Optional[str] = None
    experiment_type: str
    channel: str
    status: str
    validation: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    archived: bool
    created_at: datetime

    class Config:
        from_attributes = True


def _to_domain_error(error: PydanticValidationError) -> ValidationError:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or None
    message = first.get("msg", "Invalid value")
    if first.get("type") == "missing":
        message = f"{field} is required"
    return ValidationError(message, field=field)
