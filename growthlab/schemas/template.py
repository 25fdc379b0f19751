"""
Experiment template schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from growthlab.kernel.models.experiment import Channel, ExperimentType, TargetMetric


class ChecklistItem(BaseModel):
    item: str = Field(..., min_length=1, max_length=500)
    checked: bool = False


class TemplateCreate(BaseModel):
    """Template creation request."""

    name: str = Field(..., min_length=1, max_length=255)
    experiment_type: Optional[ExperimentType] = None
    channel: Optional[Channel] = None
    hypothesis: Optional[str] = None
    target_metric: Optional[TargetMetric] = None
    target_value: Optional[float] = None
    checklist: List[ChecklistItem] = Field(default_factory=list)


class TemplateUpdate(BaseModel):
    """Partial template update."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    experiment_type: Optional[ExperimentType] = None
    channel: Optional[Channel] = None
    hypothesis: Optional[str] = None
    target_metric: Optional[TargetMetric] = None
    target_value: Optional[float] = None
    checklist: Optional[List[ChecklistItem]] = None
    active: Optional[bool] = None


class TemplateResponse(BaseModel):
    """Template response."""

    id: uuid.UUID
    name: str
    experiment_type: Optional[str] = None
    channel: Optional[str] = None
    hypothesis: Optional[str] = None
    target_metric: Optional[str] = None
    target_value: Optional[float] = None
    checklist: List[ChecklistItem] = Field(default_factory=list)
    active: bool
    created_by: uuid.UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
