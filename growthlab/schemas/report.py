"""
Reporting schemas: aggregate stats and the deadline watchlist.
"""

import uuid
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class CountBucket(BaseModel):
    """A named count in a top-N grouping."""

    id: Optional[uuid.UUID] = None  # Client or owner; None for the "No client" bucket
    label: str
    count: int


class ReportResponse(BaseModel):
    """Aggregate statistics over a filtered set of experiments."""

    total: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_validation: Dict[str, int] = Field(default_factory=dict)  # Concluded only
    by_type: Dict[str, int] = Field(default_factory=dict)
    by_channel: Dict[str, int] = Field(default_factory=dict)
    win_rate: float = 0.0
    completion_rate: float = 0.0
    avg_duration_days: int = 0
    top_clients: List[CountBucket] = Field(default_factory=list)
    top_owners: List[CountBucket] = Field(default_factory=list)


class DeadlineAlert(str, Enum):
    """Watchlist classification of a running experiment."""
    DUE = "due"
    LONG_RUNNING = "long_running"
    NORMAL = "normal"


class DeadlineItem(BaseModel):
    """One running experiment on the deadline watchlist."""

    experiment_id: uuid.UUID
    name: str
    owner_id: uuid.UUID
    owner_name: Optional[str] = None
    client_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_running: int
    days_remaining: Optional[int] = None  # Negative when overdue
    alert: DeadlineAlert
