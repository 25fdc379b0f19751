"""
Evidence and comment schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LinkEvidenceCreate(BaseModel):
    """Attach a link as evidence."""

    url: str = Field(..., min_length=1, max_length=2000)
    description: Optional[str] = None


class ImageEvidenceCreate(BaseModel):
    """Attach an image; the payload is base64 so the API stays JSON-only."""

    filename: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field("image/png", max_length=100)
    data_base64: str = Field(..., min_length=1)
    description: Optional[str] = None


class EvidenceResponse(BaseModel):
    """Evidence response."""

    id: uuid.UUID
    experiment_id: uuid.UUID
    kind: str
    url: str
    description: Optional[str] = None
    uploaded_by: uuid.UUID
    created_at: datetime

    class Config:
        from_attributes = True


class CommentCreate(BaseModel):
    """Comment creation request."""

    text: str = Field(..., min_length=1)


class CommentResponse(BaseModel):
    """Comment response."""

    id: uuid.UUID
    experiment_id: uuid.UUID
    author_id: uuid.UUID
    author_name: Optional[str] = None
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class AuditEntryResponse(BaseModel):
    """One audit history entry."""

    id: uuid.UUID
    experiment_id: uuid.UUID
    action: str
    changed_field: Optional[str] = None
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    actor_id: uuid.UUID
    actor_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
