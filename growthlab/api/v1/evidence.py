"""
Evidence endpoints.
"""

import base64
import binascii
import uuid
from typing import List

from fastapi import APIRouter, status

from growthlab.api.deps import CurrentActor, DbSession, Storage
from growthlab.engines.evidence import EvidenceStore
from growthlab.kernel.errors import ValidationError
from growthlab.kernel.models.base import enum_value
from growthlab.kernel.models.experiment import Evidence
from growthlab.schemas.evidence import EvidenceResponse, ImageEvidenceCreate, LinkEvidenceCreate

router = APIRouter()


def evidence_response(evidence: Evidence) -> EvidenceResponse:
    return EvidenceResponse(
        id=evidence.id,
        experiment_id=evidence.experiment_id,
        kind=enum_value(evidence.kind),
        url=evidence.url,
        description=evidence.description,
        uploaded_by=evidence.uploaded_by,
        created_at=evidence.created_at,
    )


@router.get("/experiments/{experiment_id}/evidence", response_model=List[EvidenceResponse])
async def list_evidence(experiment_id: uuid.UUID, actor: CurrentActor, db: DbSession):
    """Evidence for an experiment, newest first."""
    items = await EvidenceStore(db, actor).list_evidence(experiment_id)
    return [evidence_response(item) for item in items]


@router.post(
    "/experiments/{experiment_id}/evidence/links",
    response_model=EvidenceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_link_evidence(
    experiment_id: uuid.UUID,
    data: LinkEvidenceCreate,
    actor: CurrentActor,
    db: DbSession,
):
    evidence = await EvidenceStore(db, actor).add_evidence(
        experiment_id,
        url=data.url,
        description=data.description,
    )
    return evidence_response(evidence)


@router.post(
    "/experiments/{experiment_id}/evidence/images",
    response_model=EvidenceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_image_evidence(
    experiment_id: uuid.UUID,
    data: ImageEvidenceCreate,
    actor: CurrentActor,
    db: DbSession,
    storage: Storage,
):
    """Upload a base64 image to object storage, then record it."""
    try:
        payload = base64.b64decode(data.data_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Image payload is not valid base64", field="data_base64") from e

    evidence = await EvidenceStore(db, actor, storage).add_image_evidence(
        experiment_id,
        payload=payload,
        filename=data.filename,
        content_type=data.content_type,
        description=data.description,
    )
    return evidence_response(evidence)


@router.delete("/evidence/{evidence_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_evidence(evidence_id: uuid.UUID, actor: CurrentActor, db: DbSession):
    await EvidenceStore(db, actor).remove_evidence(evidence_id)
