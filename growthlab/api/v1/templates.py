"""
Template endpoints.
"""

import uuid
from typing import List

from fastapi import APIRouter, status

from growthlab.api.deps import CurrentActor, DbSession
from growthlab.engines.templates import TemplateService
from growthlab.kernel.models.base import enum_value
from growthlab.kernel.models.template import ExperimentTemplate
from growthlab.schemas.template import TemplateCreate, TemplateResponse, TemplateUpdate

router = APIRouter()


def template_response(template: ExperimentTemplate) -> TemplateResponse:
    def _val(value):
        return enum_value(value) if value is not None else None

    return TemplateResponse(
        id=template.id,
        name=template.name,
        experiment_type=_val(template.experiment_type),
        channel=_val(template.channel),
        hypothesis=template.hypothesis,
        target_metric=_val(template.target_metric),
        target_value=template.target_value,
        checklist=template.checklist or [],
        active=template.active,
        created_by=template.created_by,
        created_at=template.created_at,
        updated_at=template.updated_at,
    )


@router.get("", response_model=List[TemplateResponse])
async def list_templates(actor: CurrentActor, db: DbSession, include_inactive: bool = False):
    """Templates ordered by name."""
    templates = await TemplateService(db, actor).list_templates(include_inactive=include_inactive)
    return [template_response(t) for t in templates]


@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(data: TemplateCreate, actor: CurrentActor, db: DbSession):
    template = await TemplateService(db, actor).create_template(data)
    return template_response(template)


@router.patch("/{template_id}", response_model=TemplateResponse)
async def update_template(template_id: uuid.UUID, data: TemplateUpdate, actor: CurrentActor, db: DbSession):
    template = await TemplateService(db, actor).update_template(template_id, data)
    return template_response(template)


@router.post("/{template_id}/deactivate", response_model=TemplateResponse)
async def deactivate_template(template_id: uuid.UUID, actor: CurrentActor, db: DbSession):
    template = await TemplateService(db, actor).deactivate_template(template_id)
    return template_response(template)
