"""
Template engine - named presets merged into new experiment drafts.
"""

import uuid
from typing import List, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.kernel.errors import NotFoundError, ValidationError
from growthlab.kernel.models.directory import Collaborator
from growthlab.kernel.models.template import ExperimentTemplate
from growthlab.kernel.permissions import require_manage_templates
from growthlab.logging_config import get_logger
from growthlab.schemas.experiment import ExperimentDraft
from growthlab.schemas.template import TemplateCreate, TemplateUpdate

logger = get_logger(__name__)

# Template fields that overwrite the draft when the template defines them
TEMPLATE_FIELDS = ("experiment_type", "channel", "hypothesis", "target_metric", "target_value")


def apply_template(draft: ExperimentDraft, template: ExperimentTemplate) -> ExperimentDraft:
    """
    Merge a template into a draft.

    Every field the template defines overwrites the draft; everything else is
    kept. Neither input is mutated.
    """
    overrides = {}
    for field in TEMPLATE_FIELDS:
        value = getattr(template, field)
        if value is not None:
            overrides[field] = value
    merged = draft.model_dump()
    merged.update(overrides)
    merged["template_id"] = template.id
    return ExperimentDraft.model_validate(merged)


class TemplateService:
    """CRUD over experiment templates. Mutations need template management rights."""

    def __init__(self, session: AsyncSession, actor: Optional[Collaborator] = None):
        self.session = session
        self.actor = actor

    async def get(self, template_id: uuid.UUID) -> ExperimentTemplate:
        template = await self.session.get(ExperimentTemplate, template_id)
        if template is None:
            raise NotFoundError("Template", template_id)
        return template

    async def list_templates(self, include_inactive: bool = False) -> List[ExperimentTemplate]:
        """Templates ordered by name; inactive ones only on request."""
        query = select(ExperimentTemplate)
        if not include_inactive:
            query = query.where(ExperimentTemplate.active.is_(True))
        result = await self.session.execute(query.order_by(ExperimentTemplate.name))
        return list(result.scalars().all())

    async def create_template(self, data: Union[TemplateCreate, dict]) -> ExperimentTemplate:
        require_manage_templates(self.actor)
        if isinstance(data, dict):
            data = TemplateCreate.model_validate(data)
        name = data.name.strip()
        if not name:
            raise ValidationError("Template name is required", field="name")

        template = ExperimentTemplate(
            id=uuid.uuid4(),
            name=name,
            experiment_type=data.experiment_type,
            channel=data.channel,
            hypothesis=data.hypothesis,
            target_metric=data.target_metric,
            target_value=data.target_value,
            checklist=[item.model_dump() for item in data.checklist],
            active=True,
            created_by=self.actor.id,
        )
        self.session.add(template)
        await self.session.flush()
        logger.info("Template created", extra={"template_id": str(template.id)})
        return template

    async def update_template(
        self,
        template_id: uuid.UUID,
        data: Union[TemplateUpdate, dict],
    ) -> ExperimentTemplate:
        require_manage_templates(self.actor)
        if isinstance(data, dict):
            data = TemplateUpdate.model_validate(data)
        template = await self.get(template_id)

        values = data.model_dump(exclude_unset=True)
        if "name" in values:
            name = (values["name"] or "").strip()
            if not name:
                raise ValidationError("Template name is required", field="name")
            values["name"] = name
        if "checklist" in values:
            values["checklist"] = [dict(item) for item in values["checklist"] or []]

        for field, value in values.items():
            setattr(template, field, value)
        await self.session.flush()
        return template

    async def deactivate_template(self, template_id: uuid.UUID) -> ExperimentTemplate:
        """Hide a template from selection. Templates are never hard-deleted."""
        require_manage_templates(self.actor)
        template = await self.get(template_id)
        template.active = False
        await self.session.flush()
        logger.info("Template deactivated", extra={"template_id": str(template.id)})
        return template
