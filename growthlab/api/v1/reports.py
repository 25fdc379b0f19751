"""
Reporting and directory lookup endpoints.
"""

import uuid
from typing import List

from fastapi import APIRouter

from growthlab.api.deps import CurrentActor, DbSession
from growthlab.api.v1.experiments import Filters
from growthlab.engines.reporting import ReportingService, upcoming_deadlines
from growthlab.kernel.identity.directory import ClientDirectory, CollaboratorDirectory
from growthlab.kernel.models.base import enum_value
from growthlab.schemas.common import CollaboratorOption
from growthlab.schemas.report import DeadlineItem, ReportResponse

router = APIRouter()


@router.get("/reports/summary", response_model=ReportResponse)
async def get_report(filters: Filters, actor: CurrentActor, db: DbSession):
    """Statistics over the filtered, non-archived experiments."""
    return await ReportingService(db).get_report(filters, actor_id=actor.id)


@router.get("/reports/deadlines", response_model=List[DeadlineItem])
async def get_deadlines(actor: CurrentActor, db: DbSession):
    """Running experiments that are due, overdue or running long."""
    return await upcoming_deadlines(db, actor)


@router.get("/clients/{client_id}/funnels", response_model=List[str])
async def list_funnels(client_id: uuid.UUID, actor: CurrentActor, db: DbSession):
    return await ClientDirectory(db).list_funnels(client_id)


@router.get("/collaborators", response_model=List[CollaboratorOption])
async def list_collaborators(actor: CurrentActor, db: DbSession):
    """Active collaborators, for owner selection."""
    collaborators = await CollaboratorDirectory(db).list_active()
    return [
        CollaboratorOption(id=c.id, name=c.name, role=enum_value(c.role))
        for c in collaborators
    ]
