"""
Deadline watchlist for running experiments.

An experiment is `due` when its end date is within the warning window or
already past, `long_running` when it has no end date and has been running
for too long, and `normal` otherwise.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.config import get_settings
from growthlab.kernel.models.base import enum_value
from growthlab.kernel.models.directory import Collaborator, CollaboratorRole
from growthlab.kernel.repositories import ExperimentRepository, ExperimentRow
from growthlab.schemas.report import DeadlineAlert, DeadlineItem


def classify(
    row: ExperimentRow,
    today: date,
    warning_days: int = 7,
    long_running_days: int = 14,
) -> DeadlineItem:
    experiment, owner_name, client_name = row
    started = experiment.start_date or experiment.created_at.date()
    days_running = (today - started).days

    days_remaining: Optional[int] = None
    if experiment.end_date is not None:
        days_remaining = (experiment.end_date - today).days
        alert = DeadlineAlert.DUE if days_remaining <= warning_days else DeadlineAlert.NORMAL
    elif days_running >= long_running_days:
        alert = DeadlineAlert.LONG_RUNNING
    else:
        alert = DeadlineAlert.NORMAL

    return DeadlineItem(
        experiment_id=experiment.id,
        name=experiment.name,
        owner_id=experiment.owner_id,
        owner_name=owner_name,
        client_name=client_name,
        start_date=experiment.start_date,
        end_date=experiment.end_date,
        days_running=days_running,
        days_remaining=days_remaining,
        alert=alert,
    )


def sort_watchlist(items: List[DeadlineItem]) -> List[DeadlineItem]:
    """Due items first by days remaining, then the rest by days running, longest first."""
    due = sorted(
        (item for item in items if item.alert == DeadlineAlert.DUE),
        key=lambda item: item.days_remaining,
    )
    rest = sorted(
        (item for item in items if item.alert != DeadlineAlert.DUE),
        key=lambda item: -item.days_running,
    )
    return due + rest


async def upcoming_deadlines(
    session: AsyncSession,
    actor: Collaborator,
    today: Optional[date] = None,
) -> List[DeadlineItem]:
    """
    Build the watchlist for an actor.

    Admins see every running experiment; everyone else sees only their own.
    """
    settings = get_settings()
    today = today or date.today()
    owner_id = None if enum_value(actor.role) == CollaboratorRole.ADMIN.value else actor.id

    rows = await ExperimentRepository(session).fetch_running(owner_id=owner_id)
    items = [
        classify(
            row,
            today,
            warning_days=settings.deadline_warning_days,
            long_running_days=settings.long_running_days,
        )
        for row in rows
    ]
    return sort_watchlist(items)
