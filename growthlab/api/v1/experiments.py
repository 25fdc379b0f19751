"""
Experiment endpoints: CRUD, lifecycle commands, comments and history.
"""

import uuid
from datetime import date
from typing import Annotated, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from growthlab.api.deps import CurrentActor, DbSession, Notifier
from growthlab.integrations.notifier import WebhookNotifier
from growthlab.kernel.models.base import enum_value
from growthlab.kernel.models.experiment import (
    Channel,
    Experiment,
    ExperimentStatus,
    ExperimentType,
    ValidationOutcome,
)
from growthlab.kernel.repositories import ExperimentRepository, ExperimentRow
from growthlab.logging_config import get_request_id
from growthlab.orchestration import LifecycleController
from growthlab.schemas.common import PaginatedResponse
from growthlab.schemas.evidence import AuditEntryResponse, CommentCreate, CommentResponse
from growthlab.schemas.experiment import (
    ConcludeRequest,
    ExperimentDraft,
    ExperimentFilters,
    ExperimentResponse,
    ExperimentSummary,
    ExperimentUpdate,
    QuickFilter,
    SetValidationRequest,
    SortDirection,
    SortKey,
)

router = APIRouter()

_ENUM_COLUMNS = ("experiment_type", "channel", "status", "validation", "target_metric")


def experiment_filters(
    search: Optional[str] = Query(None, max_length=200),
    client_id: Optional[uuid.UUID] = None,
    funnel: Optional[str] = None,
    owner_id: Optional[uuid.UUID] = None,
    experiment_type: Optional[ExperimentType] = None,
    channel: Optional[Channel] = None,
    status: Optional[ExperimentStatus] = None,
    validation: Optional[ValidationOutcome] = None,
    created_from: Optional[date] = None,
    created_to: Optional[date] = None,
    quick_filter: QuickFilter = QuickFilter.ALL,
    include_archived: bool = False,
) -> ExperimentFilters:
    """Collect list/report filters from the query string."""
    return ExperimentFilters(
        search=search,
        client_id=client_id,
        funnel=funnel,
        owner_id=owner_id,
        experiment_type=experiment_type,
        channel=channel,
        status=status,
        validation=validation,
        created_from=created_from,
        created_to=created_to,
        quick_filter=quick_filter,
        include_archived=include_archived,
    )


Filters = Annotated[ExperimentFilters, Depends(experiment_filters)]


def _row_values(experiment: Experiment) -> dict:
    values = {column.key: getattr(experiment, column.key) for column in Experiment.__table__.columns}
    for name in _ENUM_COLUMNS:
        if values[name] is not None:
            values[name] = enum_value(values[name])
    return values


def experiment_response(row: ExperimentRow) -> ExperimentResponse:
    experiment, owner_name, client_name = row
    return ExperimentResponse(
        **_row_values(experiment),
        owner_name=owner_name,
        client_name=client_name,
        target_progress=experiment.target_progress,
    )


def experiment_summary(row: ExperimentRow) -> ExperimentSummary:
    experiment, owner_name, client_name = row
    values = _row_values(experiment)
    return ExperimentSummary(
        **{name: values[name] for name in ExperimentSummary.model_fields if name in values},
        owner_name=owner_name,
        client_name=client_name,
    )


async def _respond(db: DbSession, experiment: Experiment) -> ExperimentResponse:
    return experiment_response(await ExperimentRepository(db).get_with_names(experiment.id))


async def _commit_and_respond(
    db: DbSession,
    controller: LifecycleController,
    experiment: Experiment,
    notifier: WebhookNotifier,
    tasks: BackgroundTasks,
) -> ExperimentResponse:
    """
    Build the response, commit the unit, then queue its webhook events.

    A unit that fails to commit queues nothing. Delivery runs after the
    response is sent.
    """
    response = await _respond(db, experiment)
    await db.commit()
    request_id = get_request_id()
    for event, payload in controller.drain_events():
        tasks.add_task(notifier.notify, event, payload, request_id=request_id)
    return response


@router.post("", response_model=ExperimentResponse, status_code=status.HTTP_201_CREATED)
async def create_experiment(
    data: ExperimentDraft,
    actor: CurrentActor,
    db: DbSession,
    notifier: Notifier,
    tasks: BackgroundTasks,
):
    """Create a planned experiment, optionally seeded from a template."""
    controller = LifecycleController(db, actor)
    experiment = await controller.create_experiment(data)
    return await _commit_and_respond(db, controller, experiment, notifier, tasks)


@router.get("", response_model=PaginatedResponse[ExperimentSummary])
async def list_experiments(
    filters: Filters,
    actor: CurrentActor,
    db: DbSession,
    sort: SortKey = SortKey.CREATED_AT,
    direction: Optional[SortDirection] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    """List experiments with filters, sorting and pagination."""
    rows, total = await ExperimentRepository(db).list_page(
        filters,
        actor_id=actor.id,
        sort=sort,
        direction=direction,
        page=page,
        page_size=page_size,
    )
    return PaginatedResponse.create(
        items=[experiment_summary(row) for row in rows],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{experiment_id}", response_model=ExperimentResponse)
async def get_experiment(
    experiment_id: uuid.UUID,
    actor: CurrentActor,
    db: DbSession,
):
    return experiment_response(await ExperimentRepository(db).get_with_names(experiment_id))


@router.patch("/{experiment_id}", response_model=ExperimentResponse)
async def update_experiment(
    experiment_id: uuid.UUID,
    data: ExperimentUpdate,
    actor: CurrentActor,
    db: DbSession,
    notifier: Notifier,
    tasks: BackgroundTasks,
):
    """Edit descriptive fields. Pass `expected_version` to reject stale edits."""
    controller = LifecycleController(db, actor)
    experiment = await controller.update_experiment(experiment_id, data)
    return await _commit_and_respond(db, controller, experiment, notifier, tasks)


@router.post("/{experiment_id}/start", response_model=ExperimentResponse)
async def start_experiment(
    experiment_id: uuid.UUID,
    actor: CurrentActor,
    db: DbSession,
    notifier: Notifier,
    tasks: BackgroundTasks,
):
    controller = LifecycleController(db, actor)
    experiment = await controller.start_experiment(experiment_id)
    return await _commit_and_respond(db, controller, experiment, notifier, tasks)


@router.post("/{experiment_id}/pause", response_model=ExperimentResponse)
async def pause_experiment(
    experiment_id: uuid.UUID,
    actor: CurrentActor,
    db: DbSession,
    notifier: Notifier,
    tasks: BackgroundTasks,
):
    controller = LifecycleController(db, actor)
    experiment = await controller.pause_experiment(experiment_id)
    return await _commit_and_respond(db, controller, experiment, notifier, tasks)


@router.post("/{experiment_id}/resume", response_model=ExperimentResponse)
async def resume_experiment(
    experiment_id: uuid.UUID,
    actor: CurrentActor,
    db: DbSession,
    notifier: Notifier,
    tasks: BackgroundTasks,
):
    controller = LifecycleController(db, actor)
    experiment = await controller.resume_experiment(experiment_id)
    return await _commit_and_respond(db, controller, experiment, notifier, tasks)


@router.post("/{experiment_id}/cancel", response_model=ExperimentResponse)
async def cancel_experiment(
    experiment_id: uuid.UUID,
    actor: CurrentActor,
    db: DbSession,
    notifier: Notifier,
    tasks: BackgroundTasks,
):
    controller = LifecycleController(db, actor)
    experiment = await controller.cancel_experiment(experiment_id)
    return await _commit_and_respond(db, controller, experiment, notifier, tasks)


@router.post("/{experiment_id}/reopen", response_model=ExperimentResponse)
async def reopen_experiment(
    experiment_id: uuid.UUID,
    actor: CurrentActor,
    db: DbSession,
    notifier: Notifier,
    tasks: BackgroundTasks,
):
    controller = LifecycleController(db, actor)
    experiment = await controller.reopen_experiment(experiment_id)
    return await _commit_and_respond(db, controller, experiment, notifier, tasks)


@router.post("/{experiment_id}/conclude", response_model=ExperimentResponse)
async def conclude_experiment(
    experiment_id: uuid.UUID,
    data: ConcludeRequest,
    actor: CurrentActor,
    db: DbSession,
    notifier: Notifier,
    tasks: BackgroundTasks,
):
    """Conclude with a verdict. Needs evidence or at least one reference link."""
    controller = LifecycleController(db, actor)
    experiment = await controller.conclude_experiment(experiment_id, data)
    return await _commit_and_respond(db, controller, experiment, notifier, tasks)


@router.put("/{experiment_id}/validation", response_model=ExperimentResponse)
async def set_validation(
    experiment_id: uuid.UUID,
    data: SetValidationRequest,
    actor: CurrentActor,
    db: DbSession,
    notifier: Notifier,
    tasks: BackgroundTasks,
):
    controller = LifecycleController(db, actor)
    experiment = await controller.set_validation(experiment_id, data.validation)
    return await _commit_and_respond(db, controller, experiment, notifier, tasks)


@router.post("/{experiment_id}/archive", response_model=ExperimentResponse)
async def archive_experiment(
    experiment_id: uuid.UUID,
    actor: CurrentActor,
    db: DbSession,
    notifier: Notifier,
    tasks: BackgroundTasks,
):
    controller = LifecycleController(db, actor)
    experiment = await controller.archive_experiment(experiment_id)
    return await _commit_and_respond(db, controller, experiment, notifier, tasks)


@router.post(
    "/{experiment_id}/duplicate",
    response_model=ExperimentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_experiment(
    experiment_id: uuid.UUID,
    actor: CurrentActor,
    db: DbSession,
    notifier: Notifier,
    tasks: BackgroundTasks,
):
    controller = LifecycleController(db, actor)
    experiment = await controller.duplicate_experiment(experiment_id)
    return await _commit_and_respond(db, controller, experiment, notifier, tasks)


@router.get("/{experiment_id}/comments", response_model=List[CommentResponse])
async def list_comments(experiment_id: uuid.UUID, actor: CurrentActor, db: DbSession):
    rows = await LifecycleController(db, actor).list_comments(experiment_id)
    return [
        CommentResponse(
            id=comment.id,
            experiment_id=comment.experiment_id,
            author_id=comment.author_id,
            author_name=author_name,
            content=comment.content,
            created_at=comment.created_at,
        )
        for comment, author_name in rows
    ]


@router.post(
    "/{experiment_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    experiment_id: uuid.UUID,
    data: CommentCreate,
    actor: CurrentActor,
    db: DbSession,
):
    comment = await LifecycleController(db, actor).add_comment(experiment_id, data.text)
    return CommentResponse(
        id=comment.id,
        experiment_id=comment.experiment_id,
        author_id=comment.author_id,
        author_name=actor.name,
        content=comment.content,
        created_at=comment.created_at,
    )


@router.get("/{experiment_id}/history", response_model=List[AuditEntryResponse])
async def get_history(
    experiment_id: uuid.UUID,
    actor: CurrentActor,
    db: DbSession,
    newest_first: bool = True,
):
    """Audit trail. `newest_first=false` gives the order needed to replay changes."""
    rows = await LifecycleController(db, actor).history(experiment_id, newest_first=newest_first)
    return [
        AuditEntryResponse(
            id=entry.id,
            experiment_id=entry.experiment_id,
            action=enum_value(entry.action),
            changed_field=entry.changed_field,
            previous_value=entry.previous_value,
            new_value=entry.new_value,
            actor_id=entry.actor_id,
            actor_name=actor_name,
            created_at=entry.created_at,
        )
        for entry, actor_name in rows
    ]
