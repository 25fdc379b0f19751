"""
Lifecycle controller - every command that creates or changes an experiment.

Each command authorizes, validates, writes the record, appends exactly one
audit entry and flushes, in that order. Nothing is written before the last
check passes, and the session owner commits or rolls back the whole unit.
Webhook events are only recorded here; they go out once the unit commits.
"""

import uuid
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from growthlab.engines.templates import TemplateService, apply_template
from growthlab.kernel.audit import AuditLog, serialize_changes
from growthlab.kernel.errors import (
    ConflictError,
    EvidenceRequiredError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from growthlab.kernel.identity.directory import ClientDirectory, CollaboratorDirectory
from growthlab.kernel.models.audit_log import AuditAction, AuditEntry
from growthlab.kernel.models.base import enum_value, generate_uuid
from growthlab.kernel.models.directory import Collaborator
from growthlab.kernel.models.experiment import (
    Comment,
    Experiment,
    ExperimentStatus,
    ValidationOutcome,
)
from growthlab.kernel.permissions import (
    require_archive,
    require_comment,
    require_create,
    require_edit,
)
from growthlab.kernel.repositories import ExperimentRepository
from growthlab.logging_config import get_logger
from growthlab.orchestration.state_machine import LifecycleAction, target_status
from growthlab.schemas.experiment import ConcludeRequest, ExperimentDraft, ExperimentUpdate

logger = get_logger(__name__)

CONCLUSION_PREFIX = "[Conclusion] "
DUPLICATE_SUFFIX = " (cópia)"

# Fields copied onto a duplicate
DUPLICATED_FIELDS = (
    "owner_id",
    "experiment_type",
    "channel",
    "client_id",
    "funnel",
    "hypothesis",
    "change_description",
    "target_metric",
    "target_value",
)

# Editable fields that may never be cleared
REQUIRED_FIELDS = ("name", "owner_id", "experiment_type", "channel")

# Free-text fields where a blank string means "clear"
_TEXT_FIELDS = (
    "funnel",
    "hypothesis",
    "change_description",
    "team_observation",
    "notes",
    "learnings",
    "next_experiments",
    "ad_link",
    "campaign_link",
    "experiment_link",
)

_VERDICTS = (
    ValidationOutcome.GOOD.value,
    ValidationOutcome.BAD.value,
    ValidationOutcome.INCONCLUSIVE.value,
)


def _comparable(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class LifecycleController:
    """
    Orchestrates experiment commands for one acting collaborator.

    Usage:
        controller = LifecycleController(session, actor)
        experiment = await controller.create_experiment({...})
        await controller.start_experiment(experiment.id)
        await session.commit()
        for event, payload in controller.drain_events():
            await notifier.notify(event, payload)
    """

    def __init__(
        self,
        session: AsyncSession,
        actor: Collaborator,
        today: Optional[Callable[[], date]] = None,
    ):
        self.session = session
        self.actor = actor
        # (event, payload) pairs, published by the session owner after commit
        self.events: List[Tuple[str, Dict[str, Any]]] = []
        self.today = today or date.today
        self.repo = ExperimentRepository(session)
        self.audit = AuditLog(session)
        self.collaborators = CollaboratorDirectory(session)
        self.clients = ClientDirectory(session)

    # ------------------------------------------------------------------
    # Creation and edits
    # ------------------------------------------------------------------

    async def create_experiment(self, data: Union[ExperimentDraft, Dict[str, Any]]) -> Experiment:
        """
        Create a planned experiment.

        Args:
            data: Draft fields; `template_id` merges that preset in first

        Returns:
            The new Experiment (status planned, validation in_test)

        Raises:
            PermissionDeniedError: Actor cannot create
            ValidationError: Missing name, owner, type or channel, or unknown references
        """
        require_create(self.actor)
        draft = ExperimentDraft.build(data)

        if draft.template_id is not None:
            try:
                template = await TemplateService(self.session).get(draft.template_id)
            except NotFoundError as e:
                raise ValidationError("Unknown template", field="template_id") from e
            if not template.active:
                raise ValidationError("Template is inactive", field="template_id")
            draft = apply_template(draft, template)

        draft.require_complete()
        await self._check_references(draft.owner_id, draft.client_id)

        fields = draft.model_dump()
        experiment = Experiment(
            id=generate_uuid(),
            **fields,
            status=ExperimentStatus.PLANNED,
            validation=ValidationOutcome.IN_TEST,
            created_by=self.actor.id,
            archived=False,
        )
        self.repo.add(experiment)
        await self.audit.append(
            experiment_id=experiment.id,
            action=AuditAction.CREATED,
            actor_id=self.actor.id,
            new_value=experiment.name,
        )
        await self._flush()

        logger.info(
            "Experiment created",
            extra={"experiment_id": str(experiment.id), "actor_id": str(self.actor.id)},
        )
        self._record_event(AuditAction.CREATED, experiment)
        return experiment

    async def update_experiment(
        self,
        experiment_id: uuid.UUID,
        partial: Union[ExperimentUpdate, Dict[str, Any]],
    ) -> Experiment:
        """
        Apply a partial edit.

        Status, validation and the archived flag are rejected here. An edit
        that changes nothing writes nothing.

        Raises:
            PermissionDeniedError: Actor cannot edit this experiment
            NotFoundError: No such experiment
            ConflictError: `expected_version` is stale or a concurrent save won
            ValidationError: A required field was cleared or a reference is unknown
        """
        update = ExperimentUpdate.build(partial)
        experiment = await self.repo.get(experiment_id)
        require_edit(self.actor, experiment.owner_id)

        if update.expected_version is not None and update.expected_version != experiment.version:
            raise ConflictError(
                f"Experiment was modified (version {experiment.version}, expected {update.expected_version})"
            )

        values = update.changes()
        for name in REQUIRED_FIELDS:
            if name in values and (values[name] is None or (isinstance(values[name], str) and not values[name].strip())):
                raise ValidationError(f"{name} is required", field=name)
        if "name" in values:
            values["name"] = values["name"].strip()
        for name in _TEXT_FIELDS:
            if name in values and isinstance(values[name], str) and not values[name].strip():
                values[name] = None

        changes: Dict[str, Tuple[Any, Any]] = {}
        for name, new in values.items():
            old = getattr(experiment, name)
            if _comparable(old) != _comparable(new):
                changes[name] = (old, new)

        if not changes:
            return experiment

        if "owner_id" in changes or "client_id" in changes:
            await self._check_references(values.get("owner_id"), values.get("client_id"))

        for name, (_, new) in changes.items():
            setattr(experiment, name, new)

        changed_field, previous, new_values = serialize_changes(changes)
        await self.audit.append(
            experiment_id=experiment.id,
            action=AuditAction.EDITED,
            actor_id=self.actor.id,
            changed_field=changed_field,
            previous_value=previous,
            new_value=new_values,
        )
        await self._flush()

        logger.info(
            "Experiment edited",
            extra={"experiment_id": str(experiment.id), "fields": changed_field},
        )
        self._record_event(AuditAction.EDITED, experiment)
        return experiment

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    async def start_experiment(self, experiment_id: uuid.UUID) -> Experiment:
        experiment, move = await self._begin_transition(experiment_id, LifecycleAction.START)
        if experiment.start_date is None:
            experiment.start_date = self.today()
        return await self._finish_transition(experiment, move)

    async def pause_experiment(self, experiment_id: uuid.UUID) -> Experiment:
        experiment, move = await self._begin_transition(experiment_id, LifecycleAction.PAUSE)
        return await self._finish_transition(experiment, move)

    async def resume_experiment(self, experiment_id: uuid.UUID) -> Experiment:
        experiment, move = await self._begin_transition(experiment_id, LifecycleAction.RESUME)
        return await self._finish_transition(experiment, move)

    async def cancel_experiment(self, experiment_id: uuid.UUID) -> Experiment:
        experiment, move = await self._begin_transition(experiment_id, LifecycleAction.CANCEL)
        experiment.end_date = self.today()
        return await self._finish_transition(experiment, move)

    async def reopen_experiment(self, experiment_id: uuid.UUID) -> Experiment:
        """Back to running; the verdict and end date are always cleared."""
        experiment, move = await self._begin_transition(experiment_id, LifecycleAction.REOPEN)
        experiment.end_date = None
        experiment.validation = ValidationOutcome.IN_TEST
        return await self._finish_transition(experiment, move)

    async def conclude_experiment(
        self,
        experiment_id: uuid.UUID,
        request: Union[ConcludeRequest, Dict[str, Any]],
    ) -> Experiment:
        """
        Conclude a running experiment with a verdict.

        The verdict, end date, optional observed value and learnings, the
        `[Conclusion]` comment and the status audit entry are flushed as one
        unit.

        Raises:
            PermissionDeniedError: Actor cannot edit this experiment
            InvalidTransitionError: Experiment is not running
            ValidationError: No verdict or no result description
            EvidenceRequiredError: No evidence rows and every reference link blank
        """
        if not isinstance(request, ConcludeRequest):
            try:
                request = ConcludeRequest.model_validate(request)
            except ValueError as e:
                raise ValidationError(f"Invalid conclusion: {e}") from e

        experiment, move = await self._begin_transition(experiment_id, LifecycleAction.CONCLUDE)

        if enum_value(request.validation) not in _VERDICTS:
            raise ValidationError("A verdict (good, bad or inconclusive) is required", field="validation")
        description = (request.result_description or "").strip()
        if not description:
            raise ValidationError("Result description is required", field="result_description")

        # Evidence gate, read live at call time
        evidence_count = await self.repo.count_evidence(experiment.id)
        if evidence_count == 0 and not experiment.has_reference_link():
            raise EvidenceRequiredError()

        experiment.validation = request.validation
        experiment.end_date = self.today()
        if request.observed_value is not None:
            experiment.observed_value = request.observed_value
        if request.learnings is not None and request.learnings.strip():
            experiment.learnings = request.learnings.strip()

        self.session.add(
            Comment(
                id=generate_uuid(),
                experiment_id=experiment.id,
                author_id=self.actor.id,
                content=CONCLUSION_PREFIX + description,
            )
        )
        return await self._finish_transition(experiment, move)

    async def set_validation(
        self,
        experiment_id: uuid.UUID,
        outcome: ValidationOutcome,
    ) -> Experiment:
        """
        Change the verdict of a concluded experiment.

        Raises:
            InvalidTransitionError: Experiment is not concluded
            ValidationError: Outcome is in_test
        """
        experiment = await self.repo.get(experiment_id)
        require_edit(self.actor, experiment.owner_id)

        current_status = enum_value(experiment.status)
        if current_status != ExperimentStatus.CONCLUDED.value:
            raise InvalidTransitionError(current_status, "set validation on")
        outcome = ValidationOutcome(enum_value(outcome))
        if outcome.value not in _VERDICTS:
            raise ValidationError("A concluded experiment needs a verdict", field="validation")

        previous = enum_value(experiment.validation)
        if previous == outcome.value:
            return experiment

        experiment.validation = outcome
        await self.audit.append(
            experiment_id=experiment.id,
            action=AuditAction.VALIDATION_CHANGED,
            actor_id=self.actor.id,
            changed_field="validation",
            previous_value=previous,
            new_value=outcome.value,
        )
        await self._flush()
        self._record_event(AuditAction.VALIDATION_CHANGED, experiment)
        return experiment

    # ------------------------------------------------------------------
    # Archive, duplicate, comments
    # ------------------------------------------------------------------

    async def archive_experiment(self, experiment_id: uuid.UUID) -> Experiment:
        """Hide an experiment from default listings and reports. Rows are never hard-deleted."""
        require_archive(self.actor)
        experiment = await self.repo.get(experiment_id)
        if experiment.archived:
            return experiment

        experiment.archived = True
        await self.audit.append(
            experiment_id=experiment.id,
            action=AuditAction.ARCHIVED,
            actor_id=self.actor.id,
            changed_field="archived",
            previous_value="false",
            new_value="true",
        )
        await self._flush()

        logger.info("Experiment archived", extra={"experiment_id": str(experiment.id)})
        self._record_event(AuditAction.ARCHIVED, experiment)
        return experiment

    async def duplicate_experiment(self, experiment_id: uuid.UUID) -> Experiment:
        """
        Copy an experiment's plan into a fresh planned experiment.

        Evidence, comments, results and history stay with the source.
        """
        require_create(self.actor)
        source = await self.repo.get(experiment_id)

        copy = Experiment(
            id=generate_uuid(),
            name=f"{source.name}{DUPLICATE_SUFFIX}"[:500],
            status=ExperimentStatus.PLANNED,
            validation=ValidationOutcome.IN_TEST,
            created_by=self.actor.id,
            archived=False,
            **{name: getattr(source, name) for name in DUPLICATED_FIELDS},
        )
        self.repo.add(copy)
        await self.audit.append(
            experiment_id=copy.id,
            action=AuditAction.CREATED,
            actor_id=self.actor.id,
            changed_field="duplicated_from",
            new_value=str(source.id),
        )
        await self._flush()

        logger.info(
            "Experiment duplicated",
            extra={"experiment_id": str(copy.id), "source_id": str(source.id)},
        )
        self._record_event(AuditAction.CREATED, copy)
        return copy

    async def add_comment(self, experiment_id: uuid.UUID, text: str) -> Comment:
        require_comment(self.actor)
        content = (text or "").strip()
        if not content:
            raise ValidationError("Comment text is required", field="text")
        experiment = await self.repo.get(experiment_id)

        comment = Comment(
            id=generate_uuid(),
            experiment_id=experiment.id,
            author_id=self.actor.id,
            content=content,
        )
        self.session.add(comment)
        await self.audit.append(
            experiment_id=experiment.id,
            action=AuditAction.COMMENT_ADDED,
            actor_id=self.actor.id,
            new_value=content,
        )
        await self._flush()
        return comment

    async def list_comments(self, experiment_id: uuid.UUID) -> List[Tuple[Comment, Optional[str]]]:
        """Comments newest first with author names."""
        await self.repo.get(experiment_id)
        return await self.repo.list_comments(experiment_id)

    async def history(
        self,
        experiment_id: uuid.UUID,
        newest_first: bool = True,
    ) -> List[Tuple[AuditEntry, Optional[str]]]:
        """Audit entries with actor names; oldest first reconstructs the record's story."""
        await self.repo.get(experiment_id)
        return await self.audit.history_with_actors(experiment_id, newest_first=newest_first)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _begin_transition(
        self,
        experiment_id: uuid.UUID,
        action: LifecycleAction,
    ) -> Tuple[Experiment, Tuple[str, ExperimentStatus]]:
        """Load, authorize and check the table. Returns the experiment and (from, to)."""
        experiment = await self.repo.get(experiment_id)
        require_edit(self.actor, experiment.owner_id)
        from_status = enum_value(experiment.status)
        return experiment, (from_status, target_status(from_status, action))

    async def _finish_transition(
        self,
        experiment: Experiment,
        move: Tuple[str, ExperimentStatus],
    ) -> Experiment:
        from_status, to_status = move
        experiment.status = to_status
        await self.audit.append(
            experiment_id=experiment.id,
            action=AuditAction.STATUS_CHANGED,
            actor_id=self.actor.id,
            changed_field="status",
            previous_value=from_status,
            new_value=to_status.value,
        )
        await self._flush()

        logger.info(
            "Experiment %s -> %s",
            from_status,
            to_status.value,
            extra={"experiment_id": str(experiment.id), "actor_id": str(self.actor.id)},
        )
        self._record_event(AuditAction.STATUS_CHANGED, experiment, previous_status=from_status)
        return experiment

    async def _check_references(
        self,
        owner_id: Optional[uuid.UUID],
        client_id: Optional[uuid.UUID],
    ) -> None:
        if owner_id is not None and not await self.collaborators.exists(owner_id):
            raise ValidationError("Unknown owner", field="owner_id")
        if client_id is not None and await self.clients.get(client_id) is None:
            raise ValidationError("Unknown client", field="client_id")

    async def _flush(self) -> None:
        try:
            await self.session.flush()
        except StaleDataError as e:
            raise ConflictError("Experiment was modified by someone else; reload and retry") from e

    def drain_events(self) -> List[Tuple[str, Dict[str, Any]]]:
        """Hand over the recorded events and forget them."""
        events, self.events = self.events, []
        return events

    def _record_event(self, action: AuditAction, experiment: Experiment, **extra: Any) -> None:
        payload = {
            "experiment_id": str(experiment.id),
            "name": experiment.name,
            "status": enum_value(experiment.status),
            "validation": enum_value(experiment.validation),
            "actor_id": str(self.actor.id),
            **extra,
        }
        self.events.append((action.value, payload))
