"""
Audit log service for the append-only experiment history.

Entries are added to the caller's session; the caller flushes and commits
them together with the change they describe.
"""

import json
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import asc, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.kernel.models.audit_log import AuditAction, AuditEntry
from growthlab.kernel.models.directory import Collaborator


class AuditLog:
    """
    Writer and reader for experiment audit entries.

    Usage:
        audit = AuditLog(session)
        await audit.append(
            experiment_id=experiment.id,
            action=AuditAction.STATUS_CHANGED,
            actor_id=actor.id,
            changed_field="status",
            previous_value="planned",
            new_value="running",
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(
        self,
        experiment_id: uuid.UUID,
        action: AuditAction,
        actor_id: uuid.UUID,
        changed_field: Optional[str] = None,
        previous_value: Any = None,
        new_value: Any = None,
    ) -> AuditEntry:
        """
        Append one entry to the history of an experiment.

        Args:
            experiment_id: The experiment the action was taken against
            action: The kind of action
            actor_id: The collaborator who took it
            changed_field: Name of the changed field(s), comma-joined
            previous_value: Value before the change (serialized to text)
            new_value: Value after the change (serialized to text)

        Returns:
            The pending AuditEntry
        """
        entry = AuditEntry(
            experiment_id=experiment_id,
            action=action,
            actor_id=actor_id,
            changed_field=changed_field,
            previous_value=serialize_value(previous_value),
            new_value=serialize_value(new_value),
        )
        self.session.add(entry)
        # Note: Caller should flush/commit after all operations
        return entry

    async def history(
        self,
        experiment_id: uuid.UUID,
        newest_first: bool = True,
        actions: Optional[List[AuditAction]] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AuditEntry]:
        """
        Get the audit history of an experiment.

        Args:
            experiment_id: The experiment id
            newest_first: Display order; False gives reconstruction order
            actions: Optional filter on action kinds
            limit: Maximum number of entries
            offset: Number of entries to skip

        Returns:
            List of AuditEntry records
        """
        rows = await self.history_with_actors(
            experiment_id,
            newest_first=newest_first,
            actions=actions,
            limit=limit,
            offset=offset,
        )
        return [entry for entry, _ in rows]

    async def history_with_actors(
        self,
        experiment_id: uuid.UUID,
        newest_first: bool = True,
        actions: Optional[List[AuditAction]] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Tuple[AuditEntry, Optional[str]]]:
        """Same as `history`, paired with the actor's display name."""
        order = desc if newest_first else asc
        query = (
            select(AuditEntry, Collaborator.name)
            .outerjoin(Collaborator, Collaborator.id == AuditEntry.actor_id)
            .where(AuditEntry.experiment_id == experiment_id)
        )
        if actions:
            query = query.where(AuditEntry.action.in_([a.value for a in actions]))
        query = query.order_by(order(AuditEntry.created_at)).offset(offset).limit(limit)

        result = await self.session.execute(query)
        return [(entry, name) for entry, name in result.all()]

    async def count(
        self,
        experiment_id: uuid.UUID,
        action: Optional[AuditAction] = None,
    ) -> int:
        query = select(func.count(AuditEntry.id)).where(AuditEntry.experiment_id == experiment_id)
        if action:
            query = query.where(AuditEntry.action == action.value)
        result = await self.session.execute(query)
        return result.scalar_one()


def serialize_value(value: Any) -> Optional[str]:
    """Serialize an audited value to text; dicts and lists become JSON."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(_jsonable(value), ensure_ascii=False, sort_keys=True)
    return str(_jsonable(value))


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _jsonable(v) for key, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def serialize_changes(changes: Dict[str, Tuple[Any, Any]]) -> Tuple[str, str, str]:
    """
    Split a {field: (old, new)} map into the three audit columns.

    Returns:
        (comma-joined field names, JSON of previous values, JSON of new values)
    """
    fields = sorted(changes)
    previous = {name: changes[name][0] for name in fields}
    new = {name: changes[name][1] for name in fields}
    return ",".join(fields), serialize_value(previous), serialize_value(new)
