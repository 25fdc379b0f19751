"""
Experiment repository - persistence and query building over AsyncSession.

Reads join the directory tables explicitly so list rows carry owner and
client names without lazy loading.
"""

import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import Select, and_, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.kernel.errors import NotFoundError
from growthlab.kernel.models.directory import Client, Collaborator
from growthlab.kernel.models.experiment import (
    Comment,
    Evidence,
    Experiment,
    ExperimentStatus,
    STATUS_ORDER,
    ValidationOutcome,
)
from growthlab.schemas.experiment import (
    ExperimentFilters,
    QuickFilter,
    SortDirection,
    SortKey,
)

# (experiment, owner name, client name)
ExperimentRow = Tuple[Experiment, Optional[str], Optional[str]]

_STATUS_RANK = case(
    {status.value: rank for rank, status in enumerate(STATUS_ORDER)},
    value=Experiment.status,
    else_=len(STATUS_ORDER),
)

_SORT_COLUMNS = {
    SortKey.CREATED_AT: Experiment.created_at,
    SortKey.NAME: Experiment.name,
    SortKey.STATUS: _STATUS_RANK,
    SortKey.CLIENT: Client.name,
    SortKey.FUNNEL: Experiment.funnel,
    SortKey.TYPE: Experiment.experiment_type,
    SortKey.OWNER: Collaborator.name,
    SortKey.VALIDATION: Experiment.validation,
}


LIKE_ESCAPE = "\\"


def escape_like(text: str) -> str:
    """Make `%` and `_` in user text match literally."""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class ExperimentRepository:
    """Loads, filters and counts experiments and their attachments."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, experiment_id: uuid.UUID) -> Experiment:
        """Load one experiment or raise NotFoundError."""
        experiment = await self.session.get(Experiment, experiment_id)
        if experiment is None:
            raise NotFoundError("Experiment", experiment_id)
        return experiment

    async def get_with_names(self, experiment_id: uuid.UUID) -> ExperimentRow:
        result = await self.session.execute(
            self._base_query().where(Experiment.id == experiment_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Experiment", experiment_id)
        return row[0], row[1], row[2]

    def add(self, experiment: Experiment) -> Experiment:
        self.session.add(experiment)
        return experiment

    async def count_evidence(self, experiment_id: uuid.UUID) -> int:
        """Live evidence count, read at call time for the conclude gate."""
        result = await self.session.execute(
            select(func.count(Evidence.id)).where(Evidence.experiment_id == experiment_id)
        )
        return result.scalar_one()

    async def list_comments(self, experiment_id: uuid.UUID) -> List[Tuple[Comment, Optional[str]]]:
        """Comments newest first, paired with author names."""
        result = await self.session.execute(
            select(Comment, Collaborator.name)
            .outerjoin(Collaborator, Collaborator.id == Comment.author_id)
            .where(Comment.experiment_id == experiment_id)
            .order_by(Comment.created_at.desc())
        )
        return [(comment, name) for comment, name in result.all()]

    async def list_page(
        self,
        filters: ExperimentFilters,
        actor_id: Optional[uuid.UUID] = None,
        sort: SortKey = SortKey.CREATED_AT,
        direction: Optional[SortDirection] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[ExperimentRow], int]:
        """
        Filter, sort and paginate experiments.

        Args:
            filters: Explicit filter values
            actor_id: The caller, used by the "mine" quick filter
            sort: Column to sort on
            direction: asc/desc; created_at defaults to desc, the rest to asc
            page: 1-based page number
            page_size: Rows per page

        Returns:
            Tuple of (rows for the page, total matching rows)
        """
        conditions = self._conditions(filters, actor_id)

        count_query = (
            select(func.count(Experiment.id))
            .select_from(Experiment)
            .outerjoin(Client, Client.id == Experiment.client_id)
            .where(*conditions)
        )
        total = (await self.session.execute(count_query)).scalar_one()

        if direction is None:
            direction = SortDirection.DESC if sort == SortKey.CREATED_AT else SortDirection.ASC
        column = _SORT_COLUMNS[sort]
        ordering = [column.desc() if direction == SortDirection.DESC else column.asc()]
        if sort != SortKey.CREATED_AT:
            ordering.append(Experiment.created_at.desc())
        ordering.append(Experiment.id)

        query = (
            self._base_query()
            .where(*conditions)
            .order_by(*ordering)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.session.execute(query)
        return [(row[0], row[1], row[2]) for row in result.all()], total

    async def fetch_all(
        self,
        filters: ExperimentFilters,
        actor_id: Optional[uuid.UUID] = None,
    ) -> List[ExperimentRow]:
        """Every matching row, unpaginated, for aggregation."""
        result = await self.session.execute(
            self._base_query().where(*self._conditions(filters, actor_id))
        )
        return [(row[0], row[1], row[2]) for row in result.all()]

    async def fetch_running(self, owner_id: Optional[uuid.UUID] = None) -> List[ExperimentRow]:
        """Running, non-archived experiments, optionally restricted to one owner."""
        query = self._base_query().where(
            Experiment.status == ExperimentStatus.RUNNING.value,
            Experiment.archived.is_(False),
        )
        if owner_id is not None:
            query = query.where(Experiment.owner_id == owner_id)
        result = await self.session.execute(query)
        return [(row[0], row[1], row[2]) for row in result.all()]

    def _base_query(self) -> Select:
        return (
            select(
                Experiment,
                Collaborator.name.label("owner_name"),
                Client.name.label("client_name"),
            )
            .outerjoin(Collaborator, Collaborator.id == Experiment.owner_id)
            .outerjoin(Client, Client.id == Experiment.client_id)
        )

    def _conditions(
        self,
        filters: ExperimentFilters,
        actor_id: Optional[uuid.UUID],
    ) -> Sequence:
        conditions = []

        if not filters.include_archived:
            conditions.append(Experiment.archived.is_(False))

        if filters.search and filters.search.strip():
            pattern = f"%{escape_like(filters.search.strip())}%"
            conditions.append(
                or_(
                    Experiment.name.ilike(pattern, escape=LIKE_ESCAPE),
                    Experiment.hypothesis.ilike(pattern, escape=LIKE_ESCAPE),
                    Experiment.funnel.ilike(pattern, escape=LIKE_ESCAPE),
                    Client.name.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )

        if filters.client_id:
            conditions.append(Experiment.client_id == filters.client_id)
        if filters.funnel:
            conditions.append(Experiment.funnel == filters.funnel)
        if filters.owner_id:
            conditions.append(Experiment.owner_id == filters.owner_id)
        if filters.experiment_type:
            conditions.append(Experiment.experiment_type == filters.experiment_type.value)
        if filters.channel:
            conditions.append(Experiment.channel == filters.channel.value)
        if filters.status:
            conditions.append(Experiment.status == filters.status.value)
        if filters.validation:
            conditions.append(Experiment.validation == filters.validation.value)
        if filters.created_from:
            conditions.append(Experiment.created_at >= _day_start(filters.created_from))
        if filters.created_to:
            conditions.append(Experiment.created_at < _day_start(filters.created_to + timedelta(days=1)))

        if filters.quick_filter == QuickFilter.MINE and actor_id is not None:
            conditions.append(Experiment.owner_id == actor_id)
        elif filters.quick_filter == QuickFilter.WINNERS:
            conditions.append(
                and_(
                    Experiment.status == ExperimentStatus.CONCLUDED.value,
                    Experiment.validation == ValidationOutcome.GOOD.value,
                )
            )

        return conditions
