"""
Reporting aggregator - read-only statistics over experiments.

Recomputed on every call from the same filters the list uses. `build_report`
is pure so the arithmetic can be tested without a database.
"""

import math
import uuid
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.config import get_settings
from growthlab.kernel.models.base import enum_value
from growthlab.kernel.models.experiment import ExperimentStatus, ValidationOutcome
from growthlab.kernel.repositories import ExperimentRepository, ExperimentRow
from growthlab.schemas.experiment import ExperimentFilters
from growthlab.schemas.report import CountBucket, ReportResponse

NO_CLIENT = "No client"
NO_OWNER = "No owner"

RATE_DECIMALS = 4


def _rate(numerator: int, denominator: int) -> float:
    if denominator == 0:
        return 0.0
    return round(numerator / denominator, RATE_DECIMALS)


def _top(keyed: Iterable[Tuple[Optional[uuid.UUID], str]], limit: int) -> List[CountBucket]:
    """
    Count rows per id; highest count first, ties by label.

    Two owners or clients sharing a name stay separate buckets.
    """
    counts: Counter = Counter()
    labels: Dict[Optional[uuid.UUID], str] = {}
    for key, label in keyed:
        counts[key] += 1
        labels[key] = label
    ranked = sorted(counts.items(), key=lambda item: (-item[1], labels[item[0]], str(item[0])))
    return [
        CountBucket(id=key, label=labels[key], count=count)
        for key, count in ranked[:limit]
    ]


def build_report(rows: List[ExperimentRow], top_n: int = 10) -> ReportResponse:
    """
    Aggregate experiment rows into report statistics.

    Args:
        rows: (experiment, owner name, client name) tuples, already filtered
        top_n: Size of the client and owner rankings

    Returns:
        ReportResponse; every rate is 0 when its denominator is 0
    """
    experiments = [row[0] for row in rows]
    total = len(experiments)

    by_status = Counter(enum_value(e.status) for e in experiments)
    concluded = [e for e in experiments if enum_value(e.status) == ExperimentStatus.CONCLUDED.value]
    by_validation = Counter(enum_value(e.validation) for e in concluded)
    wins = by_validation.get(ValidationOutcome.GOOD.value, 0)

    durations = [
        (e.end_date - e.start_date).days
        for e in experiments
        if e.start_date is not None and e.end_date is not None
    ]
    # Half-up, so a 2.5 day mean reports as 3
    avg_duration = math.floor(sum(durations) / len(durations) + 0.5) if durations else 0

    return ReportResponse(
        total=total,
        by_status={status.value: by_status.get(status.value, 0) for status in ExperimentStatus},
        by_validation={
            outcome.value: by_validation.get(outcome.value, 0)
            for outcome in ValidationOutcome
            if outcome != ValidationOutcome.IN_TEST
        },
        by_type=dict(Counter(enum_value(e.experiment_type) for e in experiments)),
        by_channel=dict(Counter(enum_value(e.channel) for e in experiments)),
        win_rate=_rate(wins, len(concluded)),
        completion_rate=_rate(len(concluded), total),
        avg_duration_days=avg_duration,
        top_clients=_top(
            ((e.client_id, client_name or NO_CLIENT) for e, _, client_name in rows), top_n
        ),
        top_owners=_top(
            ((e.owner_id, owner_name or NO_OWNER) for e, owner_name, _ in rows), top_n
        ),
    )


class ReportingService:
    """Runs the aggregator over the repository."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = ExperimentRepository(session)

    async def get_report(
        self,
        filters: Optional[ExperimentFilters] = None,
        actor_id: Optional[uuid.UUID] = None,
    ) -> ReportResponse:
        """Statistics over non-archived experiments unless the filters say otherwise."""
        rows = await self.repo.fetch_all(filters or ExperimentFilters(), actor_id)
        return build_report(rows, top_n=get_settings().report_top_n)
