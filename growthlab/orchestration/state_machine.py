"""
Transition table for the experiment lifecycle.

Pure lookups only. The lifecycle controller applies side effects and writes
the audit entry.
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

from growthlab.kernel.errors import InvalidTransitionError
from growthlab.kernel.models.base import enum_value
from growthlab.kernel.models.experiment import ExperimentStatus


class LifecycleAction(str, Enum):
    """Commands that move an experiment between statuses."""
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    CONCLUDE = "conclude"
    CANCEL = "cancel"
    REOPEN = "reopen"


# action -> (statuses it may be applied from, resulting status)
_TRANSITIONS: Dict[LifecycleAction, Tuple[FrozenSet[str], ExperimentStatus]] = {
    LifecycleAction.START: (
        frozenset({ExperimentStatus.PLANNED.value}),
        ExperimentStatus.RUNNING,
    ),
    LifecycleAction.PAUSE: (
        frozenset({ExperimentStatus.RUNNING.value}),
        ExperimentStatus.PAUSED,
    ),
    LifecycleAction.RESUME: (
        frozenset({ExperimentStatus.PAUSED.value}),
        ExperimentStatus.RUNNING,
    ),
    LifecycleAction.CONCLUDE: (
        frozenset({ExperimentStatus.RUNNING.value}),
        ExperimentStatus.CONCLUDED,
    ),
    LifecycleAction.CANCEL: (
        frozenset({
            ExperimentStatus.PLANNED.value,
            ExperimentStatus.RUNNING.value,
            ExperimentStatus.PAUSED.value,
        }),
        ExperimentStatus.CANCELED,
    ),
    LifecycleAction.REOPEN: (
        frozenset({
            ExperimentStatus.CONCLUDED.value,
            ExperimentStatus.CANCELED.value,
        }),
        ExperimentStatus.RUNNING,
    ),
}


def can_transition(from_status, action: LifecycleAction) -> bool:
    """Check if the action is allowed from the given status."""
    sources, _ = _TRANSITIONS[action]
    return enum_value(from_status) in sources


def valid_actions(from_status) -> List[LifecycleAction]:
    """Return the actions allowed from the given status, in table order."""
    return [action for action in _TRANSITIONS if can_transition(from_status, action)]


def target_status(from_status, action: LifecycleAction) -> ExperimentStatus:
    """
    Resolve the status an action leads to.

    Raises:
        InvalidTransitionError: If the (status, action) pair is not in the table
    """
    if not can_transition(from_status, action):
        raise InvalidTransitionError(enum_value(from_status), enum_value(action))
    return _TRANSITIONS[action][1]
