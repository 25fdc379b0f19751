"""Unit tests for the lifecycle transition table."""

import pytest

from growthlab.kernel.errors import InvalidTransitionError
from growthlab.kernel.models.experiment import ExperimentStatus
from growthlab.orchestration.state_machine import (
    LifecycleAction,
    can_transition,
    target_status,
    valid_actions,
)


ALLOWED = {
    (ExperimentStatus.PLANNED, LifecycleAction.START): ExperimentStatus.RUNNING,
    (ExperimentStatus.PLANNED, LifecycleAction.CANCEL): ExperimentStatus.CANCELED,
    (ExperimentStatus.RUNNING, LifecycleAction.PAUSE): ExperimentStatus.PAUSED,
    (ExperimentStatus.RUNNING, LifecycleAction.CONCLUDE): ExperimentStatus.CONCLUDED,
    (ExperimentStatus.RUNNING, LifecycleAction.CANCEL): ExperimentStatus.CANCELED,
    (ExperimentStatus.PAUSED, LifecycleAction.RESUME): ExperimentStatus.RUNNING,
    (ExperimentStatus.PAUSED, LifecycleAction.CANCEL): ExperimentStatus.CANCELED,
    (ExperimentStatus.CONCLUDED, LifecycleAction.REOPEN): ExperimentStatus.RUNNING,
    (ExperimentStatus.CANCELED, LifecycleAction.REOPEN): ExperimentStatus.RUNNING,
}


class TestTransitionTable:
    """Tests for the (status, action) table."""

    @pytest.mark.parametrize("pair,expected", list(ALLOWED.items()))
    def test_allowed_transitions(self, pair, expected):
        from_status, action = pair
        assert can_transition(from_status, action)
        assert target_status(from_status, action) == expected

    def test_every_other_pair_is_rejected(self):
        """Anything outside the table raises InvalidTransitionError."""
        for status in ExperimentStatus:
            for action in LifecycleAction:
                if (status, action) in ALLOWED:
                    continue
                assert not can_transition(status, action)
                with pytest.raises(InvalidTransitionError):
                    target_status(status, action)

    def test_accepts_plain_strings(self):
        """SQLite hands statuses back as str."""
        assert target_status("running", LifecycleAction.PAUSE) == ExperimentStatus.PAUSED

    def test_error_carries_context(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            target_status(ExperimentStatus.PLANNED, LifecycleAction.CONCLUDE)
        assert exc_info.value.from_status == "planned"
        assert exc_info.value.action == "conclude"
        assert exc_info.value.code == "invalid_transition"

    def test_valid_actions_from_running(self):
        assert valid_actions(ExperimentStatus.RUNNING) == [
            LifecycleAction.PAUSE,
            LifecycleAction.CONCLUDE,
            LifecycleAction.CANCEL,
        ]

    def test_terminal_states_only_reopen(self):
        assert valid_actions(ExperimentStatus.CONCLUDED) == [LifecycleAction.REOPEN]
        assert valid_actions(ExperimentStatus.CANCELED) == [LifecycleAction.REOPEN]
