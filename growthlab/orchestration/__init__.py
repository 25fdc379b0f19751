"""Orchestration layer - lifecycle state machine and command controller."""

from growthlab.orchestration.lifecycle import LifecycleController
from growthlab.orchestration.state_machine import (
    LifecycleAction,
    can_transition,
    target_status,
    valid_actions,
)

__all__ = [
    "LifecycleController",
    "LifecycleAction",
    "can_transition",
    "target_status",
    "valid_actions",
]
