"""Persistence access for experiments."""

from growthlab.kernel.repositories.experiment_repository import ExperimentRepository, ExperimentRow

__all__ = [
    "ExperimentRepository",
    "ExperimentRow",
]
