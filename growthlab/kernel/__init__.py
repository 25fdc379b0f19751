"""
Kernel Layer

Models, domain errors, permissions, identity and the audit trail that every
experiment command is built on.

Invariants:
- Every successful mutation appends exactly one audit entry in the same unit
- Audit entries are never updated or deleted
- Permission checks run before any record is modified
"""

from growthlab.kernel.errors import (
    LabError,
    ValidationError,
    PermissionDeniedError,
    InvalidTransitionError,
    EvidenceRequiredError,
    NotFoundError,
    ConflictError,
    StorageError,
)

__all__ = [
    "LabError",
    "ValidationError",
    "PermissionDeniedError",
    "InvalidTransitionError",
    "EvidenceRequiredError",
    "NotFoundError",
    "ConflictError",
    "StorageError",
]
