"""
Domain errors raised by the lifecycle engine.

Every command validates fully before writing, so any of these leaves the
store untouched. The HTTP layer maps them to status codes in one handler.
"""

from typing import Optional


class LabError(Exception):
    """Base class for all domain errors."""

    code: str = "lab_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(LabError):
    """A required field is missing or a value is invalid."""

    code = "validation_error"


class PermissionDeniedError(LabError):
    """The acting collaborator lacks the capability for this command."""

    code = "permission_denied"


class InvalidTransitionError(LabError):
    """The requested status change is not in the transition table."""

    code = "invalid_transition"

    def __init__(self, from_status: str, action: str):
        super().__init__(f"Invalid transition: cannot {action} an experiment that is {from_status}")
        self.from_status = from_status
        self.action = action


class EvidenceRequiredError(LabError):
    """Conclude attempted with no evidence and no reference links."""

    code = "evidence_required"

    def __init__(self, message: str = "At least one evidence (image or link) is required to conclude"):
        super().__init__(message)


class NotFoundError(LabError):
    """A referenced record does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(LabError):
    """The record changed since the caller last read it."""

    code = "conflict"


class StorageError(LabError):
    """Object storage upload failed."""

    code = "storage_error"
