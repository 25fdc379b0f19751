"""
Permission resolver for the experiment lab.

Pure functions: capabilities are a function of the actor's role alone, and
ownership-scoped edits compare the actor id with the experiment owner id.
Nothing here touches the database.
"""

import uuid
from dataclasses import dataclass
from typing import Dict, Optional

from growthlab.kernel.errors import PermissionDeniedError
from growthlab.kernel.models.base import enum_value
from growthlab.kernel.models.directory import Collaborator, CollaboratorRole


@dataclass(frozen=True)
class Capabilities:
    """What a role may do."""

    can_create: bool = False
    can_edit_all: bool = False
    can_edit_own: bool = False
    can_archive: bool = False
    can_manage_templates: bool = False


# Role -> capability set
ROLE_CAPABILITIES: Dict[str, Capabilities] = {
    CollaboratorRole.ADMIN.value: Capabilities(
        can_create=True,
        can_edit_all=True,
        can_edit_own=True,
        can_archive=True,
        can_manage_templates=True,
    ),
    CollaboratorRole.MANAGER.value: Capabilities(
        can_create=True,
        can_edit_own=True,
    ),
    CollaboratorRole.VIEWER.value: Capabilities(),
}

NO_CAPABILITIES = Capabilities()


def resolve_capabilities(role: Optional[CollaboratorRole]) -> Capabilities:
    """Return the capability set for a role; unknown roles get nothing."""
    if role is None:
        return NO_CAPABILITIES
    return ROLE_CAPABILITIES.get(enum_value(role), NO_CAPABILITIES)


def can_edit(
    role: Optional[CollaboratorRole],
    actor_id: uuid.UUID,
    owner_id: Optional[uuid.UUID],
) -> bool:
    """
    Check edit rights on one experiment.

    Args:
        role: The acting collaborator's role
        actor_id: The acting collaborator's id
        owner_id: The experiment's owner id

    Returns:
        True if the role edits everything, or edits its own and owns this one
    """
    caps = resolve_capabilities(role)
    if caps.can_edit_all:
        return True
    return caps.can_edit_own and owner_id is not None and actor_id == owner_id


def can_comment(role: Optional[CollaboratorRole]) -> bool:
    caps = resolve_capabilities(role)
    return caps.can_create or caps.can_edit_all


def require_create(actor: Collaborator) -> None:
    if not resolve_capabilities(actor.role).can_create:
        raise PermissionDeniedError("You are not allowed to create experiments")


def require_edit(actor: Collaborator, owner_id: Optional[uuid.UUID]) -> None:
    if not can_edit(actor.role, actor.id, owner_id):
        raise PermissionDeniedError("You are not allowed to edit this experiment")


def require_archive(actor: Collaborator) -> None:
    if not resolve_capabilities(actor.role).can_archive:
        raise PermissionDeniedError("You are not allowed to archive experiments")


def require_comment(actor: Collaborator) -> None:
    if not can_comment(actor.role):
        raise PermissionDeniedError("You are not allowed to comment on experiments")


def require_manage_templates(actor: Collaborator) -> None:
    if not resolve_capabilities(actor.role).can_manage_templates:
        raise PermissionDeniedError("You are not allowed to manage templates")
