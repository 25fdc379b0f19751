"""
Permission Core - role capabilities and ownership-scoped edits.
"""

from growthlab.kernel.permissions.permission_service import (
    Capabilities,
    ROLE_CAPABILITIES,
    can_comment,
    can_edit,
    require_archive,
    require_comment,
    require_create,
    require_edit,
    require_manage_templates,
    resolve_capabilities,
)

__all__ = [
    "Capabilities",
    "ROLE_CAPABILITIES",
    "can_comment",
    "can_edit",
    "require_archive",
    "require_comment",
    "require_create",
    "require_edit",
    "require_manage_templates",
    "resolve_capabilities",
]
