"""
Append-only audit trail for experiments.
"""

from growthlab.kernel.audit.audit_log import AuditLog, serialize_changes, serialize_value

__all__ = [
    "AuditLog",
    "serialize_changes",
    "serialize_value",
]
