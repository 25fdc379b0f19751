"""
Evidence Engine - attachments and object storage.
"""

from growthlab.engines.evidence.evidence_store import EvidenceStore
from growthlab.engines.evidence.storage import HttpObjectStorage, ObjectStorage, evidence_path

__all__ = [
    "EvidenceStore",
    "HttpObjectStorage",
    "ObjectStorage",
    "evidence_path",
]
