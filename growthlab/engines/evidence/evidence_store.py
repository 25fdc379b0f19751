"""
Evidence store - images and links attached to experiments.

Image payloads are uploaded before anything is written; the evidence row and
its audit entry exist only once storage has returned a durable URL.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.engines.evidence.storage import ObjectStorage, evidence_path
from growthlab.kernel.audit import AuditLog
from growthlab.kernel.errors import NotFoundError, StorageError, ValidationError
from growthlab.kernel.models.audit_log import AuditAction
from growthlab.kernel.models.directory import Collaborator
from growthlab.kernel.models.experiment import Evidence, EvidenceKind
from growthlab.kernel.permissions import require_edit
from growthlab.kernel.repositories import ExperimentRepository
from growthlab.logging_config import get_logger

logger = get_logger(__name__)

MAX_IMAGE_BYTES = 10 * 1024 * 1024


class EvidenceStore:
    """
    Adds, removes and lists evidence for one acting collaborator.

    Usage:
        store = EvidenceStore(session, actor, storage=HttpObjectStorage())
        await store.add_evidence(experiment.id, url="https://ads.example/123")
    """

    def __init__(
        self,
        session: AsyncSession,
        actor: Collaborator,
        storage: Optional[ObjectStorage] = None,
    ):
        self.session = session
        self.actor = actor
        self.storage = storage
        self.repo = ExperimentRepository(session)
        self.audit = AuditLog(session)

    async def add_evidence(
        self,
        experiment_id: uuid.UUID,
        url: str,
        description: Optional[str] = None,
        kind: EvidenceKind = EvidenceKind.LINK,
    ) -> Evidence:
        """Record an already-hosted link (or image URL) as evidence."""
        experiment = await self.repo.get(experiment_id)
        require_edit(self.actor, experiment.owner_id)

        url = (url or "").strip()
        if not url:
            raise ValidationError("URL is required", field="url")

        return await self._record(experiment_id, kind, url, description)

    async def add_image_evidence(
        self,
        experiment_id: uuid.UUID,
        payload: bytes,
        filename: str,
        content_type: str,
        description: Optional[str] = None,
    ) -> Evidence:
        """
        Upload an image and record it as evidence.

        Raises:
            ValidationError: Empty, oversized or non-image payload
            StorageError: Storage missing or upload failed; nothing is written
        """
        experiment = await self.repo.get(experiment_id)
        require_edit(self.actor, experiment.owner_id)

        if not payload:
            raise ValidationError("Image payload is empty", field="payload")
        if len(payload) > MAX_IMAGE_BYTES:
            raise ValidationError("Image exceeds the 10 MB limit", field="payload")
        if not (content_type or "").startswith("image/"):
            raise ValidationError("Only image uploads are accepted", field="content_type")
        if self.storage is None:
            raise StorageError("Object storage is not configured")

        url = await self.storage.upload(evidence_path(experiment_id, filename), payload, content_type)
        return await self._record(experiment_id, EvidenceKind.IMAGE, url, description)

    async def remove_evidence(self, evidence_id: uuid.UUID) -> None:
        """Delete one evidence row. The experiment and stored object are left as they are."""
        evidence = await self.session.get(Evidence, evidence_id)
        if evidence is None:
            raise NotFoundError("Evidence", evidence_id)
        experiment = await self.repo.get(evidence.experiment_id)
        require_edit(self.actor, experiment.owner_id)

        await self.session.delete(evidence)
        await self.audit.append(
            experiment_id=experiment.id,
            action=AuditAction.EVIDENCE_REMOVED,
            actor_id=self.actor.id,
            changed_field="evidence",
            previous_value=evidence.url,
        )
        await self.session.flush()
        logger.info(
            "Evidence removed",
            extra={"experiment_id": str(experiment.id), "evidence_id": str(evidence_id)},
        )

    async def count_evidence(self, experiment_id: uuid.UUID) -> int:
        return await self.repo.count_evidence(experiment_id)

    async def list_evidence(self, experiment_id: uuid.UUID) -> List[Evidence]:
        """Evidence for an experiment, newest first."""
        await self.repo.get(experiment_id)
        result = await self.session.execute(
            select(Evidence)
            .where(Evidence.experiment_id == experiment_id)
            .order_by(Evidence.created_at.desc())
        )
        return list(result.scalars().all())

    async def _record(
        self,
        experiment_id: uuid.UUID,
        kind: EvidenceKind,
        url: str,
        description: Optional[str],
    ) -> Evidence:
        evidence = Evidence(
            id=uuid.uuid4(),
            experiment_id=experiment_id,
            kind=kind,
            url=url,
            description=(description or "").strip() or None,
            uploaded_by=self.actor.id,
        )
        self.session.add(evidence)
        await self.audit.append(
            experiment_id=experiment_id,
            action=AuditAction.EVIDENCE_ADDED,
            actor_id=self.actor.id,
            changed_field="evidence",
            new_value=url,
        )
        await self.session.flush()
        logger.info(
            "Evidence added",
            extra={"experiment_id": str(experiment_id), "kind": kind.value},
        )
        return evidence
