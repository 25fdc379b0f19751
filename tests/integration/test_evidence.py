"""Integration tests for the evidence store."""

import httpx
import pytest

from growthlab.engines.evidence import EvidenceStore
from growthlab.engines.evidence.storage import HttpObjectStorage, evidence_path
from growthlab.kernel.audit import AuditLog
from growthlab.kernel.errors import NotFoundError, PermissionDeniedError, StorageError, ValidationError
from growthlab.kernel.models import AuditAction
from growthlab.kernel.models.base import enum_value

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class TestLinkEvidence:

    @pytest.mark.asyncio
    async def test_add_and_list(self, db_session, manager, controller_for, make_draft):
        experiment = await controller_for(manager).create_experiment(make_draft(manager))
        store = EvidenceStore(db_session, manager)

        first = await store.add_evidence(experiment.id, url=" https://ads.example/1 ", description="Ad")
        second = await store.add_evidence(experiment.id, url="https://ads.example/2")

        assert first.url == "https://ads.example/1"
        assert enum_value(first.kind) == "link"
        assert await store.count_evidence(experiment.id) == 2
        listed = await store.list_evidence(experiment.id)
        assert [e.id for e in listed] == [second.id, first.id]
        assert await AuditLog(db_session).count(experiment.id, AuditAction.EVIDENCE_ADDED) == 2

    @pytest.mark.asyncio
    async def test_blank_url_rejected(self, db_session, manager, controller_for, make_draft):
        experiment = await controller_for(manager).create_experiment(make_draft(manager))
        with pytest.raises(ValidationError):
            await EvidenceStore(db_session, manager).add_evidence(experiment.id, url="  ")

    @pytest.mark.asyncio
    async def test_foreign_manager_cannot_attach(
        self, db_session, manager, other_manager, controller_for, make_draft
    ):
        experiment = await controller_for(manager).create_experiment(make_draft(manager))
        with pytest.raises(PermissionDeniedError):
            await EvidenceStore(db_session, other_manager).add_evidence(experiment.id, url="https://x.example")

    @pytest.mark.asyncio
    async def test_remove(self, db_session, manager, controller_for, make_draft):
        experiment = await controller_for(manager).create_experiment(make_draft(manager))
        store = EvidenceStore(db_session, manager)
        evidence = await store.add_evidence(experiment.id, url="https://ads.example/1")

        await store.remove_evidence(evidence.id)

        assert await store.count_evidence(experiment.id) == 0
        entries = await AuditLog(db_session).history(
            experiment.id, actions=[AuditAction.EVIDENCE_REMOVED]
        )
        assert entries[0].previous_value == "https://ads.example/1"

        with pytest.raises(NotFoundError):
            await store.remove_evidence(evidence.id)


class TestImageEvidence:

    @pytest.mark.asyncio
    async def test_upload_then_record(self, db_session, manager, controller_for, make_draft, storage):
        experiment = await controller_for(manager).create_experiment(make_draft(manager))
        store = EvidenceStore(db_session, manager, storage)

        evidence = await store.add_image_evidence(
            experiment.id, PNG_BYTES, filename="ad shot.png", content_type="image/png"
        )

        assert enum_value(evidence.kind) == "image"
        assert storage.uploads[0]["path"].startswith(f"{experiment.id}/")
        assert evidence.url.endswith(storage.uploads[0]["path"])

    @pytest.mark.asyncio
    async def test_failed_upload_writes_nothing(self, db_session, manager, controller_for, make_draft, storage):
        experiment = await controller_for(manager).create_experiment(make_draft(manager))
        storage.fail = True
        store = EvidenceStore(db_session, manager, storage)

        with pytest.raises(StorageError):
            await store.add_image_evidence(experiment.id, PNG_BYTES, "a.png", "image/png")

        assert await store.count_evidence(experiment.id) == 0
        assert await AuditLog(db_session).count(experiment.id, AuditAction.EVIDENCE_ADDED) == 0

    @pytest.mark.asyncio
    async def test_payload_checks(self, db_session, manager, controller_for, make_draft, storage):
        experiment = await controller_for(manager).create_experiment(make_draft(manager))
        store = EvidenceStore(db_session, manager, storage)

        with pytest.raises(ValidationError):
            await store.add_image_evidence(experiment.id, b"", "a.png", "image/png")
        with pytest.raises(ValidationError):
            await store.add_image_evidence(experiment.id, b"%PDF", "a.pdf", "application/pdf")
        assert storage.uploads == []

    @pytest.mark.asyncio
    async def test_missing_storage(self, db_session, manager, controller_for, make_draft):
        experiment = await controller_for(manager).create_experiment(make_draft(manager))
        with pytest.raises(StorageError):
            await EvidenceStore(db_session, manager).add_image_evidence(
                experiment.id, PNG_BYTES, "a.png", "image/png"
            )


class TestHttpObjectStorage:
    """HTTP storage client against a mock transport."""

    def _storage(self, handler) -> HttpObjectStorage:
        return HttpObjectStorage(
            base_url="https://storage.test",
            bucket="laboratorio-testes",
            api_key="key",
            transport=httpx.MockTransport(handler),
        )

    @pytest.mark.asyncio
    async def test_upload_returns_public_url(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"Key": "ok"})

        url = await self._storage(handler).upload("exp/1.png", PNG_BYTES, "image/png")

        assert "laboratorio-testes/exp/1.png" in seen["url"]
        assert seen["auth"] == "Bearer key"
        assert url.endswith("laboratorio-testes/exp/1.png")

    @pytest.mark.asyncio
    async def test_client_error_raises(self):
        storage = self._storage(lambda request: httpx.Response(403, json={"error": "denied"}))
        with pytest.raises(StorageError):
            await storage.upload("exp/1.png", PNG_BYTES, "image/png")

    def test_path_is_sanitized(self):
        path = evidence_path("exp-1", "../my ad.PNG")
        assert path.startswith("exp-1/")
        assert ".." not in path
        assert " " not in path
