"""Integration tests for partial edits and optimistic concurrency."""

import json

import pytest

from growthlab.kernel.audit import AuditLog
from growthlab.kernel.errors import ConflictError, ValidationError
from growthlab.kernel.models import AuditAction
from growthlab.kernel.models.base import enum_value
from growthlab.orchestration import LifecycleController


class TestUpdateExperiment:

    @pytest.mark.asyncio
    async def test_edit_writes_one_entry_with_all_fields(self, db_session, manager, controller_for, make_draft):
        ctl = controller_for(manager)
        experiment = await ctl.create_experiment(make_draft(manager))

        await ctl.update_experiment(
            experiment.id,
            {"name": "Headline v2", "channel": "email", "notes": "first pass"},
        )

        assert experiment.name == "Headline v2"
        assert enum_value(experiment.channel) == "email"
        entries = await AuditLog(db_session).history(experiment.id, actions=[AuditAction.EDITED])
        assert len(entries) == 1
        assert entries[0].changed_field == "channel,name,notes"
        assert json.loads(entries[0].previous_value) == {
            "channel": "paid_social",
            "name": "Headline A/B",
            "notes": None,
        }
        assert json.loads(entries[0].new_value)["notes"] == "first pass"

    @pytest.mark.asyncio
    async def test_unchanged_values_write_nothing(self, db_session, manager, controller_for, make_draft):
        ctl = controller_for(manager)
        experiment = await ctl.create_experiment(make_draft(manager))

        await ctl.update_experiment(experiment.id, {"name": "Headline A/B", "channel": "paid_social"})

        assert experiment.version == 1
        assert await AuditLog(db_session).count(experiment.id, AuditAction.EDITED) == 0

    @pytest.mark.asyncio
    async def test_blank_text_clears_field(self, manager, controller_for, make_draft):
        ctl = controller_for(manager)
        experiment = await ctl.create_experiment(make_draft(manager))

        await ctl.update_experiment(experiment.id, {"funnel": "  "})

        assert experiment.funnel is None

    @pytest.mark.asyncio
    async def test_required_fields_cannot_be_cleared(self, manager, controller_for, make_draft):
        ctl = controller_for(manager)
        experiment = await ctl.create_experiment(make_draft(manager))

        with pytest.raises(ValidationError) as exc_info:
            await ctl.update_experiment(experiment.id, {"channel": None})
        assert exc_info.value.field == "channel"
        assert enum_value(experiment.channel) == "paid_social"

    @pytest.mark.asyncio
    async def test_status_cannot_be_edited(self, manager, controller_for, make_draft):
        ctl = controller_for(manager)
        experiment = await ctl.create_experiment(make_draft(manager))

        with pytest.raises(ValidationError):
            await ctl.update_experiment(experiment.id, {"status": "concluded"})
        assert enum_value(experiment.status) == "planned"

    @pytest.mark.asyncio
    async def test_owner_reassignment(self, manager, other_manager, controller_for, make_draft):
        ctl = controller_for(manager)
        experiment = await ctl.create_experiment(make_draft(manager))

        await ctl.update_experiment(experiment.id, {"owner_id": other_manager.id})

        assert experiment.owner_id == other_manager.id


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_stale_expected_version(self, manager, controller_for, make_draft):
        ctl = controller_for(manager)
        experiment = await ctl.create_experiment(make_draft(manager))
        await ctl.update_experiment(experiment.id, {"notes": "a", "expected_version": 1})
        assert experiment.version == 2

        with pytest.raises(ConflictError):
            await ctl.update_experiment(experiment.id, {"notes": "b", "expected_version": 1})
        assert experiment.notes == "a"

    @pytest.mark.asyncio
    async def test_concurrent_sessions_conflict(self, db_session, session_maker, manager, controller_for, make_draft):
        experiment = await controller_for(manager).create_experiment(make_draft(manager))
        await db_session.commit()

        async with session_maker() as first, session_maker() as second:
            actor_a = await first.get(type(manager), manager.id)
            actor_b = await second.get(type(manager), manager.id)
            ctl_a = LifecycleController(first, actor_a)
            ctl_b = LifecycleController(second, actor_b)

            # B holds version 1 in its identity map
            await ctl_b.repo.get(experiment.id)
            await second.commit()

            await ctl_a.update_experiment(experiment.id, {"notes": "from A"})
            await first.commit()

            with pytest.raises(ConflictError):
                await ctl_b.update_experiment(experiment.id, {"notes": "from B"})
            await second.rollback()
