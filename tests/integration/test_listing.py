"""Integration tests for listing, filtering and reporting queries."""

from datetime import date, timedelta

import pytest

from growthlab.engines.reporting import ReportingService, upcoming_deadlines
from growthlab.kernel.identity.directory import ClientDirectory
from growthlab.kernel.repositories import ExperimentRepository
from growthlab.schemas.experiment import (
    ExperimentFilters,
    QuickFilter,
    SortDirection,
    SortKey,
)
from growthlab.schemas.report import DeadlineAlert


@pytest.fixture
def seeded(db_session, admin, manager, other_manager, client_account, controller_for, make_draft):
    """Four experiments across owners, statuses and channels."""

    async def _seed():
        mine = controller_for(manager)
        theirs = controller_for(other_manager)

        winner = await mine.create_experiment(
            make_draft(manager, client_account, name="Alpha winner", ad_link="https://ads.example/1")
        )
        await mine.start_experiment(winner.id)
        await mine.conclude_experiment(winner.id, {"validation": "good", "result_description": "Won"})

        running = await mine.create_experiment(
            make_draft(manager, name="Bravo running", channel="email", funnel="Lead Magnet")
        )
        await mine.start_experiment(running.id)

        planned = await theirs.create_experiment(
            make_draft(other_manager, client_account, name="Charlie planned", hypothesis="Video beats static")
        )

        archived = await theirs.create_experiment(make_draft(other_manager, name="Delta archived"))
        await controller_for(admin).archive_experiment(archived.id)

        return {"winner": winner, "running": running, "planned": planned, "archived": archived}

    return _seed


def _names(rows):
    return [row[0].name for row in rows]


class TestListPage:

    @pytest.mark.asyncio
    async def test_default_hides_archived_newest_first(self, db_session, seeded):
        await seeded()
        rows, total = await ExperimentRepository(db_session).list_page(ExperimentFilters())

        assert total == 3
        assert _names(rows) == ["Charlie planned", "Bravo running", "Alpha winner"]

    @pytest.mark.asyncio
    async def test_include_archived(self, db_session, seeded):
        await seeded()
        _, total = await ExperimentRepository(db_session).list_page(
            ExperimentFilters(include_archived=True)
        )
        assert total == 4

    @pytest.mark.asyncio
    async def test_search_matches_hypothesis_and_client(self, db_session, seeded):
        await seeded()
        repo = ExperimentRepository(db_session)

        rows, _ = await repo.list_page(ExperimentFilters(search="video"))
        assert _names(rows) == ["Charlie planned"]

        rows, _ = await repo.list_page(ExperimentFilters(search="acme"), sort=SortKey.NAME)
        assert _names(rows) == ["Alpha winner", "Charlie planned"]

    @pytest.mark.asyncio
    async def test_search_wildcards_match_literally(self, db_session, manager, controller_for, make_draft):
        ctl = controller_for(manager)
        for name in ("Discount 50% off", "Discount 500 bundle", "promo_a", "promoXa"):
            await ctl.create_experiment(make_draft(manager, name=name, hypothesis=None, funnel=None))
        repo = ExperimentRepository(db_session)

        rows, _ = await repo.list_page(ExperimentFilters(search="50%"))
        assert _names(rows) == ["Discount 50% off"]

        rows, _ = await repo.list_page(ExperimentFilters(search="o_a"))
        assert _names(rows) == ["promo_a"]

    @pytest.mark.asyncio
    async def test_field_filters(self, db_session, seeded, client_account):
        await seeded()
        repo = ExperimentRepository(db_session)

        rows, _ = await repo.list_page(ExperimentFilters(channel="email"))
        assert _names(rows) == ["Bravo running"]

        rows, _ = await repo.list_page(ExperimentFilters(status="running"))
        assert _names(rows) == ["Bravo running"]

        rows, _ = await repo.list_page(ExperimentFilters(client_id=client_account.id, funnel="Webinar"))
        assert sorted(_names(rows)) == ["Alpha winner", "Charlie planned"]

    @pytest.mark.asyncio
    async def test_created_date_range(self, db_session, seeded):
        await seeded()
        repo = ExperimentRepository(db_session)
        today = date.today()

        _, total = await repo.list_page(ExperimentFilters(created_from=today - timedelta(days=1), created_to=today + timedelta(days=1)))
        assert total == 3
        _, total = await repo.list_page(ExperimentFilters(created_to=today - timedelta(days=2)))
        assert total == 0

    @pytest.mark.asyncio
    async def test_quick_filters(self, db_session, seeded, manager):
        await seeded()
        repo = ExperimentRepository(db_session)

        rows, _ = await repo.list_page(ExperimentFilters(quick_filter=QuickFilter.MINE), actor_id=manager.id)
        assert sorted(_names(rows)) == ["Alpha winner", "Bravo running"]

        rows, _ = await repo.list_page(ExperimentFilters(quick_filter=QuickFilter.WINNERS))
        assert _names(rows) == ["Alpha winner"]

    @pytest.mark.asyncio
    async def test_sort_by_status_and_owner(self, db_session, seeded):
        await seeded()
        repo = ExperimentRepository(db_session)

        rows, _ = await repo.list_page(ExperimentFilters(), sort=SortKey.STATUS)
        assert _names(rows) == ["Charlie planned", "Bravo running", "Alpha winner"]

        rows, _ = await repo.list_page(ExperimentFilters(), sort=SortKey.STATUS, direction=SortDirection.DESC)
        assert _names(rows)[0] == "Alpha winner"

        rows, _ = await repo.list_page(ExperimentFilters(), sort=SortKey.OWNER)
        assert _names(rows)[0] == "Charlie planned"  # Ugo before Uma

    @pytest.mark.asyncio
    async def test_pagination(self, db_session, seeded):
        await seeded()
        repo = ExperimentRepository(db_session)

        page_one, total = await repo.list_page(ExperimentFilters(), page=1, page_size=2)
        page_two, _ = await repo.list_page(ExperimentFilters(), page=2, page_size=2)

        assert total == 3
        assert len(page_one) == 2
        assert _names(page_two) == ["Alpha winner"]

    @pytest.mark.asyncio
    async def test_rows_carry_names(self, db_session, seeded, manager, client_account):
        items = await seeded()
        experiment, owner_name, client_name = await ExperimentRepository(db_session).get_with_names(
            items["winner"].id
        )
        assert owner_name == manager.name
        assert client_name == client_account.name


class TestReportingService:

    @pytest.mark.asyncio
    async def test_report_excludes_archived(self, db_session, seeded):
        await seeded()
        report = await ReportingService(db_session).get_report()

        assert report.total == 3
        assert report.by_status["concluded"] == 1
        assert report.completion_rate == 0.3333
        assert report.win_rate == 1.0
        assert report.top_owners[0].label == "Uma Manager"

    @pytest.mark.asyncio
    async def test_report_respects_filters(self, db_session, seeded):
        await seeded()
        report = await ReportingService(db_session).get_report(ExperimentFilters(channel="email"))
        assert report.total == 1
        assert report.completion_rate == 0.0


class TestDeadlines:

    @pytest.mark.asyncio
    async def test_watchlist_scope(self, db_session, seeded, admin, manager, other_manager, today):
        items = await seeded()

        mine = await upcoming_deadlines(db_session, manager, today=today)
        assert [i.experiment_id for i in mine] == [items["running"].id]

        assert await upcoming_deadlines(db_session, other_manager, today=today) == []
        assert len(await upcoming_deadlines(db_session, admin, today=today)) == 1

    @pytest.mark.asyncio
    async def test_long_running_alert(self, db_session, seeded, manager, today):
        await seeded()
        [item] = await upcoming_deadlines(db_session, manager, today=today + timedelta(days=20))
        assert item.alert == DeadlineAlert.LONG_RUNNING


class TestClientDirectory:

    @pytest.mark.asyncio
    async def test_funnels_alphabetical(self, db_session, client_account):
        assert await ClientDirectory(db_session).list_funnels(client_account.id) == ["Lead Magnet", "Webinar"]
