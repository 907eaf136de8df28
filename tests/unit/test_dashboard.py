"""Unit tests for the support role's monitoring dashboard."""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from safetyguard.errors import GateStateError, SiteNotFoundError, SiteValidationError, SyncError
from safetyguard.models import RiskLevel, Role, SiteStatus
from safetyguard.monitoring.dashboard import DashboardTab, MonitoringDashboard, SiteForm
from safetyguard.notifications.notifier import NotificationLevel, Notifier
from safetyguard.session.scope import ScopedSession

NOW = datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def seeded(backend, site_factory, log_factory):
    backend._sites = {
        "s-urgent": site_factory(site_id="s-urgent", start=date(2024, 6, 5), end=date(2024, 6, 11)),
        "s-active": site_factory(site_id="s-active", start=date(2024, 6, 1), end=date(2024, 6, 30)),
        "s-ended": site_factory(site_id="s-ended", start=date(2024, 5, 1), end=date(2024, 6, 2)),
    }
    backend._logs = [
        log_factory(log_id="w", site_id="s-active", role=Role.SAFETY, risk=RiskLevel.WARNING, notes="Open pit"),
        log_factory(
            log_id="old", site_id="s-active", role=Role.FACILITY, timestamp=NOW - timedelta(days=1)
        ),
    ]
    return backend


@pytest.fixture
def dashboard(seeded, store_a, context_factory, fake_ai):
    session = ScopedSession(seeded, context_factory(store_a, Role.SUPPORT))
    yield MonitoringDashboard(session, ai=fake_ai, notifier=Notifier(), clock=lambda: NOW)
    session.close()


def _form(**overrides) -> SiteForm:
    values = dict(
        name="Lobby refit",
        department="Cosmetics",
        start_date=date(2024, 6, 10),
        end_date=date(2024, 6, 25),
        floor_label="1F",
        location="Main entrance",
    )
    values.update(overrides)
    return SiteForm(**values)


class TestDashboardViews:
    def test_requires_support_role(self, seeded, store_a, context_factory):
        session = ScopedSession(seeded, context_factory(store_a, Role.FACILITY))
        with pytest.raises(GateStateError):
            MonitoringDashboard(session)

    def test_defaults_to_today(self, dashboard):
        assert dashboard.selected_date == date(2024, 6, 10)
        assert dashboard.tab == DashboardTab.MONITORING

    def test_view_for_today(self, dashboard):
        view = dashboard.view()
        assert [site.id for site in view.sites] == ["s-urgent", "s-active"]
        assert [log.id for log in view.date_logs] == ["w"]
        assert view.statistics.warning_count == 1
        assert dashboard.has_alert

    def test_past_date_shows_that_days_logs(self, dashboard):
        dashboard.select_date(date(2024, 6, 9))
        view = dashboard.view()
        assert [log.id for log in view.date_logs] == ["old"]
        assert not view.high_risk

    def test_management_lists_every_site(self, dashboard):
        assert [site.id for site in dashboard.management_sites()] == ["s-urgent", "s-active", "s-ended"]


class TestSummary:
    @pytest.mark.asyncio
    async def test_analysis_tab_requests_summary(self, dashboard, fake_ai):
        await dashboard.select_tab(DashboardTab.ANALYSIS)
        assert dashboard.summary == "All sites nominal."
        assert [[log.id for log in call] for call in fake_ai.summary_calls] == [["w"]]

        await dashboard.select_tab(DashboardTab.MONITORING)
        await dashboard.select_tab(DashboardTab.ANALYSIS)
        assert len(fake_ai.summary_calls) == 1

    @pytest.mark.asyncio
    async def test_no_logs_no_request(self, dashboard, fake_ai):
        dashboard.select_date(date(2024, 6, 1))
        await dashboard.select_tab(DashboardTab.ANALYSIS)
        assert fake_ai.summary_calls == []
        assert dashboard.summary == ""

    @pytest.mark.asyncio
    async def test_date_change_clears_summary(self, dashboard):
        await dashboard.refresh_summary()
        dashboard.select_date(date(2024, 6, 9))
        assert dashboard.summary == ""

    @pytest.mark.asyncio
    async def test_newer_request_supersedes_older(self, dashboard, fake_ai):
        fake_ai.gate = asyncio.Event()
        first = asyncio.create_task(dashboard.refresh_summary())
        await asyncio.sleep(0)
        assert dashboard.summary_loading

        fake_ai.summary_text = "second answer"
        second = asyncio.create_task(dashboard.refresh_summary())
        await asyncio.sleep(0)

        fake_ai.gate.set()
        await asyncio.gather(first, second)
        assert dashboard.summary == "second answer"
        assert not dashboard.summary_loading


class TestSiteAdministration:
    @pytest.mark.asyncio
    async def test_add_site(self, dashboard):
        site = await dashboard.add_site(_form())
        assert site.store_id == "dept-9"
        assert site.id.startswith("site-")
        assert site.status == SiteStatus.PENDING
        assert site in dashboard.session.sites

    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"name": " "}, "name"),
            ({"department": ""}, "department"),
            ({"start_date": None}, "start_date"),
            ({"end_date": None}, "end_date"),
            ({"end_date": date(2024, 6, 1)}, "end_date"),
        ],
    )
    def test_form_validation(self, overrides, field):
        with pytest.raises(SiteValidationError) as exc_info:
            _form(**overrides).validate()
        assert exc_info.value.field == field

    @pytest.mark.asyncio
    async def test_update_site(self, dashboard):
        form = SiteForm.from_site(dashboard.session.find_site("s-active"))
        form.status = SiteStatus.IN_PROGRESS
        form.end_date = date(2024, 7, 5)

        updated = await dashboard.update_site(form)

        assert updated.id == "s-active"
        assert updated.store_id == "dept-9"
        assert dashboard.session.find_site("s-active").end_date == date(2024, 7, 5)

    @pytest.mark.asyncio
    async def test_update_cannot_move_store(self, dashboard):
        form = SiteForm.from_site(dashboard.session.find_site("s-active"))
        form.store_id = "outlet-1"
        with pytest.raises(SiteValidationError):
            await dashboard.update_site(form)

    @pytest.mark.asyncio
    async def test_delete_requires_confirmation(self, dashboard):
        dashboard.request_delete("s-ended")
        dashboard.cancel_delete()
        assert not await dashboard.confirm_delete()
        assert len(dashboard.session.sites) == 3

        dashboard.request_delete("s-ended")
        assert await dashboard.confirm_delete()
        with pytest.raises(SiteNotFoundError):
            dashboard.session.find_site("s-ended")

    def test_delete_unknown_site(self, dashboard):
        with pytest.raises(SiteNotFoundError):
            dashboard.request_delete("missing")

    @pytest.mark.asyncio
    async def test_sync_failure_becomes_notification(self, dashboard, monkeypatch):
        async def failing_create(data):
            raise SyncError("quota exceeded")

        monkeypatch.setattr(dashboard.session.sync, "create_site", failing_create)
        assert await dashboard.add_site(_form()) is None
        assert dashboard.notifier.latest.level == NotificationLevel.ERROR
