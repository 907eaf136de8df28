"""Unit tests for the multi-role inspection aggregation engine."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from safetyguard.aggregation.engine import (
    RoleStatus,
    aggregated_work_type,
    build_monitoring_view,
    build_site_overview,
    has_warning_today,
    high_risk_worklist,
    logs_for_date,
    per_site_role_status,
    store_statistics,
)
from safetyguard.lifecycle.engine import TemporalKind
from safetyguard.models import Checklist, RiskLevel, Role

DAY = date(2024, 6, 10)
NOON = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)


class TestLogsForDate:
    def test_matches_selected_day_only(self, log_factory):
        logs = [
            log_factory(log_id="today", timestamp=NOON),
            log_factory(log_id="yesterday", timestamp=NOON - timedelta(days=1)),
            log_factory(log_id="tomorrow", timestamp=NOON + timedelta(days=1)),
        ]
        assert [log.id for log in logs_for_date(logs, DAY)] == ["today"]

    def test_preserves_order(self, log_factory):
        logs = [log_factory(log_id=f"l{i}", timestamp=NOON - timedelta(hours=i)) for i in range(4)]
        assert [log.id for log in logs_for_date(logs, DAY)] == ["l0", "l1", "l2", "l3"]

    def test_uses_local_timezone(self, log_factory, monkeypatch):
        from safetyguard.config import reset_config

        monkeypatch.setenv("LOCAL_TIMEZONE", "Asia/Seoul")
        reset_config()
        # 20:00 UTC on the 9th is 05:00 on the 10th in Seoul
        log = log_factory(timestamp=datetime(2024, 6, 9, 20, 0, tzinfo=timezone.utc))
        assert logs_for_date([log], DAY) == [log]
        assert logs_for_date([log], date(2024, 6, 9)) == []

    def test_naive_timestamps_are_local(self, log_factory):
        log = log_factory(timestamp=datetime(2024, 6, 10, 23, 59))
        assert logs_for_date([log], DAY) == [log]

    def test_empty(self):
        assert logs_for_date([], DAY) == []


class TestPerSiteRoleStatus:
    def test_each_role_found(self, site_factory, log_factory):
        site = site_factory()
        facility = log_factory(log_id="f", role=Role.FACILITY)
        safety = log_factory(log_id="s", role=Role.SAFETY, risk=RiskLevel.WARNING)
        status = per_site_role_status(site, [facility, safety])
        assert status.facility == facility
        assert status.safety == safety
        assert status.sales is None
        assert status.checked_roles() == [Role.FACILITY, Role.SAFETY]

    def test_first_duplicate_wins(self, site_factory, log_factory):
        site = site_factory()
        first = log_factory(log_id="first", role=Role.SALES)
        second = log_factory(log_id="second", role=Role.SALES)
        assert per_site_role_status(site, [first, second]).sales.id == "first"
        assert per_site_role_status(site, [second, first]).sales.id == "second"

    def test_other_sites_ignored(self, site_factory, log_factory):
        site = site_factory(site_id="site-1")
        other = log_factory(site_id="site-2", role=Role.SAFETY)
        assert per_site_role_status(site, [other]) == RoleStatus()

    def test_support_logs_ignored(self, site_factory, log_factory):
        site = site_factory()
        assert not per_site_role_status(site, [log_factory(role=Role.SUPPORT)]).any_checked


class TestStoreStatistics:
    def test_counts(self, log_factory):
        logs = [
            log_factory(log_id="1", role=Role.FACILITY),
            log_factory(log_id="2", role=Role.SAFETY, risk=RiskLevel.WARNING),
            log_factory(log_id="3", role=Role.SAFETY, risk=RiskLevel.CAUTION),
            log_factory(log_id="4", role=Role.SALES, risk=RiskLevel.WARNING),
        ]
        stats = store_statistics(logs, site_count_in_window=2)
        assert stats.warning_count == 2
        assert stats.facility_checks == 1
        assert stats.safety_checks == 2
        assert stats.sales_checks == 1
        assert stats.completion_ratio == 4 / 6
        assert stats.completion_percent == 67

    def test_zero_sites_yields_zero_completion(self, log_factory):
        assert store_statistics([log_factory()], site_count_in_window=0).completion_ratio == 0.0

    def test_completion_clamped_to_one(self, log_factory):
        logs = [log_factory(log_id=str(i)) for i in range(5)]
        assert store_statistics(logs, site_count_in_window=1).completion_ratio == 1.0

    def test_empty(self):
        stats = store_statistics([], site_count_in_window=3)
        assert stats.warning_count == 0
        assert stats.completion_ratio == 0.0


class TestWorklistAndWorkType:
    def test_high_risk_keeps_order(self, log_factory):
        logs = [
            log_factory(log_id="a", risk=RiskLevel.WARNING),
            log_factory(log_id="b", risk=RiskLevel.NORMAL),
            log_factory(log_id="c", risk=RiskLevel.WARNING),
        ]
        assert [log.id for log in high_risk_worklist(logs)] == ["a", "c"]

    def test_work_type_precedence(self, log_factory):
        status = RoleStatus(
            facility=log_factory(log_id="f", role=Role.FACILITY, work_type="Wiring"),
            safety=log_factory(log_id="s", role=Role.SAFETY, work_type="Ceiling panels"),
            sales=log_factory(log_id="x", role=Role.SALES, work_type="Signage"),
        )
        assert aggregated_work_type(status) == "Ceiling panels"

    def test_work_type_skips_empty(self, log_factory):
        status = RoleStatus(
            facility=log_factory(log_id="f", role=Role.FACILITY, work_type=""),
            safety=log_factory(log_id="s", role=Role.SAFETY, work_type=""),
            sales=log_factory(log_id="x", role=Role.SALES, work_type="Signage"),
        )
        assert aggregated_work_type(status) == "Signage"

    def test_work_type_falls_back_to_any_site_log(self, log_factory):
        extra = log_factory(log_id="dup", role=Role.SAFETY, work_type="Painting")
        assert aggregated_work_type(RoleStatus(), [extra]) == "Painting"

    def test_no_work_type(self):
        assert aggregated_work_type(RoleStatus()) is None


class TestMonitoringView:
    def test_builds_full_view(self, site_factory, log_factory):
        in_window = site_factory(site_id="site-1", start=date(2024, 6, 1), end=date(2024, 6, 12))
        future = site_factory(site_id="site-2", start=date(2024, 6, 20), end=date(2024, 6, 30))
        logs = [
            log_factory(
                log_id="s",
                role=Role.SAFETY,
                risk=RiskLevel.WARNING,
                work_type="Welding",
                notes="Extinguisher missing",
                photos=("p1",),
                checklist=Checklist(ppe=True, fire_safety=False, electrical=True, environment=True),
            ),
            log_factory(log_id="f", role=Role.FACILITY, photos=("p2", "p3")),
            log_factory(log_id="old", role=Role.SALES, timestamp=NOON - timedelta(days=2)),
        ]

        view = build_monitoring_view([future, in_window], logs, DAY, DAY)

        assert [site.id for site in view.sites] == ["site-1"]
        assert [log.id for log in view.date_logs] == ["s", "f"]
        assert view.statistics.completion_ratio == 2 / 3
        assert view.failure_tally.fire_safety == 1
        assert [log.id for log in view.high_risk] == ["s"]

        overview = view.overviews[0]
        assert overview.temporal_status.kind == TemporalKind.URGENT
        assert overview.work_type == "Welding"
        assert overview.photos == ("p1", "p2", "p3")
        assert overview.notes == (("Safety", "Extinguisher missing"),)

    def test_empty_inputs(self):
        view = build_monitoring_view([], [], DAY, DAY)
        assert view.overviews == ()
        assert view.statistics.completion_ratio == 0.0
        assert view.failure_tally.total == 0
        assert view.high_risk == ()

    def test_site_overview_without_logs(self, site_factory):
        overview = build_site_overview(site_factory(), [], DAY)
        assert not overview.role_status.any_checked
        assert overview.work_type is None

    def test_warning_indicator(self, log_factory):
        assert has_warning_today([log_factory(risk=RiskLevel.WARNING)], DAY)
        assert not has_warning_today(
            [log_factory(risk=RiskLevel.WARNING, timestamp=NOON - timedelta(days=1))], DAY
        )
