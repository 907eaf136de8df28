"""Multi-role inspection aggregation.

Folds a store's inspection logs into the per-site monitoring view and
store-wide statistics for one selected day. Nothing here raises: missing
sites or logs produce empty or zeroed aggregates.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo

from safetyguard.config import get_config
from safetyguard.lifecycle.engine import (
    TemporalStatus,
    compute_temporal_status,
    monitoring_sites,
)
from safetyguard.models import FIELD_ROLES, InspectionLog, Role, Site
from safetyguard.risk.policy import FailureTally, daily_failure_aggregate, is_high_risk

# Precedence for the work type shown on a site card
WORK_TYPE_PRECEDENCE: tuple[Role, ...] = (Role.SAFETY, Role.FACILITY, Role.SALES)


@dataclass(frozen=True, slots=True)
class RoleStatus:
    """The log each field role filed for one site on one day, if any."""

    facility: InspectionLog | None = None
    safety: InspectionLog | None = None
    sales: InspectionLog | None = None

    def get(self, role: Role) -> InspectionLog | None:
        if role == Role.FACILITY:
            return self.facility
        if role == Role.SAFETY:
            return self.safety
        if role == Role.SALES:
            return self.sales
        return None

    def checked_roles(self) -> list[Role]:
        return [role for role in FIELD_ROLES if self.get(role) is not None]

    @property
    def any_checked(self) -> bool:
        return bool(self.checked_roles())


@dataclass(frozen=True, slots=True)
class StoreStatistics:
    warning_count: int = 0
    facility_checks: int = 0
    safety_checks: int = 0
    sales_checks: int = 0
    completion_ratio: float = 0.0

    @property
    def completion_percent(self) -> int:
        return round(self.completion_ratio * 100)


@dataclass(frozen=True, slots=True)
class SiteOverview:
    """Everything the monitoring list shows for one site."""

    site: Site
    temporal_status: TemporalStatus
    role_status: RoleStatus
    work_type: str | None
    photos: tuple[str, ...] = ()
    notes: tuple[tuple[str, str], ...] = ()  # (role short label, note)


@dataclass(frozen=True, slots=True)
class MonitoringView:
    selected_date: date
    date_logs: tuple[InspectionLog, ...]
    sites: tuple[Site, ...]
    overviews: tuple[SiteOverview, ...]
    statistics: StoreStatistics
    failure_tally: FailureTally
    high_risk: tuple[InspectionLog, ...] = field(default_factory=tuple)


def log_date(log: InspectionLog, tz: tzinfo | None = None) -> date:
    """Calendar day of a log's timestamp in the local timezone.

    Naive timestamps are taken to be local already.
    """
    if log.timestamp.tzinfo is None:
        return log.timestamp.date()
    if tz is None:
        tz = get_config().lifecycle.tzinfo
    return log.timestamp.astimezone(tz).date()


def logs_for_date(
    logs: Iterable[InspectionLog],
    selected: date | datetime,
    tz: tzinfo | None = None,
) -> list[InspectionLog]:
    """Logs filed on the selected calendar day, in their original order."""
    if isinstance(selected, datetime):
        selected = selected.date()
    if tz is None:
        tz = get_config().lifecycle.tzinfo
    return [log for log in logs if log_date(log, tz) == selected]


def per_site_role_status(site: Site, date_logs: Iterable[InspectionLog]) -> RoleStatus:
    """First log per field role for this site.

    One log per role per site per day is the steady state. With duplicates the
    earliest in sequence order wins. Logs arrive from the sync layer most recent
    first, so that is the latest submission; duplicates sharing a timestamp keep
    the backend's append order, so among those the earlier append wins.
    """
    found: dict[Role, InspectionLog] = {}
    for log in date_logs:
        if log.site_id != site.id or not log.inspector_role.is_field_role:
            continue
        found.setdefault(log.inspector_role, log)
    return RoleStatus(
        facility=found.get(Role.FACILITY),
        safety=found.get(Role.SAFETY),
        sales=found.get(Role.SALES),
    )


def store_statistics(
    date_logs: Sequence[InspectionLog],
    site_count_in_window: int,
    expected_roles: int | None = None,
) -> StoreStatistics:
    """Counts for the day plus completion against every active site being
    checked by every field role."""
    if expected_roles is None:
        expected_roles = get_config().lifecycle.expected_field_roles

    expected = site_count_in_window * expected_roles
    ratio = 0.0
    if expected > 0:
        ratio = min(1.0, max(0.0, len(date_logs) / expected))

    return StoreStatistics(
        warning_count=sum(1 for log in date_logs if is_high_risk(log)),
        facility_checks=sum(1 for log in date_logs if log.inspector_role == Role.FACILITY),
        safety_checks=sum(1 for log in date_logs if log.inspector_role == Role.SAFETY),
        sales_checks=sum(1 for log in date_logs if log.inspector_role == Role.SALES),
        completion_ratio=ratio,
    )


def high_risk_worklist(date_logs: Iterable[InspectionLog]) -> list[InspectionLog]:
    return [log for log in date_logs if is_high_risk(log)]


def aggregated_work_type(
    role_status: RoleStatus, site_logs: Iterable[InspectionLog] = ()
) -> str | None:
    """Fixed precedence SAFETY, FACILITY, SALES, then any other site log."""
    for role in WORK_TYPE_PRECEDENCE:
        log = role_status.get(role)
        if log is not None and log.work_type:
            return log.work_type
    for log in site_logs:
        if log.work_type:
            return log.work_type
    return None


def build_site_overview(
    site: Site,
    date_logs: Iterable[InspectionLog],
    as_of: date | datetime,
) -> SiteOverview:
    site_logs = [log for log in date_logs if log.site_id == site.id]
    role_status = per_site_role_status(site, site_logs)
    return SiteOverview(
        site=site,
        temporal_status=compute_temporal_status(site, as_of),
        role_status=role_status,
        work_type=aggregated_work_type(role_status, site_logs),
        photos=tuple(photo for log in site_logs for photo in log.photos),
        notes=tuple(
            (log.inspector_role.capability.short_label, log.notes)
            for log in site_logs
            if log.notes
        ),
    )


def build_monitoring_view(
    sites: Iterable[Site],
    logs: Iterable[InspectionLog],
    selected: date | datetime,
    as_of: date | datetime,
) -> MonitoringView:
    """Per-site status, statistics and worklists for the selected day."""
    if isinstance(selected, datetime):
        selected = selected.date()

    date_logs = logs_for_date(logs, selected)
    window_sites = monitoring_sites(sites, selected, as_of)

    return MonitoringView(
        selected_date=selected,
        date_logs=tuple(date_logs),
        sites=tuple(window_sites),
        overviews=tuple(build_site_overview(site, date_logs, as_of) for site in window_sites),
        statistics=store_statistics(date_logs, len(window_sites)),
        failure_tally=daily_failure_aggregate(date_logs),
        high_risk=tuple(high_risk_worklist(date_logs)),
    )


def has_warning_today(logs: Iterable[InspectionLog], today: date | datetime) -> bool:
    """Whether the monitoring header should show its alert indicator."""
    return any(is_high_risk(log) for log in logs_for_date(logs, today))
