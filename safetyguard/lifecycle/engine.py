"""Site lifecycle classification.

Derives a computed temporal status for each site from its end date and a
reference day, independent of the user-set ``Site.status`` label, and uses it
to filter and order site lists.

Two different filters apply:
- field roles hide sites whose end date has passed relative to *today*;
- the monitoring dashboard keeps sites whose period contains an arbitrary
  *selected* day.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from safetyguard.config import get_config
from safetyguard.models import Role, Site


class TemporalKind(str, Enum):
    URGENT = "URGENT"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"


STATUS_RANK: dict[TemporalKind, int] = {
    TemporalKind.URGENT: 0,
    TemporalKind.ACTIVE: 1,
    TemporalKind.EXPIRED: 2,
}


@dataclass(frozen=True, slots=True)
class TemporalStatus:
    kind: TemporalKind
    days_remaining: int

    @property
    def rank(self) -> int:
        return STATUS_RANK[self.kind]

    @property
    def label(self) -> str:
        if self.kind == TemporalKind.EXPIRED:
            return "Ended"
        if self.kind == TemporalKind.URGENT:
            return f"Due soon ({self.days_remaining}d)"
        return "In progress"


def _as_date(value: date | datetime) -> date:
    # Midnight normalisation: only the calendar day matters
    if isinstance(value, datetime):
        return value.date()
    return value


def compute_temporal_status(
    site: Site,
    as_of: date | datetime,
    urgent_window_days: int | None = None,
) -> TemporalStatus:
    """Classify a site as EXPIRED, URGENT or ACTIVE relative to ``as_of``.

    Total over every site/date pair. Both dates are whole days, so the
    ceiling of the day difference is the difference itself.
    """
    if urgent_window_days is None:
        urgent_window_days = get_config().lifecycle.urgent_window_days

    today = _as_date(as_of)
    end = _as_date(site.end_date)
    days_remaining = (end - today).days

    if end < today:
        return TemporalStatus(TemporalKind.EXPIRED, days_remaining)
    if 0 <= days_remaining <= urgent_window_days:
        return TemporalStatus(TemporalKind.URGENT, days_remaining)
    return TemporalStatus(TemporalKind.ACTIVE, days_remaining)


def is_visible_for_field_date(site: Site, as_of: date | datetime) -> bool:
    """Field roles only see sites that have not ended before ``as_of``."""
    return _as_date(site.end_date) >= _as_date(as_of)


def is_within_window(site: Site, selected: date | datetime) -> bool:
    """True if ``selected`` falls inside the site's period (inclusive)."""
    day = _as_date(selected)
    return _as_date(site.start_date) <= day <= _as_date(site.end_date)


def sort_for_display(
    sites: Iterable[Site],
    as_of: date | datetime,
    urgent_window_days: int | None = None,
) -> list[Site]:
    """Order sites URGENT, ACTIVE, EXPIRED, then by ascending start date.

    ``sorted`` is stable, so ties keep their input order.
    """
    if urgent_window_days is None:
        urgent_window_days = get_config().lifecycle.urgent_window_days

    def sort_key(site: Site) -> tuple[int, date]:
        status = compute_temporal_status(site, as_of, urgent_window_days)
        return status.rank, _as_date(site.start_date)

    return sorted(sites, key=sort_key)


def sites_for_role(
    sites: Iterable[Site], role: Role | None, as_of: date | datetime
) -> list[Site]:
    """Sites a role may pick from: field roles hide expired sites, SUPPORT sees all.

    Without a role nothing is visible.
    """
    if role is None:
        return []
    if role.is_field_role:
        return [site for site in sites if is_visible_for_field_date(site, as_of)]
    return list(sites)


def monitoring_sites(
    sites: Iterable[Site],
    selected: date | datetime,
    as_of: date | datetime,
) -> list[Site]:
    """Sites running on the selected day, in display order relative to ``as_of``."""
    in_window = [site for site in sites if is_within_window(site, selected)]
    return sort_for_display(in_window, as_of)
