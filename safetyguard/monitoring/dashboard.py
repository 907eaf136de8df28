"""Monitoring dashboard for the support role.

Combines the aggregation view for a selected day, the AI daily summary and
site administration (create, edit, delete) for the active store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum

from safetyguard.aggregation.engine import MonitoringView, has_warning_today
from safetyguard.config import get_config
from safetyguard.errors import GateStateError, SiteValidationError, SyncError
from safetyguard.intelligence.ai_service import SafetyAI
from safetyguard.lifecycle.engine import sort_for_display
from safetyguard.models import Role, Site, SiteStatus
from safetyguard.notifications.notifier import Notifier
from safetyguard.session.scope import ScopedSession

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DashboardTab(str, Enum):
    MONITORING = "MONITORING"
    ANALYSIS = "ANALYSIS"
    MANAGEMENT = "MANAGEMENT"


@dataclass
class SiteForm:
    """Add/edit form for a construction site."""

    name: str = ""
    department: str = ""
    start_date: date | None = None
    end_date: date | None = None
    floor_label: str = "1F"
    location: str = ""
    status: SiteStatus = SiteStatus.PENDING
    id: str | None = None
    store_id: str | None = None

    @classmethod
    def from_site(cls, site: Site) -> SiteForm:
        return cls(
            name=site.name,
            department=site.department,
            start_date=site.start_date,
            end_date=site.end_date,
            floor_label=site.floor_label,
            location=site.location,
            status=site.status,
            id=site.id,
            store_id=site.store_id,
        )

    def validate(self) -> None:
        for field_name in ("name", "department"):
            if not getattr(self, field_name).strip():
                raise SiteValidationError(field_name, f"'{field_name}' is required")
        if self.start_date is None:
            raise SiteValidationError("start_date", "'start_date' is required")
        if self.end_date is None:
            raise SiteValidationError("end_date", "'end_date' is required")
        if self.end_date < self.start_date:
            raise SiteValidationError("end_date", "End date is before start date")

    def to_site_data(self, store_id: str) -> dict:
        self.validate()
        return {
            "store_id": store_id,
            "name": self.name.strip(),
            "department": self.department.strip(),
            "location": self.location.strip(),
            "floor_label": self.floor_label or "1F",
            "start_date": self.start_date,
            "end_date": self.end_date,
            "status": self.status,
        }


class MonitoringDashboard:
    """State behind the support role's tabs."""

    def __init__(
        self,
        session: ScopedSession,
        ai: SafetyAI | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if session.role != Role.SUPPORT:
            raise GateStateError("The monitoring dashboard requires the support role")
        self.session = session
        self.ai = ai
        self.notifier = notifier or Notifier()
        self.clock = clock

        self.tab = DashboardTab.MONITORING
        self.selected_date = self.today()
        self.summary = ""
        self.summary_loading = False
        self.delete_target_id: str | None = None
        self._summary_generation = 0

    def today(self) -> date:
        now = self.clock()
        if now.tzinfo is None:
            return now.date()
        return now.astimezone(get_config().lifecycle.tzinfo).date()

    # Views

    def view(self) -> MonitoringView:
        return self.session.monitoring_view(self.selected_date, self.today())

    def management_sites(self) -> list[Site]:
        """Every site of the store, expired included, in display order."""
        return sort_for_display(self.session.sites, self.today())

    @property
    def has_alert(self) -> bool:
        return has_warning_today(self.session.logs, self.today())

    def select_date(self, selected: date) -> None:
        if selected != self.selected_date:
            self.selected_date = selected
            self.summary = ""

    async def select_tab(self, tab: DashboardTab) -> None:
        """Switch tab; the analysis tab requests a summary if none exists yet."""
        self.tab = tab
        if tab == DashboardTab.ANALYSIS and not self.summary and self.view().date_logs:
            await self.refresh_summary()

    # AI summary

    async def refresh_summary(self) -> str:
        """Summarise the selected day's logs. A newer request supersedes an older one."""
        date_logs = self.view().date_logs
        if not date_logs or self.ai is None:
            return self.summary

        self._summary_generation += 1
        generation = self._summary_generation
        self.summary_loading = True
        try:
            text = await self.ai.summarize(list(date_logs))
        finally:
            if generation == self._summary_generation:
                self.summary_loading = False

        if generation == self._summary_generation:
            self.summary = text
        return self.summary

    # Site administration

    async def add_site(self, form: SiteForm) -> Site | None:
        store_id = self._store_id()
        data = form.to_site_data(store_id)
        try:
            site = await self.session.sync.create_site(data)
        except SyncError as e:
            logger.error("site_create_failed store_id=%s error=%s", store_id, e)
            await self.notifier.error("An error occurred while registering the site.")
            return None
        logger.info("site_created site_id=%s store_id=%s", site.id, store_id)
        return site

    async def update_site(self, form: SiteForm) -> Site | None:
        store_id = self._store_id()
        if form.id is None:
            raise SiteValidationError("id", "Only an existing site can be edited")
        current = self.session.find_site(form.id)
        if form.store_id is not None and form.store_id != current.store_id:
            raise SiteValidationError("store_id", "A site cannot move to another store")

        site = Site.model_validate({**form.to_site_data(current.store_id), "id": current.id})
        try:
            updated = await self.session.sync.update_site(site)
        except SyncError as e:
            logger.error("site_update_failed site_id=%s error=%s", site.id, e)
            await self.notifier.error(f"An error occurred while updating the site: {e}")
            return None
        logger.info("site_updated site_id=%s store_id=%s", updated.id, store_id)
        return updated

    def request_delete(self, site_id: str) -> None:
        self.session.find_site(site_id)
        self.delete_target_id = site_id

    def cancel_delete(self) -> None:
        self.delete_target_id = None

    async def confirm_delete(self) -> bool:
        site_id = self.delete_target_id
        if site_id is None:
            return False
        self.delete_target_id = None
        try:
            await self.session.sync.delete_site(site_id)
        except SyncError as e:
            logger.error("site_delete_failed site_id=%s error=%s", site_id, e)
            await self.notifier.error("An error occurred while deleting the site.")
            return False
        logger.info("site_deleted site_id=%s", site_id)
        return True

    def _store_id(self) -> str:
        store_id = self.session.store_id
        if store_id is None:
            raise GateStateError("No active store")
        return store_id
