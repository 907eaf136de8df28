"""Scoped data for the active store.

``ScopedSession`` follows the gate's ``SessionContext``: it owns the sync
subscriptions for the active store and recomputes the visible sites and the
monitoring view from each delivered snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime

from safetyguard.aggregation.engine import MonitoringView, build_monitoring_view
from safetyguard.core.logging import bind_scope
from safetyguard.errors import GateStateError, SiteNotFoundError
from safetyguard.lifecycle.engine import sites_for_role
from safetyguard.models import InspectionLog, Role, Site
from safetyguard.session.context import SessionContext
from safetyguard.sync.base import SyncBackend, Unsubscribe

logger = logging.getLogger(__name__)

ChangeListener = Callable[["ScopedSession"], None]


class ScopedSession:
    """Holds the data of exactly one store scope at a time.

    Switching stores clears the previous data first, then detaches the old
    subscriptions, then attaches new ones. Snapshots addressed to any other
    store are ignored, so stale data never appears under the new store.
    """

    def __init__(self, sync: SyncBackend, context: SessionContext | None = None):
        self.sync = sync
        self.context = SessionContext.locked()
        self._sites: list[Site] = []
        self._logs: list[InspectionLog] = []
        self._raw_logs: list[InspectionLog] = []
        self._unsubscribers: list[Unsubscribe] = []
        self._subscribed_store_id: str | None = None
        self._listeners: list[ChangeListener] = []
        if context is not None:
            self.apply(context)

    # Scope management

    def apply(self, context: SessionContext) -> None:
        """Adopt a new gate context, re-subscribing if the store changed."""
        previous_store_id = self._subscribed_store_id
        self.context = context
        new_store_id = context.scope_store_id
        bind_scope(new_store_id, context.active_role.value if context.active_role else None)

        if new_store_id == previous_store_id:
            self._notify()
            return

        self._sites = []
        self._logs = []
        self._raw_logs = []
        self._detach()
        self._notify()

        if new_store_id is not None:
            self._attach(new_store_id)

    def close(self) -> None:
        self._detach()

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    @property
    def store_id(self) -> str | None:
        return self._subscribed_store_id

    @property
    def role(self) -> Role | None:
        return self.context.active_role

    @property
    def is_scoped(self) -> bool:
        return self.context.is_scoped

    @property
    def sites(self) -> list[Site]:
        """Sites of the active store; empty until a role has been unlocked."""
        if not self.is_scoped:
            return []
        return list(self._sites)

    @property
    def logs(self) -> list[InspectionLog]:
        if not self.is_scoped:
            return []
        return list(self._logs)

    # Derived views

    def visible_sites(self, as_of: date | datetime) -> list[Site]:
        """Sites the active role may pick: field roles do not see ended sites."""
        if not self.is_scoped:
            return []
        return sites_for_role(self._sites, self.role, as_of)

    def monitoring_view(self, selected: date | datetime, as_of: date | datetime) -> MonitoringView:
        self._require_scope()
        return build_monitoring_view(self._sites, self._logs, selected, as_of)

    def find_site(self, site_id: str) -> Site:
        self._require_scope()
        for site in self._sites:
            if site.id == site_id:
                return site
        raise SiteNotFoundError(site_id)

    def _require_scope(self) -> None:
        if not self.is_scoped:
            raise GateStateError(f"No role unlocked (state {self.context.state.value})")

    # Subscription plumbing

    def _attach(self, store_id: str) -> None:
        self._subscribed_store_id = store_id
        logger.info("subscription_attached store_id=%s", store_id)
        self._unsubscribers = [
            self.sync.subscribe_sites(store_id, lambda sites: self._on_sites(store_id, sites)),
            self.sync.subscribe_logs(store_id, lambda logs: self._on_logs(store_id, logs)),
        ]

    def _detach(self) -> None:
        if self._subscribed_store_id is not None:
            logger.info("subscription_detached store_id=%s", self._subscribed_store_id)
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._subscribed_store_id = None

    def _on_sites(self, store_id: str, sites: list[Site]) -> None:
        if store_id != self._subscribed_store_id:
            logger.debug("stale_snapshot_dropped kind=sites store_id=%s", store_id)
            return
        self._sites = [site for site in sites if site.store_id == store_id]
        self._logs = self._scope_logs(self._raw_logs)
        self._notify()

    def _on_logs(self, store_id: str, logs: list[InspectionLog]) -> None:
        if store_id != self._subscribed_store_id:
            logger.debug("stale_snapshot_dropped kind=logs store_id=%s", store_id)
            return
        self._raw_logs = list(logs)
        self._logs = self._scope_logs(logs)
        self._notify()

    def _scope_logs(self, logs: list[InspectionLog]) -> list[InspectionLog]:
        # Only logs for sites of this store; most recent first
        site_ids = {site.id for site in self._sites}
        scoped = [log for log in logs if log.site_id in site_ids]
        return sorted(scoped, key=lambda log: log.timestamp.timestamp(), reverse=True)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self)
