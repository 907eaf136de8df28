"""In-process sync backend.

Delivers snapshots synchronously to subscribers. Used by the CLI (loaded from a
JSON snapshot file) and by the test suite.
"""

from __future__ import annotations

import itertools
import json
import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from safetyguard.errors import SyncError
from safetyguard.models import Checklist, InspectionLog, Site
from safetyguard.sync.base import LogsCallback, SitesCallback, SyncBackend, Unsubscribe

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemorySyncBackend(SyncBackend):
    """Dict-backed store of sites and append-only logs."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self.clock = clock
        self._sites: dict[str, Site] = {}
        self._logs: list[InspectionLog] = []
        self._site_subscribers: dict[int, tuple[str, SitesCallback]] = {}
        self._log_subscribers: dict[int, tuple[str, LogsCallback]] = {}
        self._ids = itertools.count(1)

    # Snapshot loading

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any], **kwargs) -> InMemorySyncBackend:
        """Seed a backend from ``{"sites": [...], "logs": [...]}`` payloads.

        Logs with partial checklists are accepted: absent keys are recorded as
        non-compliant.
        """
        backend = cls(**kwargs)
        try:
            for raw in data.get("sites", []):
                site = Site.model_validate(raw)
                backend._sites[site.id] = site
            for raw in data.get("logs", []):
                raw = dict(raw)
                checklist = raw.get("checklist") or {}
                if isinstance(checklist, Mapping):
                    completed = Checklist.from_partial(checklist)
                    if len(checklist) < 4:
                        logger.warning(
                            "partial_checklist log_id=%s keys=%s", raw.get("id"), sorted(checklist)
                        )
                    raw["checklist"] = completed
                backend._logs.append(InspectionLog.model_validate(raw))
        except ValidationError as e:
            raise SyncError(f"Invalid snapshot data: {e}") from e
        return backend

    @classmethod
    def from_file(cls, path: Path, **kwargs) -> InMemorySyncBackend:
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise SyncError(f"Cannot read snapshot {path}: {e}") from e
        return cls.from_snapshot(data, **kwargs)

    # Subscriptions

    def subscribe_sites(self, store_id: str, on_snapshot: SitesCallback) -> Unsubscribe:
        token = next(self._ids)
        self._site_subscribers[token] = (store_id, on_snapshot)
        on_snapshot(self._sites_for(store_id))

        def unsubscribe() -> None:
            self._site_subscribers.pop(token, None)

        return unsubscribe

    def subscribe_logs(self, store_id: str, on_snapshot: LogsCallback) -> Unsubscribe:
        token = next(self._ids)
        self._log_subscribers[token] = (store_id, on_snapshot)
        on_snapshot(self._logs_for(store_id))

        def unsubscribe() -> None:
            self._log_subscribers.pop(token, None)

        return unsubscribe

    def active_subscriptions(self, store_id: str | None = None) -> int:
        entries = list(self._site_subscribers.values()) + list(self._log_subscribers.values())
        if store_id is None:
            return len(entries)
        return sum(1 for scope, _ in entries if scope == store_id)

    # Writes

    async def create_site(self, data: Mapping[str, Any]) -> Site:
        payload = dict(data)
        payload.pop("id", None)
        try:
            site = Site.model_validate({**payload, "id": f"site-{uuid4().hex[:12]}"})
        except ValidationError as e:
            raise SyncError(f"Site rejected by backend: {e}") from e
        self._sites[site.id] = site
        self._publish_sites(site.store_id)
        return site

    async def update_site(self, site: Site) -> Site:
        existing = self._sites.get(site.id)
        if existing is None:
            raise SyncError(f"Site '{site.id}' does not exist")
        if existing.store_id != site.store_id:
            raise SyncError("A site cannot move to another store")
        self._sites[site.id] = site
        self._publish_sites(site.store_id)
        return site

    async def delete_site(self, site_id: str) -> None:
        site = self._sites.pop(site_id, None)
        if site is None:
            raise SyncError(f"Site '{site_id}' does not exist")
        self._publish_sites(site.store_id)

    async def append_log(self, log_data: Mapping[str, Any], store_id: str) -> InspectionLog:
        payload = dict(log_data)
        payload.pop("id", None)
        payload["store_id"] = store_id
        # Server-side timestamp, like the hosted backend
        payload["timestamp"] = self.clock()
        try:
            log = InspectionLog.model_validate({**payload, "id": f"log-{uuid4().hex[:12]}"})
        except ValidationError as e:
            raise SyncError(f"Log rejected by backend: {e}") from e
        self._logs.append(log)
        self._publish_logs(store_id)
        return log

    # Internals

    def _sites_for(self, store_id: str) -> list[Site]:
        return [site for site in self._sites.values() if site.store_id == store_id]

    def _logs_for(self, store_id: str) -> list[InspectionLog]:
        site_ids = {site.id for site in self._sites_for(store_id)}
        logs = [
            log
            for log in self._logs
            if log.store_id == store_id or (log.store_id is None and log.site_id in site_ids)
        ]
        # Most recent first; sorted() keeps insertion order for equal timestamps
        return sorted(logs, key=lambda log: log.timestamp.timestamp(), reverse=True)

    def _publish_sites(self, store_id: str) -> None:
        for scope, callback in list(self._site_subscribers.values()):
            if scope == store_id:
                callback(self._sites_for(store_id))
        # Logs are scoped through sites when they carry no store id
        self._publish_logs(store_id)

    def _publish_logs(self, store_id: str) -> None:
        for scope, callback in list(self._log_subscribers.values()):
            if scope == store_id:
                callback(self._logs_for(store_id))
