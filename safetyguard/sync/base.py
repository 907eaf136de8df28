"""Sync collaborator interface.

Reads are push-based: a subscription delivers full-replacement snapshots for
one store until it is detached. Writes are async and raise ``SyncError`` on
failure; the core never retries them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from safetyguard.models import InspectionLog, Site

SitesCallback = Callable[[list[Site]], None]
LogsCallback = Callable[[list[InspectionLog]], None]
Unsubscribe = Callable[[], None]


class SyncBackend(ABC):
    """Data-sync layer consumed by the session and operator services."""

    @abstractmethod
    def subscribe_sites(self, store_id: str, on_snapshot: SitesCallback) -> Unsubscribe:
        """Deliver every site of ``store_id`` now and after each change."""

    @abstractmethod
    def subscribe_logs(self, store_id: str, on_snapshot: LogsCallback) -> Unsubscribe:
        """Deliver every log of ``store_id`` (most recent first) now and after each change."""

    @abstractmethod
    async def create_site(self, data: Mapping[str, Any]) -> Site:
        ...

    @abstractmethod
    async def update_site(self, site: Site) -> Site:
        ...

    @abstractmethod
    async def delete_site(self, site_id: str) -> None:
        ...

    @abstractmethod
    async def append_log(self, log_data: Mapping[str, Any], store_id: str) -> InspectionLog:
        ...
