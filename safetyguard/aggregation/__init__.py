"""Multi-role inspection aggregation for the monitoring view."""

from safetyguard.aggregation.engine import (
    MonitoringView,
    RoleStatus,
    SiteOverview,
    StoreStatistics,
    build_monitoring_view,
)

__all__ = [
    "MonitoringView",
    "RoleStatus",
    "SiteOverview",
    "StoreStatistics",
    "build_monitoring_view",
]
