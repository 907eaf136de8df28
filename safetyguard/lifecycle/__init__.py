"""Site lifecycle classification and ordering."""

from safetyguard.lifecycle.engine import (
    TemporalKind,
    TemporalStatus,
    compute_temporal_status,
    is_visible_for_field_date,
    is_within_window,
    sort_for_display,
)

__all__ = [
    "TemporalKind",
    "TemporalStatus",
    "compute_temporal_status",
    "is_visible_for_field_date",
    "is_within_window",
    "sort_for_display",
]
