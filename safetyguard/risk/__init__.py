"""Risk policy for inspection checklists."""

from safetyguard.risk.policy import (
    FailureTally,
    classify_checklist,
    daily_failure_aggregate,
    is_high_risk,
    suggest_risk_level,
)

__all__ = [
    "FailureTally",
    "classify_checklist",
    "daily_failure_aggregate",
    "is_high_risk",
    "suggest_risk_level",
]
