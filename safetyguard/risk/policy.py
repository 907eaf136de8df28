"""Risk policy for inspection logs.

Pure functions mapping checklist and risk signals to tallies and levels.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from safetyguard.models import CHECKLIST_KEYS, Checklist, InspectionLog, RiskLevel, checklist_value


@dataclass(frozen=True, slots=True)
class FailureTally:
    """Count of non-compliant checks per checklist key."""

    ppe: int = 0
    fire_safety: int = 0
    electrical: int = 0
    environment: int = 0

    def __add__(self, other: object) -> FailureTally:
        if not isinstance(other, FailureTally):
            return NotImplemented
        return FailureTally(
            ppe=self.ppe + other.ppe,
            fire_safety=self.fire_safety + other.fire_safety,
            electrical=self.electrical + other.electrical,
            environment=self.environment + other.environment,
        )

    def __radd__(self, other: object) -> FailureTally:
        # Lets sum() start from 0
        if other == 0:
            return self
        return self.__add__(other)

    @property
    def total(self) -> int:
        return self.ppe + self.fire_safety + self.electrical + self.environment

    def as_dict(self) -> dict[str, int]:
        return {key: getattr(self, key) for key in CHECKLIST_KEYS}


def classify_checklist(checklist: Checklist | Mapping[str, Any]) -> FailureTally:
    """Tally one failure for every key that is falsy or missing.

    Missing keys are non-compliant. Accepts a Checklist model or a raw mapping
    (snake_case or camelCase keys).
    """
    if isinstance(checklist, Checklist):
        data: Mapping[str, Any] = checklist.model_dump()
    else:
        data = checklist
    return FailureTally(
        **{key: 0 if checklist_value(data, key) else 1 for key in CHECKLIST_KEYS}
    )


def is_high_risk(log: InspectionLog) -> bool:
    return log.risk_level == RiskLevel.WARNING


def daily_failure_aggregate(logs: Iterable[InspectionLog]) -> FailureTally:
    """Sum checklist failures over a log collection (order independent)."""
    return sum((classify_checklist(log.checklist) for log in logs), FailureTally())


def suggest_risk_level(checklist: Checklist | Mapping[str, Any]) -> RiskLevel:
    """Default risk level for a new inspection from its checklist alone.

    Only a starting suggestion; the level the operator submits always wins.
    """
    failures = classify_checklist(checklist).total
    if failures == 0:
        return RiskLevel.NORMAL
    if failures == 1:
        return RiskLevel.CAUTION
    return RiskLevel.WARNING
