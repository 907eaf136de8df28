"""SafetyGuard Pydantic models for type-safe data validation.

Field names are snake_case in Python; snapshots from the sync layer use
camelCase and are accepted through aliases.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CHECKLIST_KEYS: tuple[str, ...] = ("ppe", "fire_safety", "electrical", "environment")


class StoreCategory(str, Enum):
    """Kind of retail location."""

    DEPARTMENT = "DEPARTMENT"
    OUTLET = "OUTLET"


class SiteStatus(str, Enum):
    """User-set workflow label, independent of the computed temporal status."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class Role(str, Enum):
    """Operator roles within a store."""

    FACILITY = "FACILITY"
    SAFETY = "SAFETY"
    SALES = "SALES"
    SUPPORT = "SUPPORT"  # Monitoring / administration

    @property
    def capability(self) -> RoleCapability:
        return ROLE_CAPABILITIES[self]

    @property
    def is_field_role(self) -> bool:
        return ROLE_CAPABILITIES[self].is_field_role


_RISK_RANK = {"NORMAL": 0, "CAUTION": 1, "WARNING": 2}

# Labels the photo classifier may answer with
_RISK_LABELS = {
    "normal": "NORMAL",
    "caution": "CAUTION",
    "warning": "WARNING",
    "정상": "NORMAL",
    "주의": "CAUTION",
    "경고": "WARNING",
}


class RiskLevel(str, Enum):
    """Ordered risk levels; WARNING is the most severe."""

    NORMAL = "NORMAL"
    CAUTION = "CAUTION"
    WARNING = "WARNING"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self.value]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def from_label(cls, label: str | None) -> RiskLevel | None:
        """Map a free-text label ("Warning", "경고", ...) to a level, or None."""
        if not label:
            return None
        key = _RISK_LABELS.get(label.strip().lower())
        return cls(key) if key else None


@dataclass(frozen=True, slots=True)
class RoleCapability:
    """Per-role behaviour table consulted instead of branching on the role."""

    label: str
    accent_color: str
    is_field_role: bool
    validates_work_type: bool
    inspector_name: str
    short_label: str


ROLE_CAPABILITIES: dict[Role, RoleCapability] = {
    Role.FACILITY: RoleCapability(
        label="Facility inspection",
        accent_color="blue",
        is_field_role=True,
        validates_work_type=False,
        inspector_name="Facility officer",
        short_label="Facility",
    ),
    Role.SAFETY: RoleCapability(
        label="Safety inspection",
        accent_color="emerald",
        is_field_role=True,
        validates_work_type=True,
        inspector_name="Safety manager",
        short_label="Safety",
    ),
    Role.SALES: RoleCapability(
        label="Sales inspection",
        accent_color="purple",
        is_field_role=True,
        validates_work_type=False,
        inspector_name="Sales manager",
        short_label="Sales",
    ),
    Role.SUPPORT: RoleCapability(
        label="Monitoring center",
        accent_color="slate",
        is_field_role=False,
        validates_work_type=False,
        inspector_name="Support team",
        short_label="Support",
    ),
}

FIELD_ROLES: tuple[Role, ...] = tuple(role for role in Role if role.is_field_role)


class Store(BaseModel):
    """Retail location. Reference data: selected, never mutated."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    access_code: str = Field(repr=False)
    category: StoreCategory = StoreCategory.DEPARTMENT


def _coerce_date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return value


class Site(BaseModel):
    """Construction site inside a store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "storeId": "dept-9",
                "name": "Escalator hall ceiling",
                "floorLabel": "B1",
                "department": "Food hall",
                "location": "Near gate 3",
                "startDate": "2024-06-01",
                "endDate": "2024-06-10",
                "status": "IN_PROGRESS",
            }
        },
    )

    id: str = Field(default_factory=lambda: f"site-{uuid4().hex[:12]}")
    store_id: str
    name: str
    floor_label: str = "1F"
    department: str = ""
    location: str = ""
    start_date: date
    end_date: date
    status: SiteStatus = SiteStatus.PENDING

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_dates(cls, v: Any) -> Any:
        # Time of day is never significant for site periods
        return _coerce_date(v)

    @field_validator("store_id")
    @classmethod
    def validate_store_id(cls, v: str) -> str:
        if not v:
            raise ValueError("store_id must not be empty")
        return v


def checklist_value(data: Mapping[str, Any], key: str) -> bool:
    """Read one checklist key; a missing key counts as non-compliant."""
    if key in data:
        return bool(data[key])
    camel = to_camel(key)
    if camel in data:
        return bool(data[camel])
    return False


class Checklist(BaseModel):
    """Four compliance checks; True means compliant."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    ppe: bool
    fire_safety: bool
    electrical: bool
    environment: bool

    @classmethod
    def blank(cls) -> Checklist:
        return cls(ppe=False, fire_safety=False, electrical=False, environment=False)

    @classmethod
    def from_partial(cls, data: Mapping[str, Any]) -> Checklist:
        """Build a complete checklist, treating absent keys as non-compliant."""
        return cls(**{key: checklist_value(data, key) for key in CHECKLIST_KEYS})

    def failed_keys(self) -> list[str]:
        return [key for key in CHECKLIST_KEYS if not getattr(self, key)]


def _coerce_timestamp(value: Any) -> Any:
    # Sync snapshots carry epoch milliseconds
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return value


class InspectionLog(BaseModel):
    """Append-only record of one inspection submission."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: f"log-{uuid4().hex[:12]}")
    site_id: str
    site_name: str = ""
    work_type: str = ""
    timestamp: datetime
    photos: tuple[str, ...] = ()
    risk_level: RiskLevel = RiskLevel.NORMAL
    notes: str = ""
    inspector_name: str = ""
    inspector_role: Role
    checklist: Checklist
    store_id: str | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> Any:
        return _coerce_timestamp(v)

    @field_validator("photos", mode="before")
    @classmethod
    def parse_photos(cls, v: Any) -> Any:
        if v is None:
            return ()
        return tuple(v)

    @property
    def failed_checks(self) -> list[str]:
        return self.checklist.failed_keys()
