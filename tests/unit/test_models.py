"""Unit tests for SafetyGuard Pydantic models.

Tests data validation, aliases and the role capability table.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from safetyguard.models import (
    FIELD_ROLES,
    Checklist,
    InspectionLog,
    RiskLevel,
    Role,
    Site,
    SiteStatus,
    Store,
)


class TestRiskLevel:
    def test_ordering(self):
        assert RiskLevel.NORMAL < RiskLevel.CAUTION < RiskLevel.WARNING
        assert max([RiskLevel.CAUTION, RiskLevel.WARNING, RiskLevel.NORMAL]) == RiskLevel.WARNING

    @pytest.mark.parametrize(
        "label, expected",
        [
            ("Warning", RiskLevel.WARNING),
            (" caution ", RiskLevel.CAUTION),
            ("정상", RiskLevel.NORMAL),
            ("경고", RiskLevel.WARNING),
            ("danger", None),
            ("", None),
            (None, None),
        ],
    )
    def test_from_label(self, label, expected):
        assert RiskLevel.from_label(label) == expected


class TestRoles:
    def test_field_roles(self):
        assert FIELD_ROLES == (Role.FACILITY, Role.SAFETY, Role.SALES)
        assert not Role.SUPPORT.is_field_role

    def test_only_safety_validates_work_type(self):
        assert [role for role in Role if role.capability.validates_work_type] == [Role.SAFETY]


class TestStore:
    def test_access_code_hidden_from_repr(self):
        store = Store(id="dept-9", name="Pangyo", access_code="1122")
        assert "1122" not in repr(store)

    def test_frozen(self):
        store = Store(id="dept-9", name="Pangyo", access_code="1122")
        with pytest.raises(ValidationError):
            store.name = "Other"


class TestSite:
    def test_camel_case_snapshot(self):
        site = Site.model_validate(
            {
                "id": "abc",
                "storeId": "dept-9",
                "name": "Escalator hall",
                "floorLabel": "B1",
                "department": "Food hall",
                "location": "Gate 3",
                "startDate": "2024-06-01",
                "endDate": "2024-06-10T00:00:00Z",
                "status": "IN_PROGRESS",
            }
        )
        assert site.store_id == "dept-9"
        assert site.end_date == date(2024, 6, 10)
        assert site.status == SiteStatus.IN_PROGRESS

    def test_defaults(self):
        site = Site(store_id="dept-9", name="Hall", start_date=date(2024, 6, 1), end_date=date(2024, 6, 2))
        assert site.id.startswith("site-")
        assert site.floor_label == "1F"
        assert site.status == SiteStatus.PENDING

    def test_datetime_truncated_to_date(self):
        site = Site(
            store_id="dept-9",
            name="Hall",
            start_date=datetime(2024, 6, 1, 15, 0),
            end_date=datetime(2024, 6, 2, 23, 59),
        )
        assert site.start_date == date(2024, 6, 1)

    def test_empty_store_rejected(self):
        with pytest.raises(ValidationError):
            Site(store_id="", name="Hall", start_date=date(2024, 6, 1), end_date=date(2024, 6, 2))


class TestChecklist:
    def test_from_partial(self):
        checklist = Checklist.from_partial({"ppe": True, "fireSafety": True})
        assert checklist.failed_keys() == ["electrical", "environment"]

    def test_all_fields_required(self):
        with pytest.raises(ValidationError):
            Checklist(ppe=True)

    def test_blank(self):
        assert len(Checklist.blank().failed_keys()) == 4


class TestInspectionLog:
    def test_epoch_millis_timestamp(self):
        log = InspectionLog.model_validate(
            {
                "id": "l1",
                "siteId": "s1",
                "timestamp": 1718011800000,
                "riskLevel": "WARNING",
                "inspectorRole": "SAFETY",
                "checklist": {"ppe": True, "fireSafety": False, "electrical": True, "environment": True},
                "photos": None,
            }
        )
        assert log.timestamp == datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc)
        assert log.risk_level == RiskLevel.WARNING
        assert log.photos == ()
        assert log.failed_checks == ["fire_safety"]
        assert log.store_id is None

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            InspectionLog(
                site_id="s1",
                timestamp=datetime(2024, 6, 10, tzinfo=timezone.utc),
                inspector_role="MANAGER",
                checklist=Checklist.blank(),
            )
