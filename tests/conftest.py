"""Pytest configuration and fixtures for SafetyGuard tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone

import pytest

from safetyguard.access.gate import AccessGate
from safetyguard.config import AccessConfig, reset_config
from safetyguard.intelligence.ai_service import PhotoAssessment
from safetyguard.models import Checklist, InspectionLog, RiskLevel, Role, Site, Store, StoreCategory
from safetyguard.session.context import GateState, SessionContext
from safetyguard.session.scope import ScopedSession
from safetyguard.sync.memory import InMemorySyncBackend

FIXED_NOW = datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("APP_ACCESS_CODE", "5119")
    monkeypatch.setenv("SUPPORT_ACCESS_CODE", "3449")
    monkeypatch.setenv("LOCAL_TIMEZONE", "UTC")
    monkeypatch.setenv("URGENT_WINDOW_DAYS", "3")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("SLACK_NOTIFICATIONS_ENABLED", "false")
    reset_config()
    yield
    reset_config()


@pytest.fixture
def store_a() -> Store:
    return Store(id="dept-9", name="Pangyo", access_code="1122", category=StoreCategory.DEPARTMENT)


@pytest.fixture
def store_b() -> Store:
    return Store(id="outlet-1", name="Premium Outlet Gimpo", access_code="1124", category=StoreCategory.OUTLET)


def make_site(
    site_id: str = "site-1",
    store_id: str = "dept-9",
    start: date = date(2024, 6, 1),
    end: date = date(2024, 6, 30),
    name: str | None = None,
) -> Site:
    return Site(
        id=site_id,
        store_id=store_id,
        name=name or f"Site {site_id}",
        floor_label="1F",
        department="Food hall",
        location="Gate 3",
        start_date=start,
        end_date=end,
    )


def make_log(
    log_id: str = "log-1",
    site_id: str = "site-1",
    role: Role = Role.FACILITY,
    risk: RiskLevel = RiskLevel.NORMAL,
    timestamp: datetime = FIXED_NOW,
    work_type: str = "",
    notes: str = "",
    checklist: Checklist | None = None,
    photos: tuple[str, ...] = (),
    store_id: str | None = "dept-9",
) -> InspectionLog:
    return InspectionLog(
        id=log_id,
        site_id=site_id,
        site_name=f"Site {site_id}",
        work_type=work_type,
        timestamp=timestamp,
        photos=photos,
        risk_level=risk,
        notes=notes,
        inspector_name=role.capability.inspector_name,
        inspector_role=role,
        checklist=checklist
        or Checklist(ppe=True, fire_safety=True, electrical=True, environment=True),
        store_id=store_id,
    )


@pytest.fixture
def site_factory():
    return make_site


@pytest.fixture
def log_factory():
    return make_log


@pytest.fixture
def gate() -> AccessGate:
    return AccessGate(AccessConfig(app_code="5119", support_code="3449"))


@pytest.fixture
def backend() -> InMemorySyncBackend:
    return InMemorySyncBackend(clock=lambda: FIXED_NOW)


def scoped_context(store: Store, role: Role) -> SessionContext:
    state = GateState.MONITORING if role == Role.SUPPORT else GateState.FIELD_WORK
    return SessionContext(state=state, app_unlocked=True, active_store=store, active_role=role)


@pytest.fixture
def context_factory():
    return scoped_context


@pytest.fixture
def support_session(backend, store_a) -> ScopedSession:
    session = ScopedSession(backend, scoped_context(store_a, Role.SUPPORT))
    yield session
    session.close()


class FakeAI:
    """Stand-in for SafetyAI with controllable answers and optional blocking."""

    def __init__(
        self,
        assessment: PhotoAssessment | None = None,
        summary: str = "All sites nominal.",
    ):
        self.assessment = assessment or PhotoAssessment(RiskLevel.WARNING, "Worker without helmet")
        self.summary_text = summary
        self.photo_calls: list[str] = []
        self.summary_calls: list[list[InspectionLog]] = []
        self.gate: asyncio.Event | None = None

    async def classify_photo(self, image_data: str) -> PhotoAssessment:
        self.photo_calls.append(image_data)
        if self.gate is not None:
            await self.gate.wait()
        return self.assessment

    async def summarize(self, logs) -> str:
        self.summary_calls.append(list(logs))
        text = self.summary_text
        if self.gate is not None:
            await self.gate.wait()
        return text


@pytest.fixture
def fake_ai() -> FakeAI:
    return FakeAI()
