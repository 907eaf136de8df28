"""Session scope value passed through the access gate."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from safetyguard.models import Role, Store


class GateState(str, Enum):
    LOCKED = "LOCKED"
    STORE_SELECTION = "STORE_SELECTION"
    ROLE_SELECTION = "ROLE_SELECTION"
    FIELD_WORK = "FIELD_WORK"
    MONITORING = "MONITORING"


TERMINAL_STATES = frozenset({GateState.FIELD_WORK, GateState.MONITORING})


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Currently unlocked scope. Process-local and never persisted.

    ``pending_store`` is the store picked on the selection screen whose code
    has not been entered yet; ``pending_role`` is SUPPORT while its passcode
    prompt is open.
    """

    state: GateState = GateState.LOCKED
    app_unlocked: bool = False
    active_store: Store | None = None
    active_role: Role | None = None
    pending_store: Store | None = None
    pending_role: Role | None = None

    @classmethod
    def locked(cls) -> SessionContext:
        return cls()

    @property
    def scope_store_id(self) -> str | None:
        return self.active_store.id if self.active_store else None

    @property
    def is_scoped(self) -> bool:
        """Store and role both unlocked: engine outputs may be shown."""
        return self.state in TERMINAL_STATES

    def evolve(self, **changes) -> SessionContext:
        return replace(self, **changes)
