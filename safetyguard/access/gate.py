"""Sequential access gates: app-wide code, store code, role selection.

States advance strictly LOCKED -> STORE_SELECTION -> ROLE_SELECTION ->
FIELD_WORK | MONITORING. Every transition is a function from one
``SessionContext`` to the next; a rejected code raises ``GateRejection`` and the
caller keeps the context it already had.

The codes are static shared values, not per-user credentials. Attempts are
not counted or throttled.
"""

from __future__ import annotations

import hmac
import logging

from safetyguard.config import AccessConfig, get_config
from safetyguard.errors import GateRejection, GateStateError
from safetyguard.models import Role, Store
from safetyguard.session.context import GateState, SessionContext

logger = logging.getLogger(__name__)


# Single source of truth for which actions each state accepts
GATE_ACTIONS: dict[GateState, frozenset[str]] = {
    GateState.LOCKED: frozenset({"submit_app_code", "lock"}),
    GateState.STORE_SELECTION: frozenset(
        {"choose_store", "cancel_store_choice", "submit_store_code", "lock"}
    ),
    GateState.ROLE_SELECTION: frozenset(
        {
            "choose_role",
            "cancel_role_choice",
            "submit_support_code",
            "change_store",
            "lock",
        }
    ),
    GateState.FIELD_WORK: frozenset({"back", "change_store", "lock"}),
    GateState.MONITORING: frozenset({"back", "change_store", "lock"}),
}


def _require(ctx: SessionContext, action: str) -> None:
    if action not in GATE_ACTIONS[ctx.state]:
        raise GateStateError(f"'{action}' is not allowed in state {ctx.state.value}")


def _codes_match(submitted: str, expected: str) -> bool:
    return hmac.compare_digest(
        submitted.strip().encode("utf-8"), expected.encode("utf-8")
    )


class AccessGate:
    """Holds the shared secrets and applies gate transitions."""

    def __init__(self, access: AccessConfig | None = None):
        self.access = access or get_config().access

    # 1. App-wide gate

    def submit_app_code(self, ctx: SessionContext, code: str) -> SessionContext:
        _require(ctx, "submit_app_code")
        if not _codes_match(code, self.access.app_code):
            logger.info("gate_rejected gate=app")
            raise GateRejection("app", "Access code is incorrect.")
        logger.info("gate_unlocked gate=app")
        return SessionContext(state=GateState.STORE_SELECTION, app_unlocked=True)

    # 2. Store gate

    def choose_store(self, ctx: SessionContext, store: Store) -> SessionContext:
        """Open the code prompt for ``store``; any previous choice is dropped."""
        _require(ctx, "choose_store")
        return ctx.evolve(pending_store=store)

    def cancel_store_choice(self, ctx: SessionContext) -> SessionContext:
        _require(ctx, "cancel_store_choice")
        return ctx.evolve(pending_store=None)

    def submit_store_code(self, ctx: SessionContext, code: str) -> SessionContext:
        _require(ctx, "submit_store_code")
        store = ctx.pending_store
        if store is None:
            raise GateStateError("Choose a store before entering its code")
        if not _codes_match(code, store.access_code):
            logger.info("gate_rejected gate=store store_id=%s", store.id)
            raise GateRejection("store", "Store code is incorrect.")
        logger.info("gate_unlocked gate=store store_id=%s", store.id)
        return ctx.evolve(
            state=GateState.ROLE_SELECTION,
            active_store=store,
            active_role=None,
            pending_store=None,
            pending_role=None,
        )

    # 3. Role gate

    def choose_role(self, ctx: SessionContext, role: Role) -> SessionContext:
        """Field roles enter directly; SUPPORT opens the monitoring passcode prompt."""
        _require(ctx, "choose_role")
        if role.is_field_role:
            logger.info("role_selected role=%s", role.value)
            return ctx.evolve(
                state=GateState.FIELD_WORK, active_role=role, pending_role=None
            )
        return ctx.evolve(pending_role=role)

    def cancel_role_choice(self, ctx: SessionContext) -> SessionContext:
        _require(ctx, "cancel_role_choice")
        return ctx.evolve(pending_role=None)

    def submit_support_code(self, ctx: SessionContext, code: str) -> SessionContext:
        _require(ctx, "submit_support_code")
        if ctx.pending_role != Role.SUPPORT:
            raise GateStateError("Choose the support role before entering its code")
        if not _codes_match(code, self.access.support_code):
            logger.info("gate_rejected gate=support")
            raise GateRejection("support", "Monitoring password is incorrect.")
        logger.info("role_selected role=%s", Role.SUPPORT.value)
        return ctx.evolve(
            state=GateState.MONITORING, active_role=Role.SUPPORT, pending_role=None
        )

    # Exits

    def back(self, ctx: SessionContext) -> SessionContext:
        """Return to role selection, keeping the store."""
        _require(ctx, "back")
        return ctx.evolve(state=GateState.ROLE_SELECTION, active_role=None, pending_role=None)

    def change_store(self, ctx: SessionContext) -> SessionContext:
        """Return to store selection, clearing store and role."""
        _require(ctx, "change_store")
        return SessionContext(state=GateState.STORE_SELECTION, app_unlocked=True)

    def lock(self, ctx: SessionContext) -> SessionContext:
        """Clear everything."""
        _require(ctx, "lock")
        logger.info("session_locked")
        return SessionContext.locked()
