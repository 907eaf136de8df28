"""Exception hierarchy for SafetyGuard.

None of these are fatal: every one is recoverable by re-prompting the operator
or letting them retry the action.
"""

from __future__ import annotations


class SafetyGuardError(Exception):
    """Base class for all SafetyGuard errors."""
    pass


class GateRejection(SafetyGuardError):
    """Raised when a passcode does not match at one of the access gates."""

    def __init__(self, gate: str, message: str | None = None):
        self.gate = gate
        super().__init__(message or f"Incorrect code for {gate} gate")


class GateStateError(SafetyGuardError):
    """Raised when a gate action is not allowed in the current state."""
    pass


class InspectionValidationError(SafetyGuardError):
    """Raised when an inspection is missing required fields."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class SiteValidationError(SafetyGuardError):
    """Raised when a site form is incomplete or inconsistent."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class SiteNotFoundError(SafetyGuardError):
    """Raised when a site id is not present in the current store scope."""

    def __init__(self, site_id: str):
        self.site_id = site_id
        super().__init__(f"Site '{site_id}' not found in the current store")


class SyncError(SafetyGuardError):
    """Raised by the sync layer when a read or write fails."""
    pass
