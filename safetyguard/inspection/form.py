"""Field inspection form and submission.

The first photo added to a new inspection is sent once to the photo
classifier. Its answer pre-fills the risk level and notes unless the operator
has already edited them; whatever the operator submits wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from safetyguard.errors import GateStateError, InspectionValidationError, SyncError
from safetyguard.intelligence.ai_service import PhotoAssessment, SafetyAI
from safetyguard.models import CHECKLIST_KEYS, Checklist, InspectionLog, RiskLevel, Role, Site
from safetyguard.notifications.notifier import Notifier
from safetyguard.risk.policy import classify_checklist, is_high_risk, suggest_risk_level
from safetyguard.session.scope import ScopedSession

logger = logging.getLogger(__name__)

MAX_PHOTOS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InspectionForm:
    """Draft of one inspection for one site by one field role."""

    def __init__(
        self,
        site: Site,
        role: Role,
        ai: SafetyAI | None = None,
        clock: Callable[[], datetime] = _utcnow,
        notifier: Notifier | None = None,
    ):
        if not role.is_field_role:
            raise GateStateError(f"Role {role.value} does not file inspections")
        self.site = site
        self.role = role
        self.ai = ai
        self.clock = clock
        self.notifier = notifier

        self.work_type = ""
        self.notes = ""
        self.risk_level = RiskLevel.NORMAL
        self.checklist: dict[str, bool] = {key: False for key in CHECKLIST_KEYS}
        self.photos: list[str] = []

        self.is_analyzing = False
        self.last_assessment: PhotoAssessment | None = None
        self.risk_source = "default"  # default | ai | operator
        self.submitted = False
        self._notes_edited = False
        self._analysis_generation = 0

    # Field edits

    def set_work_type(self, value: str) -> None:
        self.work_type = value

    def set_notes(self, value: str) -> None:
        self.notes = value
        self._notes_edited = True

    def set_risk_level(self, level: RiskLevel) -> None:
        self.risk_level = level
        self.risk_source = "operator"

    def toggle_check(self, key: str) -> bool:
        if key not in self.checklist:
            raise InspectionValidationError(key, f"Unknown checklist item '{key}'")
        self.checklist[key] = not self.checklist[key]
        return self.checklist[key]

    @property
    def suggested_risk_level(self) -> RiskLevel:
        """Hint from the checklist alone; never applied automatically."""
        return suggest_risk_level(self.checklist)

    # Photos

    async def add_photo(self, image_data: str) -> None:
        """Attach a photo; the first one of the inspection is classified once."""
        if len(self.photos) >= MAX_PHOTOS:
            raise InspectionValidationError("photos", f"At most {MAX_PHOTOS} photos per inspection")

        is_first = not self.photos
        self.photos.append(image_data)
        if not is_first or self.ai is None:
            return

        self._analysis_generation += 1
        generation = self._analysis_generation
        self.is_analyzing = True
        try:
            assessment = await self.ai.classify_photo(image_data)
        finally:
            if generation == self._analysis_generation:
                self.is_analyzing = False

        if generation != self._analysis_generation or self.submitted:
            logger.debug("photo_assessment_superseded site_id=%s", self.site.id)
            return
        self._apply_assessment(assessment)
        if not assessment.available and self.notifier is not None:
            # Non-blocking: the operator fills the form in by hand
            await self.notifier.warning(f"Photo analysis unavailable: {assessment.description}")

    def remove_photo(self, index: int) -> None:
        del self.photos[index]
        if not self.photos:
            # A pending result belongs to a photo that is gone
            self._analysis_generation += 1
            self.is_analyzing = False

    def _apply_assessment(self, assessment: PhotoAssessment) -> None:
        self.last_assessment = assessment
        if not assessment.available:
            return
        if self.risk_source != "operator":
            self.risk_level = assessment.risk
            self.risk_source = "ai"
        if assessment.description and not self._notes_edited and not self.notes:
            self.notes = assessment.description

    # Submission

    def validate(self) -> None:
        """Role-specific checks; only some roles must describe today's work."""
        if self.role.capability.validates_work_type and not self.work_type.strip():
            raise InspectionValidationError("work_type", "Enter today's main work in progress.")

    def build_log(self, store_id: str) -> dict[str, Any]:
        """Validated payload for the sync layer (the backend assigns the id)."""
        self.validate()
        if self.site.store_id != store_id:
            raise InspectionValidationError("site_id", "Site does not belong to the active store")
        return {
            "site_id": self.site.id,
            "site_name": self.site.name,
            "work_type": self.work_type.strip(),
            "timestamp": self.clock(),
            "photos": tuple(self.photos),
            "risk_level": self.risk_level,
            "notes": self.notes,
            "inspector_name": self.role.capability.inspector_name,
            "inspector_role": self.role,
            "checklist": Checklist(**self.checklist),
        }


def open_inspection(
    session: ScopedSession,
    site_id: str,
    ai: SafetyAI | None = None,
    clock: Callable[[], datetime] = _utcnow,
    notifier: Notifier | None = None,
) -> InspectionForm:
    """Start an inspection for a site of the current scope.

    Raises:
        SiteNotFoundError: The id is not in the active store's sites
        GateStateError: The session is not in a field role
    """
    role = session.role
    if role is None or not role.is_field_role:
        raise GateStateError("Inspections can only be filed from a field role")
    site = session.find_site(site_id)
    return InspectionForm(site, role, ai=ai, clock=clock, notifier=notifier)


class InspectionService:
    """Submits inspection forms through the sync layer."""

    def __init__(self, session: ScopedSession, notifier: Notifier):
        self.session = session
        self.notifier = notifier

    async def submit(self, form: InspectionForm) -> InspectionLog | None:
        """Append the inspection.

        Validation failures raise ``InspectionValidationError`` for inline
        display. Sync failures are reported as a notification and return None
        with the form left intact for a manual retry.
        """
        store_id = self.session.store_id
        if store_id is None:
            raise GateStateError("No active store")

        payload = form.build_log(store_id)
        tally = classify_checklist(payload["checklist"])

        try:
            log = await self.session.sync.append_log(payload, store_id)
        except SyncError as e:
            logger.error("inspection_submit_failed site_id=%s error=%s", form.site.id, e)
            await self.notifier.error("An error occurred while saving the inspection.")
            return None

        form.submitted = True
        logger.info(
            "inspection_submitted site_id=%s role=%s risk=%s failed_checks=%d",
            log.site_id,
            log.inspector_role.value,
            log.risk_level.value,
            tally.total,
        )
        await self.notifier.success("Inspection result saved.")
        if is_high_risk(log):
            await self.notifier.warning(f"WARNING reported at {log.site_name} by {log.inspector_name}")
        return log
