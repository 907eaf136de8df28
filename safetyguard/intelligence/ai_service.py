"""AI assistance for inspections: daily risk summary and photo classification.

Both calls are suggestions only. Any failure (missing API key, network or
parsing error) resolves to a safe fallback instead of propagating.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

import openai

from safetyguard.config import LLMConfig, get_config
from safetyguard.models import InspectionLog, RiskLevel

logger = logging.getLogger(__name__)

SUMMARY_UNAVAILABLE = "AI service is unavailable. Check the API key."
SUMMARY_EMPTY = "No analysis report was generated."
SUMMARY_FAILED = "The safety analysis could not be completed due to an error."
PHOTO_UNAVAILABLE = "AI service unavailable"
PHOTO_FAILED = "Unable to analyse photo."

_DATA_URL_PREFIX = re.compile(r"^data:image/(png|jpg|jpeg|webp);base64,", re.IGNORECASE)
_RISK_WORD = re.compile(r"\b(normal|caution|warning)\b|(정상|주의|경고)", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class PhotoAssessment:
    """Suggested risk level and a one-sentence description of a site photo."""

    risk: RiskLevel
    description: str
    available: bool = True


def format_log_line(log: InspectionLog) -> str:
    failed = ", ".join(log.failed_checks) or "none"
    return (
        f"[{log.risk_level.value}] Site: {log.site_name}, Inspector: {log.inspector_name}, "
        f"Notes: {log.notes}, Failed checks: {failed}"
    )


class SafetyAI:
    """OpenAI-backed summary and photo classification."""

    SUMMARY_SYSTEM_PROMPT = """You are the chief construction safety officer for a retail store.
Use a professional, analytical tone and focus on items rated WARNING.
Do not use markdown; write plain text with readable line breaks."""

    SUMMARY_USER_PROMPT = """Write a daily risk analysis report based on today's site inspection logs.

Use this structure:
1. [Overview] One sentence on the overall safety state of the sites
2. [Key risks] The 2-3 most serious hazards found and their causes
3. [Recommended actions] Concrete instructions for the site managers

Log data:
{logs}"""

    PHOTO_PROMPT = (
        "Analyse this construction site photo. 1. Classify the main safety risk level "
        "as exactly one of NORMAL, CAUTION or WARNING. 2. Describe the hazards or "
        "safety state in one sentence."
    )

    def __init__(self, llm: LLMConfig | None = None, client: openai.AsyncOpenAI | None = None):
        self.llm = llm or get_config().llm
        self.client = client
        if self.client is None and self.llm.provider == "openai" and self.llm.api_key:
            self.client = openai.AsyncOpenAI(api_key=self.llm.api_key)

    @property
    def available(self) -> bool:
        return self.client is not None

    async def summarize(self, logs: Sequence[InspectionLog]) -> str:
        """Plain-text daily risk report for the given logs."""
        if self.client is None:
            logger.error("ai_unavailable operation=summarize reason=missing_api_key")
            return SUMMARY_UNAVAILABLE

        logs_text = "\n".join(format_log_line(log) for log in logs)
        try:
            response = await self.client.chat.completions.create(
                model=self.llm.llm_model,
                messages=[
                    {"role": "system", "content": self.SUMMARY_SYSTEM_PROMPT},
                    {"role": "user", "content": self.SUMMARY_USER_PROMPT.format(logs=logs_text)},
                ],
                temperature=self.llm.temperature,
                max_tokens=self.llm.max_tokens,
            )
            return response.choices[0].message.content or SUMMARY_EMPTY
        except Exception as e:
            logger.error(f"Error generating safety summary: {e}")
            return SUMMARY_FAILED

    async def classify_photo(self, image_data: str) -> PhotoAssessment:
        """Suggest a risk level for a photo (base64 or data URL).

        A reply naming no level is treated as CAUTION; a failed call as NORMAL.
        """
        if self.client is None:
            logger.error("ai_unavailable operation=classify_photo reason=missing_api_key")
            return PhotoAssessment(RiskLevel.NORMAL, PHOTO_UNAVAILABLE, available=False)

        clean = _DATA_URL_PREFIX.sub("", image_data)
        try:
            response = await self.client.chat.completions.create(
                model=self.llm.vision_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": self.PHOTO_PROMPT},
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:image/jpeg;base64,{clean}"},
                            },
                        ],
                    }
                ],
                temperature=self.llm.temperature,
            )
            text = response.choices[0].message.content or ""
        except Exception as e:
            logger.error(f"Error classifying site photo: {e}")
            return PhotoAssessment(RiskLevel.NORMAL, PHOTO_FAILED, available=False)

        return PhotoAssessment(risk=parse_risk(text), description=text)


def parse_risk(text: str) -> RiskLevel:
    """First risk word in a model reply; CAUTION when it names none."""
    match = _RISK_WORD.search(text)
    if not match:
        return RiskLevel.CAUTION
    return RiskLevel.from_label(match.group(0)) or RiskLevel.CAUTION
