"""SafetyGuard configuration management.

Loads configuration from environment variables with sensible defaults.
Access codes are static shared secrets for a low-security gate, not credentials.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class AccessConfig:
    """Shared passcodes for the app-wide and monitoring gates."""

    app_code: str = "5119"
    support_code: str = "3449"


@dataclass
class LifecycleConfig:
    """Site lifecycle and daily aggregation settings."""

    urgent_window_days: int = 3
    expected_field_roles: int = 3  # Field roles expected to check each active site
    local_timezone: str = "Asia/Seoul"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.local_timezone)


@dataclass
class LLMConfig:
    """LLM configuration for daily summaries and photo classification."""

    provider: str = "openai"
    api_key: str | None = None
    llm_model: str = "gpt-4o-mini"
    vision_model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_tokens: int = 1200


@dataclass
class NotificationsConfig:
    """Notification settings (Slack)."""

    slack_webhook_url: str | None = None
    enabled: bool = False


@dataclass
class AppConfig:
    """Root application configuration."""

    log_level: str = "INFO"
    log_format: str = "text"  # text or json

    access: AccessConfig = field(default_factory=AccessConfig)
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        All settings are optional:
        - APP_ACCESS_CODE / SUPPORT_ACCESS_CODE: gate passcodes
        - URGENT_WINDOW_DAYS: days before end date a site counts as urgent (default: 3)
        - LOCAL_TIMEZONE: zone used to turn log timestamps into calendar dates
        - OPENAI_API_KEY: enables AI summaries and photo classification
        - LOG_LEVEL: Logging verbosity (default: "INFO")

        Raises:
            ValueError: If a numeric setting cannot be parsed
        """
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
            access=AccessConfig(
                app_code=os.getenv("APP_ACCESS_CODE", "5119"),
                support_code=os.getenv("SUPPORT_ACCESS_CODE", "3449"),
            ),
            lifecycle=LifecycleConfig(
                urgent_window_days=int(os.getenv("URGENT_WINDOW_DAYS", "3")),
                expected_field_roles=int(os.getenv("EXPECTED_FIELD_ROLES", "3")),
                local_timezone=os.getenv("LOCAL_TIMEZONE", "Asia/Seoul"),
            ),
            llm=LLMConfig(
                provider=os.getenv("LLM_PROVIDER", "openai"),
                api_key=os.getenv("OPENAI_API_KEY") or None,
                llm_model=os.getenv("LLM_MODEL", "gpt-4o-mini"),
                vision_model=os.getenv("VISION_MODEL", "gpt-4o-mini"),
                temperature=float(os.getenv("LLM_TEMPERATURE", "0.2")),
                max_tokens=int(os.getenv("LLM_MAX_TOKENS", "1200")),
            ),
            notifications=NotificationsConfig(
                slack_webhook_url=os.getenv("SLACK_WEBHOOK_URL"),
                enabled=os.getenv("SLACK_NOTIFICATIONS_ENABLED", "false").lower()
                == "true",
            ),
        )


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Returns:
        AppConfig: Application configuration
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    global _config
    _config = None
