import logging

import httpx

from safetyguard.config import NotificationsConfig, get_config

logger = logging.getLogger(__name__)


async def send_slack_notification(
    message: str,
    blocks: list[dict] | None = None,
    settings: NotificationsConfig | None = None,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """Send a notification to Slack via webhook.

    Args:
        message: The fallback text message.
        blocks: Optional list of Slack Block Kit blocks for rich formatting.
        settings: Notification settings (defaults to the app config).
        client: Optional HTTP client to reuse.

    Returns:
        bool: True if successful, False otherwise.
    """
    settings = settings or get_config().notifications

    # Check if notifications are enabled and webhook URL is configured
    if not settings.enabled:
        logger.debug("slack_notifications_disabled_by_config")
        return False

    if not settings.slack_webhook_url:
        logger.warning("slack_webhook_url_missing: Notifications enabled but no webhook URL configured")
        return False

    payload: dict = {"text": message}
    if blocks:
        payload["blocks"] = blocks

    try:
        if client is None:
            async with httpx.AsyncClient() as owned:
                response = await owned.post(settings.slack_webhook_url, json=payload)
        else:
            response = await client.post(settings.slack_webhook_url, json=payload)
        if response.status_code != 200:
            logger.error(
                "slack_notification_failed: status=%s response=%s",
                response.status_code,
                response.text,
            )
            return False

        logger.info("slack_notification_sent")
        return True
    except Exception as e:
        logger.error("slack_notification_error: %s", str(e))
        return False
