"""
Slack incoming-webhook delivery for price drop alerts.

`price_drop_blocks` lays out the Block Kit message; `send_slack_alert`
posts it with a plain-text fallback. Without SLACK_WEBHOOK_URL nothing is
sent, which is the normal state of a single-user install.
"""

from __future__ import annotations

import logging

import httpx

from core.config import settings

logger = logging.getLogger(__name__)

_WEBHOOK_TIMEOUT = 10.0


def price_drop_blocks(name: str, url: str, old_price: str, new_price: str) -> list[dict]:
    """Header line linking the product, then the old and new price side by side."""
    return [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"📉 *Price drop:* <{url}|{name}>"},
        },
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Before*\n~{old_price}~"},
                {"type": "mrkdwn", "text": f"*Now*\n{new_price}"},
            ],
        },
    ]


async def send_slack_alert(
    text: str,
    *,
    blocks: list[dict] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool:
    """
    Post an alert to the configured webhook.

    Args:
        text: Fallback text (push notifications, clients without Block Kit).
        blocks: Block Kit layout, e.g. from price_drop_blocks().
        transport: httpx transport override.

    Returns:
        True when Slack accepted the message. False when no webhook is
        configured or the request failed.
    """
    webhook_url = settings.slack_webhook_url
    if not webhook_url:
        logger.debug("No SLACK_WEBHOOK_URL, price alert not sent")
        return False

    payload: dict = {"text": text}
    if blocks:
        payload["blocks"] = blocks

    try:
        async with httpx.AsyncClient(timeout=_WEBHOOK_TIMEOUT, transport=transport) as client:
            response = await client.post(webhook_url, json=payload)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("Slack webhook rejected price alert: %s", exc)
        return False

    logger.info("Price alert delivered to Slack")
    return True
