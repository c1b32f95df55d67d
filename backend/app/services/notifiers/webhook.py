"""Chat webhook dispatcher: Discord-style embed messages."""

import logging
from datetime import UTC, datetime

import httpx

from app.services.notifiers.base import BaseWebhookDispatcher
from app.services.notifiers.models import AnswerRow, DeliveryOutcome

logger = logging.getLogger(__name__)

EMBED_COLOR = 0x5865F2
FOOTER_TEXT = "Powered by Formsmith"

# Platform limits
FIELD_NAME_LIMIT = 256
FIELD_VALUE_LIMIT = 1024
MAX_EMBEDS_PER_MESSAGE = 10


def build_embeds(title: str, chunks: list[list[AnswerRow]], *, timestamp: datetime | None = None) -> list[dict]:
    """One embed per chunk, every embed carrying the form title."""
    stamp = (timestamp or datetime.now(UTC)).isoformat()

    if not chunks:
        return [
            {
                "title": f"New Submission: {title[:250]}",
                "description": "A new response (with no questions/answers) has been submitted.",
                "color": EMBED_COLOR,
                "timestamp": stamp,
                "footer": {"text": FOOTER_TEXT},
            }
        ]

    embeds: list[dict] = []
    for index, chunk in enumerate(chunks):
        embed = {
            "title": f"New Submission: {title[:250]}" if index == 0 else f"(continued) {title[:240]}",
            "color": EMBED_COLOR,
            "fields": [
                {
                    "name": row.label[:FIELD_NAME_LIMIT],
                    "value": row.value[:FIELD_VALUE_LIMIT],
                    "inline": False,
                }
                for row in chunk
            ],
            "timestamp": stamp,
        }
        if index == 0:
            embed["description"] = "A new response has been submitted to your form."
        if index == len(chunks) - 1:
            embed["footer"] = {"text": FOOTER_TEXT}
        embeds.append(embed)
    return embeds


class WebhookDispatcher(BaseWebhookDispatcher):
    """Posts embeds to a webhook URL, splitting across messages when needed."""

    def __init__(self, username: str = "Formsmith Notifier", timeout: float = 10.0) -> None:
        self._username = username
        self._timeout = timeout

    async def post(self, url: str, title: str, chunks: list[list[AnswerRow]]) -> DeliveryOutcome:
        if not url:
            return DeliveryOutcome(success=False, message="Webhook URL is not configured.")

        embeds = build_embeds(title, chunks)
        messages = [
            embeds[i : i + MAX_EMBEDS_PER_MESSAGE] for i in range(0, len(embeds), MAX_EMBEDS_PER_MESSAGE)
        ]

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                for batch in messages:
                    response = await client.post(url, json={"username": self._username, "embeds": batch})
                    response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Webhook returned %d: %s", exc.response.status_code, exc.response.text)
            return DeliveryOutcome(
                success=False,
                message=(
                    f"Failed to send webhook notification. Status: {exc.response.status_code}. "
                    f"Response: {exc.response.text}"
                ),
            )
        except httpx.RequestError as exc:
            logger.error("Webhook request failed: %s", exc)
            return DeliveryOutcome(success=False, message=f"Failed to send webhook notification: {exc}")

        logger.info("Webhook notification sent: embeds=%d messages=%d", len(embeds), len(messages))
        return DeliveryOutcome(success=True, message="Webhook notification sent successfully.")
