"""Notification dispatch: email and chat webhook alerts on new responses."""

import logging
import threading
from collections.abc import Mapping
from typing import Any

from app.schemas.forms import StoredForm
from app.services.notifiers.base import BaseEmailDispatcher, BaseWebhookDispatcher
from app.services.notifiers.composer import MAX_ROWS_PER_BLOCK, build_answer_rows, chunk_rows
from app.services.notifiers.email import EmailDispatcher, SmtpConfig
from app.services.notifiers.exceptions import NotifierConfigurationError, NotifierError
from app.services.notifiers.models import AnswerRow, DeliveryOutcome
from app.services.notifiers.webhook import WebhookDispatcher, build_embeds

logger = logging.getLogger(__name__)

__all__ = [
    "MAX_ROWS_PER_BLOCK",
    "AnswerRow",
    "BaseEmailDispatcher",
    "BaseWebhookDispatcher",
    "DeliveryOutcome",
    "EmailDispatcher",
    "Notifier",
    "NotifierConfigurationError",
    "NotifierError",
    "SmtpConfig",
    "WebhookDispatcher",
    "build_answer_rows",
    "build_embeds",
    "chunk_rows",
    "get_notifier",
]


class Notifier:
    """Routes a new response to the channel chosen on its form."""

    def __init__(
        self,
        email: BaseEmailDispatcher | None = None,
        webhook: BaseWebhookDispatcher | None = None,
    ) -> None:
        self._email = email
        self._webhook = webhook

    async def notify(self, form: StoredForm, answers: Mapping[str, Any]) -> DeliveryOutcome | None:
        """Dispatch once according to ``form.notification_destination``.

        Returns None when the form has no notification destination.
        """
        destination = form.notification_destination
        if destination == "none":
            return None

        rows = build_answer_rows(form.questions, answers)

        if destination == "email":
            if self._email is None:
                raise NotifierConfigurationError("Email dispatcher is not configured")
            return await self._email.send(
                form.receiver_email or "",
                f"New Form Submission: {form.title}",
                rows,
                form_title=form.title,
            )

        if destination == "webhook":
            if self._webhook is None:
                raise NotifierConfigurationError("Webhook dispatcher is not configured")
            return await self._webhook.post(form.webhook_url or "", form.title, chunk_rows(rows))

        raise NotifierError(f"Unknown notification destination: {destination!r}")


_notifier: Notifier | None = None
_notifier_lock = threading.Lock()


def get_notifier() -> Notifier:
    """Get or create the Notifier singleton from settings."""
    global _notifier  # noqa: PLW0603
    if _notifier is not None:
        return _notifier

    with _notifier_lock:
        if _notifier is not None:
            return _notifier

        from app.core.config import settings

        email = EmailDispatcher(
            SmtpConfig(
                host=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USERNAME,
                password=settings.SMTP_PASSWORD,
                from_address=settings.SMTP_FROM_ADDRESS,
                from_name=settings.SMTP_FROM_NAME,
                timeout=settings.SMTP_TIMEOUT_SECONDS,
            )
        )
        webhook = WebhookDispatcher(
            username=settings.WEBHOOK_USERNAME,
            timeout=settings.WEBHOOK_TIMEOUT_SECONDS,
        )
        _notifier = Notifier(email=email, webhook=webhook)
        logger.info("Notifier initialized (smtp_configured=%s)", bool(settings.SMTP_HOST))
        return _notifier
