"""Email dispatcher: SMTP delivery of submission notifications."""

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from functools import partial
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.services.notifiers.base import BaseEmailDispatcher
from app.services.notifiers.models import AnswerRow, DeliveryOutcome

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
SUBMISSION_TEMPLATE = "submission_email.html"

_templates = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    port: int = 587
    username: str = ""
    password: str = ""
    from_address: str = ""
    from_name: str = "Formsmith"
    timeout: float = 15.0

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.from_address)


class EmailDispatcher(BaseEmailDispatcher):
    """Sends HTML notification emails through an SMTP relay.

    Credentials come from the SmtpConfig passed at construction.
    """

    def __init__(self, config: SmtpConfig) -> None:
        self._config = config

    def render_html(self, form_title: str, rows: list[AnswerRow]) -> str:
        template = _templates.get_template(SUBMISSION_TEMPLATE)
        return template.render(form_title=form_title, rows=rows, sender_name=self._config.from_name)

    @staticmethod
    def render_text(form_title: str, rows: list[AnswerRow]) -> str:
        lines = [f"New Submission for Form: {form_title}", ""]
        lines.extend(f"{row.label}: {row.value}" for row in rows)
        return "\n".join(lines)

    def build_message(
        self,
        to: str,
        subject: str,
        rows: list[AnswerRow],
        form_title: str,
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self._config.from_name, self._config.from_address))
        message["To"] = to
        message["Subject"] = subject
        message.set_content(self.render_text(form_title, rows))
        message.add_alternative(self.render_html(form_title, rows), subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        config = self._config
        context = ssl.create_default_context()
        if config.port == 465:
            with smtplib.SMTP_SSL(config.host, config.port, context=context, timeout=config.timeout) as server:
                if config.username:
                    server.login(config.username, config.password)
                server.send_message(message)
            return

        with smtplib.SMTP(config.host, config.port, timeout=config.timeout) as server:
            server.ehlo()
            secured = server.has_extn("starttls")
            if secured:
                server.starttls(context=context)
                server.ehlo()
            if config.username:
                if not secured:
                    # Credentials never go over a plaintext connection
                    raise smtplib.SMTPNotSupportedError("Server does not offer STARTTLS; refusing to send credentials")
                server.login(config.username, config.password)
            server.send_message(message)

    async def send(
        self,
        to: str,
        subject: str,
        rows: list[AnswerRow],
        *,
        form_title: str | None = None,
    ) -> DeliveryOutcome:
        if not to:
            return DeliveryOutcome(success=False, message="Receiver email address is missing.")
        if not self._config.is_configured:
            logger.error("SMTP is not configured (SMTP_HOST / SMTP_FROM_ADDRESS); cannot email %s", to)
            return DeliveryOutcome(success=False, message="Email server not configured.")

        message = self.build_message(to, subject, rows, form_title or subject)

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, partial(self._deliver, message))
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send submission email to %s: %s", to, exc)
            return DeliveryOutcome(success=False, message=f"Failed to send email: {exc}")

        logger.info("Submission email sent: to=%s rows=%d", to, len(rows))
        return DeliveryOutcome(success=True, message="Email sent successfully.")
