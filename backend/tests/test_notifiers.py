"""Tests for notification composition and the email/webhook dispatchers."""

import json
import smtplib
from datetime import UTC, datetime
from unittest.mock import patch

import httpx
import pytest

from app.schemas.forms import Option, Question, StoredForm
from app.services.notifiers import (
    AnswerRow,
    EmailDispatcher,
    Notifier,
    NotifierConfigurationError,
    SmtpConfig,
    WebhookDispatcher,
    build_answer_rows,
    build_embeds,
    chunk_rows,
)
from app.services.notifiers.webhook import EMBED_COLOR, FOOTER_TEXT

_RealAsyncClient = httpx.AsyncClient

WEBHOOK_URL = "https://chat.example.com/api/webhooks/1/token"


def _rows(n):
    return [AnswerRow(label=f"Question {i}", value=f"answer {i}") for i in range(n)]


def _mock_client_factory(handler):
    """Build AsyncClients that route every request to ``handler``."""

    def factory(**kwargs):
        return _RealAsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    return factory


def _smtp_config(**overrides):
    values = {
        "host": "smtp.example.com",
        "port": 587,
        "username": "mailer",
        "password": "secret",
        "from_address": "noreply@example.com",
    }
    values.update(overrides)
    return SmtpConfig(**values)


def _stored_form(destination="none", **overrides):
    values = {
        "id": "5b0e1f8e-3c52-4a0f-9d0e-0d9f5a8d7f11",
        "owner_id": "owner-1",
        "title": "Bug Report",
        "questions": [
            Question(id="q1", text="Summary", type="short_text"),
            Question(
                id="q2",
                text="Platforms",
                type="multi_choice",
                options=[Option(id="o1", value="Web"), Option(id="o2", value="iOS")],
            ),
            Question(id="q3", text="Details", type="long_text"),
        ],
        "notification_destination": destination,
        "created_at": datetime(2026, 1, 1),
        "public_path": "/form/5b0e1f8e-3c52-4a0f-9d0e-0d9f5a8d7f11",
    }
    values.update(overrides)
    return StoredForm(**values)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


class TestComposer:
    def test_rows_follow_question_order_and_skip_unanswered(self):
        form = _stored_form()
        answers = {"q3": "Crashes on save", "q1": "Save button", "q2": [], "unknown": "ignored"}
        rows = build_answer_rows(form.questions, answers)
        assert [(r.label, r.value) for r in rows] == [
            ("Summary", "Save button"),
            ("Details", "Crashes on save"),
        ]

    def test_multi_value_answers_joined(self):
        rows = build_answer_rows(_stored_form().questions, {"q2": ["Web", "iOS"]})
        assert rows == [AnswerRow(label="Platforms", value="Web, iOS")]

    @pytest.mark.parametrize(
        "count,sizes",
        [(0, []), (1, [1]), (20, [20]), (21, [20, 1]), (45, [20, 20, 5])],
    )
    def test_chunk_sizes(self, count, sizes):
        chunks = chunk_rows(_rows(count))
        assert [len(c) for c in chunks] == sizes
        assert [r for c in chunks for r in c] == _rows(count)

    def test_chunk_size_must_be_positive(self):
        with pytest.raises(ValueError):
            chunk_rows(_rows(3), size=0)


class TestBuildEmbeds:
    def test_one_embed_per_chunk(self):
        stamp = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
        embeds = build_embeds("Bug Report", chunk_rows(_rows(45)), timestamp=stamp)

        assert len(embeds) == 3
        assert embeds[0]["title"] == "New Submission: Bug Report"
        assert embeds[1]["title"] == "(continued) Bug Report"
        assert "description" in embeds[0]
        assert "description" not in embeds[1]
        assert "footer" not in embeds[0]
        assert embeds[-1]["footer"] == {"text": FOOTER_TEXT}
        assert all(e["color"] == EMBED_COLOR for e in embeds)
        assert all(e["timestamp"] == stamp.isoformat() for e in embeds)
        assert [len(e["fields"]) for e in embeds] == [20, 20, 5]

    def test_truncates_to_platform_limits(self):
        rows = [AnswerRow(label="L" * 300, value="V" * 2000)]
        [embed] = build_embeds("T" * 400, [rows])
        assert len(embed["title"]) == len("New Submission: ") + 250
        field = embed["fields"][0]
        assert len(field["name"]) == 256
        assert len(field["value"]) == 1024

    def test_empty_listing_still_sends_one_embed(self):
        [embed] = build_embeds("Bug Report", [])
        assert embed["title"] == "New Submission: Bug Report"
        assert "fields" not in embed
        assert embed["footer"] == {"text": FOOTER_TEXT}


# ---------------------------------------------------------------------------
# Webhook dispatcher
# ---------------------------------------------------------------------------


class TestWebhookDispatcher:
    @pytest.mark.asyncio
    async def test_posts_embeds(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(204)

        with patch("app.services.notifiers.webhook.httpx.AsyncClient", _mock_client_factory(handler)):
            outcome = await WebhookDispatcher(username="Forms Bot").post(
                WEBHOOK_URL, "Bug Report", chunk_rows(_rows(25))
            )

        assert outcome.success
        assert len(requests) == 1
        assert str(requests[0].url) == WEBHOOK_URL
        body = json.loads(requests[0].content)
        assert body["username"] == "Forms Bot"
        assert [len(e["fields"]) for e in body["embeds"]] == [20, 5]

    @pytest.mark.asyncio
    async def test_splits_messages_over_ten_embeds(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(204)

        with patch("app.services.notifiers.webhook.httpx.AsyncClient", _mock_client_factory(handler)):
            outcome = await WebhookDispatcher().post(WEBHOOK_URL, "Bug Report", chunk_rows(_rows(220)))

        assert outcome.success
        sizes = [len(json.loads(r.content)["embeds"]) for r in requests]
        assert sizes == [10, 1]

    @pytest.mark.asyncio
    async def test_http_error_reported_not_raised(self):
        def handler(request):
            return httpx.Response(400, text='{"message": "Invalid Form Body"}')

        with patch("app.services.notifiers.webhook.httpx.AsyncClient", _mock_client_factory(handler)):
            outcome = await WebhookDispatcher().post(WEBHOOK_URL, "Bug Report", chunk_rows(_rows(2)))

        assert not outcome.success
        assert "Status: 400" in outcome.message
        assert "Invalid Form Body" in outcome.message

    @pytest.mark.asyncio
    async def test_network_error_reported_not_raised(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with patch("app.services.notifiers.webhook.httpx.AsyncClient", _mock_client_factory(handler)):
            outcome = await WebhookDispatcher().post(WEBHOOK_URL, "Bug Report", [])

        assert not outcome.success
        assert "connection refused" in outcome.message

    @pytest.mark.asyncio
    async def test_missing_url(self):
        outcome = await WebhookDispatcher().post("", "Bug Report", [])
        assert not outcome.success


# ---------------------------------------------------------------------------
# Email dispatcher
# ---------------------------------------------------------------------------


class TestEmailDispatcher:
    def test_build_message(self):
        dispatcher = EmailDispatcher(_smtp_config(from_name="Forms"))
        rows = [AnswerRow(label="Summary", value="<script>alert(1)</script>")]

        message = dispatcher.build_message("owner@example.com", "New Form Submission: Bug Report", rows, "Bug Report")

        assert message["To"] == "owner@example.com"
        assert message["Subject"] == "New Form Submission: Bug Report"
        assert "noreply@example.com" in message["From"]
        html = message.get_body(preferencelist=("html",)).get_content()
        text = message.get_body(preferencelist=("plain",)).get_content()
        assert "New Submission for Form: Bug Report" in html
        assert "&lt;script&gt;" in html
        assert "<script>" not in html
        assert "Summary: <script>alert(1)</script>" in text

    @pytest.mark.asyncio
    async def test_send_with_starttls(self):
        dispatcher = EmailDispatcher(_smtp_config())
        with patch("app.services.notifiers.email.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value
            server.has_extn.return_value = True

            outcome = await dispatcher.send("owner@example.com", "Subject", _rows(2), form_title="Bug Report")

        assert outcome.success
        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=15.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        server.send_message.assert_called_once()

    @pytest.mark.asyncio
    async def test_send_over_ssl_port(self):
        dispatcher = EmailDispatcher(_smtp_config(port=465, username=""))
        with patch("app.services.notifiers.email.smtplib.SMTP_SSL") as mock_smtp_ssl:
            server = mock_smtp_ssl.return_value.__enter__.return_value

            outcome = await dispatcher.send("owner@example.com", "Subject", _rows(1))

        assert outcome.success
        server.login.assert_not_called()
        server.send_message.assert_called_once()

    @pytest.mark.asyncio
    async def test_smtp_failure_reported_not_raised(self):
        dispatcher = EmailDispatcher(_smtp_config())
        with patch("app.services.notifiers.email.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value
            server.has_extn.return_value = True
            server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

            outcome = await dispatcher.send("owner@example.com", "Subject", _rows(1))

        assert not outcome.success
        assert outcome.message.startswith("Failed to send email")
        server.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_login_without_starttls(self):
        dispatcher = EmailDispatcher(_smtp_config())
        with patch("app.services.notifiers.email.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value
            server.has_extn.return_value = False

            outcome = await dispatcher.send("owner@example.com", "Subject", _rows(1))

        assert not outcome.success
        assert "STARTTLS" in outcome.message
        server.starttls.assert_not_called()
        server.login.assert_not_called()
        server.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_plaintext_send_without_credentials(self):
        dispatcher = EmailDispatcher(_smtp_config(username=""))
        with patch("app.services.notifiers.email.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value
            server.has_extn.return_value = False

            outcome = await dispatcher.send("owner@example.com", "Subject", _rows(1))

        assert outcome.success
        server.login.assert_not_called()
        server.send_message.assert_called_once()

    @pytest.mark.asyncio
    async def test_unconfigured_smtp(self):
        dispatcher = EmailDispatcher(_smtp_config(host=""))
        with patch("app.services.notifiers.email.smtplib.SMTP") as mock_smtp:
            outcome = await dispatcher.send("owner@example.com", "Subject", _rows(1))
        assert not outcome.success
        assert outcome.message == "Email server not configured."
        mock_smtp.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_receiver(self):
        outcome = await EmailDispatcher(_smtp_config()).send("", "Subject", _rows(1))
        assert not outcome.success


# ---------------------------------------------------------------------------
# Notifier routing
# ---------------------------------------------------------------------------


class TestNotifier:
    @pytest.mark.asyncio
    async def test_none_destination_sends_nothing(self):
        assert await Notifier().notify(_stored_form("none"), {"q1": "x"}) is None

    @pytest.mark.asyncio
    async def test_missing_dispatcher_raises(self):
        form = _stored_form("email", receiver_email="owner@example.com")
        with pytest.raises(NotifierConfigurationError):
            await Notifier().notify(form, {"q1": "x"})

    @pytest.mark.asyncio
    async def test_routes_to_webhook(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(204)

        form = _stored_form("webhook", webhook_url=WEBHOOK_URL)
        with patch("app.services.notifiers.webhook.httpx.AsyncClient", _mock_client_factory(handler)):
            outcome = await Notifier(webhook=WebhookDispatcher()).notify(form, {"q1": "Save button"})

        assert outcome.success
        [embed] = json.loads(requests[0].content)["embeds"]
        assert embed["fields"] == [{"name": "Summary", "value": "Save button", "inline": False}]
