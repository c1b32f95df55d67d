"""Abstract notification dispatcher interfaces."""

from abc import ABC, abstractmethod

from app.services.notifiers.models import AnswerRow, DeliveryOutcome


class BaseEmailDispatcher(ABC):
    """Sends a submission listing to an email address."""

    @abstractmethod
    async def send(
        self,
        to: str,
        subject: str,
        rows: list[AnswerRow],
        *,
        form_title: str | None = None,
    ) -> DeliveryOutcome:
        """Send one email.

        Args:
            to: Receiver address.
            subject: Subject line.
            rows: Question/answer pairs in question order.
            form_title: Title used in the body heading (defaults to the subject).

        Returns:
            DeliveryOutcome; transport failures are reported here, not raised.
        """


class BaseWebhookDispatcher(ABC):
    """Posts a submission listing to a chat webhook."""

    @abstractmethod
    async def post(self, url: str, title: str, chunks: list[list[AnswerRow]]) -> DeliveryOutcome:
        """Post the listing, one message block per chunk.

        Args:
            url: Webhook URL.
            title: Form title, repeated on every block.
            chunks: Question/answer pairs split into blocks.

        Returns:
            DeliveryOutcome; transport failures are reported here, not raised.
        """
