"""Public submission flow: one respondent's pass from loaded form to stored response.

The flow is a short saga: once the response is stored it is never rolled
back, and a failed notification only produces a warning.
"""

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from app.schemas.forms import Question, StoredForm
from app.schemas.public import PublicField
from app.services.forms.answers import as_value_list, is_answer_missing
from app.services.forms.exceptions import (
    NotificationFailed,
    ResponsePersistFailed,
    StoreError,
    SubmissionClosed,
    ValidationIncomplete,
)
from app.services.forms.responses import append_response
from app.services.forms.store import get_form
from app.services.notifiers import DeliveryOutcome, Notifier, NotifierError

logger = logging.getLogger(__name__)

# Question type -> input control of the public page
INPUT_KINDS: dict[str, str] = {
    "short_text": "text",
    "email": "email",
    "number": "number",
    "long_text": "textarea",
    "single_choice": "radio",
    "multi_choice": "checkbox",
}


class SubmissionState(str, Enum):
    EDITING = "editing"
    COMPLETED = "completed"


@dataclass
class SubmissionOutcome:
    response_id: uuid.UUID
    notification: DeliveryOutcome | None = None
    warning: NotificationFailed | None = None


class PublicSubmission:
    """In-progress answers of one respondent to one form."""

    def __init__(self, db: Session, form: StoredForm, notifier: Notifier | None = None) -> None:
        self._db = db
        self._notifier = notifier
        self.form = form
        self.answers: dict[str, Any] = {}
        self.state = SubmissionState.EDITING

    @classmethod
    def load(
        cls,
        db: Session,
        form_id: uuid.UUID | str,
        notifier: Notifier | None = None,
    ) -> "PublicSubmission":
        """Load the form behind a public link.

        Raises FormNotFound if it does not exist.
        """
        return cls(db, get_form(db, form_id), notifier)

    # -----------------------------------------------------------------------
    # Display
    # -----------------------------------------------------------------------

    def fields(self) -> list[PublicField]:
        return [
            PublicField(
                id=q.id,
                text=q.text,
                type=q.type,
                input=INPUT_KINDS[q.type],
                is_required=q.is_required,
                options=q.options,
            )
            for q in self.form.questions
        ]

    # -----------------------------------------------------------------------
    # Editing
    # -----------------------------------------------------------------------

    def _ensure_editing(self) -> None:
        if self.state is SubmissionState.COMPLETED:
            raise SubmissionClosed("This form has already been submitted")

    def set_answer(self, question_id: str, value: Any) -> None:
        self._ensure_editing()
        self.answers[question_id] = value

    def set_answers(self, answers: Mapping[str, Any]) -> None:
        self._ensure_editing()
        self.answers.update(answers)

    def toggle_option(self, question_id: str, value: str, checked: bool) -> None:
        """Check or uncheck one value of a multi-choice answer."""
        self._ensure_editing()
        current = as_value_list(self.answers.get(question_id))
        if checked and value not in current:
            current.append(value)
        elif not checked:
            current = [v for v in current if v != value]
        self.answers[question_id] = current

    def missing_required(self) -> list[Question]:
        return [
            q for q in self.form.questions
            if q.is_required and is_answer_missing(self.answers.get(q.id))
        ]

    # -----------------------------------------------------------------------
    # Submit
    # -----------------------------------------------------------------------

    async def submit(self) -> SubmissionOutcome:
        """Store the answers and dispatch the form's notification once.

        Raises:
            SubmissionClosed: If this submission already completed.
            ValidationIncomplete: If required questions are unanswered; nothing is written.
            ResponsePersistFailed: If storing failed; answers are kept for a retry.
        """
        self._ensure_editing()

        missing = self.missing_required()
        if missing:
            raise ValidationIncomplete([q.id for q in missing], [q.text for q in missing])

        try:
            response_id = append_response(self._db, self.form.id, self.answers)
        except StoreError as exc:
            logger.warning("Submission to form %s not stored: %s", self.form.id, exc)
            raise ResponsePersistFailed(f"Failed to save form response: {exc}") from exc

        outcome = SubmissionOutcome(response_id=response_id)
        if self._notifier is not None:
            try:
                outcome.notification = await self._notifier.notify(self.form, self.answers)
            except NotifierError as exc:
                outcome.notification = DeliveryOutcome(success=False, message=str(exc))
            except Exception as exc:
                # The response is already stored; never fail the submission here
                logger.exception("Unexpected error notifying for form %s", self.form.id)
                outcome.notification = DeliveryOutcome(success=False, message=f"Notification error: {exc}")
            if outcome.notification is not None and not outcome.notification.success:
                outcome.warning = NotificationFailed(
                    self.form.notification_destination, outcome.notification.message
                )
                logger.warning(
                    "Notification for response %s (form %s) failed: %s",
                    response_id,
                    self.form.id,
                    outcome.notification.message,
                )

        self.answers = {}
        self.state = SubmissionState.COMPLETED
        logger.info("Submission completed: form=%s response=%s", self.form.id, response_id)
        return outcome
