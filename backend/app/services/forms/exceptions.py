"""Form service exceptions."""

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A single violated field of a form payload."""

    field: str
    message: str


class FormServiceError(Exception):
    """Base exception for form operations."""


class FormValidationError(FormServiceError):
    """Raised before any write when a form payload violates one or more fields."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))


class FormNotFound(FormServiceError):
    """Raised when a form is not found."""

    def __init__(self, form_id: uuid.UUID | str) -> None:
        self.form_id = form_id
        super().__init__(f"Form {form_id} not found")


class Forbidden(FormServiceError):
    """Raised when a caller mutates a form it does not own."""

    def __init__(self, form_id: uuid.UUID | str) -> None:
        self.form_id = form_id
        super().__init__(f"User not authorized to modify form {form_id}")


class StoreError(FormServiceError):
    """Raised when the underlying storage layer fails.

    The message carries the storage error text so callers can surface it.
    """

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(f"[{operation}] {message}")


class StoreReadFailed(StoreError):
    """Raised when reading from storage fails."""


class StoreWriteFailed(StoreError):
    """Raised when a write to storage fails. Safe to retry."""


class IndexMissing(StoreReadFailed):
    """Raised when a filtered and sorted listing needs an index the database lacks."""


# ---------------------------------------------------------------------------
# Public submission flow
# ---------------------------------------------------------------------------


class SubmissionError(FormServiceError):
    """Base exception for the public submission flow."""


class ValidationIncomplete(SubmissionError):
    """Raised when required questions are unanswered. Nothing was written."""

    def __init__(self, question_ids: list[str], question_texts: list[str]) -> None:
        self.question_ids = question_ids
        self.question_texts = question_texts
        super().__init__(
            "Please answer the required question(s): " + ", ".join(question_texts)
        )


class ResponsePersistFailed(SubmissionError):
    """Raised when the response could not be stored. The submission may be retried."""


class SubmissionClosed(SubmissionError):
    """Raised when submitting again after a completed submission."""


class NotificationFailed(SubmissionError):
    """A notification that could not be delivered.

    Never raised out of a submission: it is attached to the outcome as a warning.
    """

    def __init__(self, channel: str, message: str) -> None:
        self.channel = channel
        super().__init__(f"[{channel}] {message}")
