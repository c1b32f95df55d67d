"""Notification dispatch models."""

from pydantic import BaseModel


class AnswerRow(BaseModel):
    """One question/answer pair of a notification body."""

    label: str
    value: str


class DeliveryOutcome(BaseModel):
    success: bool
    message: str
