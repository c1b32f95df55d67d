import uuid
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.schemas.forms import Option, QuestionType

InputKind = Literal["text", "email", "number", "textarea", "radio", "checkbox"]


class PublicField(BaseModel):
    """One rendered input of the public submission page."""

    id: str
    text: str
    type: QuestionType
    input: InputKind
    is_required: bool
    options: list[Option] = Field(default_factory=list)


class PublicFormView(BaseModel):
    """What a respondent sees: no owner or notification details."""

    id: uuid.UUID
    title: str
    background_image_url: str | None
    fields: list[PublicField]


class SubmissionRequest(BaseModel):
    answers: dict[str, Any] = Field(
        default_factory=dict,
        description="Map of question id to answer value",
    )


class SubmissionResult(BaseModel):
    response_id: uuid.UUID
    message: str = "Thank you! Your form has been submitted successfully."
    notification_warning: str | None = None


class ImageUploadResponse(BaseModel):
    url: str
