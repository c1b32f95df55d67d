import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

QuestionType = Literal["short_text", "email", "number", "long_text", "single_choice", "multi_choice"]
NotificationDestination = Literal["none", "email", "webhook"]


# ---------------------------------------------------------------------------
# Form definition (normalized)
# ---------------------------------------------------------------------------


class Option(BaseModel):
    id: str
    value: str


class Question(BaseModel):
    """Single question in a form."""

    id: str
    text: str
    type: QuestionType
    is_required: bool = False
    options: list[Option] = Field(default_factory=list)


class FormDefinition(BaseModel):
    """A form payload after normalization, ready to be persisted."""

    title: str
    questions: list[Question]
    background_image_url: str | None = None
    notification_destination: NotificationDestination = "none"
    receiver_email: str | None = None
    webhook_url: str | None = None


class StoredForm(FormDefinition):
    """A form definition as read back from the store."""

    id: uuid.UUID
    owner_id: str
    created_at: datetime
    updated_at: datetime | None = None
    public_path: str


# ---------------------------------------------------------------------------
# Form CRUD schemas
# ---------------------------------------------------------------------------


class FormPayload(BaseModel):
    """Raw create/update body.

    Deliberately loose: field-level validation is done by the form definition
    normalizer so every violated field can be reported at once.
    """

    title: str | None = None
    questions: list[dict[str, Any]] = Field(default_factory=list)
    background_image_url: str | None = None
    notification_destination: str | None = "none"
    receiver_email: str | None = None
    webhook_url: str | None = None


class FormDetailResponse(StoredForm):
    response_count: int = 0


class FormListResponse(BaseModel):
    items: list[StoredForm]
    total: int
    page: int
    page_size: int


class FormStatsResponse(BaseModel):
    form_count: int
    total_submissions: int


# ---------------------------------------------------------------------------
# Form response schemas
# ---------------------------------------------------------------------------


class FormResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    form_id: uuid.UUID
    answers: dict[str, Any]
    submitted_at: datetime


class FormResponseListResponse(BaseModel):
    items: list[FormResponseSchema]
    total: int
    page: int
    page_size: int
