import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, utc_now


class FormResponse(Base):
    """One respondent's answers to a form.

    The answers field is a JSONB dict keyed by question id:
        {
            "3f1e...": "Free text here",      # short_text / long_text / email
            "77a0...": "Yes",                 # single_choice (option value)
            "c2d4...": ["Red", "Blue"],       # multi_choice
            "0e9b...": 42                     # number
        }
    """

    __tablename__ = "form_responses"
    __table_args__ = (
        Index("ix_form_responses_form_id", "form_id"),
        Index("ix_form_responses_form_submitted", "form_id", "submitted_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    form_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    answers: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    submitted_at: Mapped[datetime] = mapped_column(default=utc_now)

    form: Mapped["Form"] = relationship(back_populates="responses")

    def __repr__(self) -> str:
        return f"<FormResponse form={self.form_id} at={self.submitted_at}>"
