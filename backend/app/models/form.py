import uuid
from datetime import datetime

from sqlalchemy import Enum, Index, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, utc_now


class Form(Base):
    """Form definition with a JSONB questions array.

    Each question in the questions array is a dict:
        {
            "id": "9b0c...",                 # stable join key for answers
            "type": "short_text" | "email" | "number" | "long_text"
                    | "single_choice" | "multi_choice",
            "text": "Question prompt",
            "is_required": true/false,
            "options": [{"id": "...", "value": "Yes"}, ...]  # choice types only
        }
    """

    __tablename__ = "forms"
    __table_args__ = (
        Index("ix_forms_owner_created", "owner_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    questions: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    background_image_url: Mapped[str | None] = mapped_column(String(2048))
    notification_destination: Mapped[str] = mapped_column(
        Enum("none", "email", "webhook", name="notification_destination"),
        nullable=False,
        default="none",
        server_default="none",
    )
    receiver_email: Mapped[str | None] = mapped_column(String(255))
    webhook_url: Mapped[str | None] = mapped_column(String(2048))
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime | None] = mapped_column()

    responses: Mapped[list["FormResponse"]] = relationship(back_populates="form", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Form {self.title} ({self.notification_destination})>"
