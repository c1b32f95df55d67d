"""Form store: owner-scoped CRUD for form definitions."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import utc_now
from app.models.form import Form
from app.schemas.forms import FormDefinition, Question, StoredForm
from app.services.forms.definition import (
    backfill_ids,
    enforce_notification_exclusivity,
    load_questions,
)
from app.services.forms.exceptions import (
    FieldError,
    Forbidden,
    FormNotFound,
    FormValidationError,
    IndexMissing,
    StoreReadFailed,
    StoreWriteFailed,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def public_path(form_id: uuid.UUID) -> str:
    return f"{settings.PUBLIC_FORM_PATH.rstrip('/')}/{form_id}"


def coerce_form_id(form_id: uuid.UUID | str) -> uuid.UUID | None:
    if isinstance(form_id, uuid.UUID):
        return form_id
    try:
        return uuid.UUID(str(form_id).strip())
    except (ValueError, AttributeError):
        return None


def to_stored_form(form: Form) -> StoredForm:
    """Build the read model for a row. Backfills ids without writing them back."""
    return StoredForm(
        id=form.id,
        owner_id=form.owner_id,
        title=form.title,
        questions=load_questions(form.questions),
        background_image_url=form.background_image_url,
        notification_destination=form.notification_destination,
        receiver_email=form.receiver_email,
        webhook_url=form.webhook_url,
        created_at=form.created_at,
        updated_at=form.updated_at,
        public_path=public_path(form.id),
    )


def _dump_questions(questions: list[Question]) -> list[dict]:
    return backfill_ids(q.model_dump() for q in questions)


def _is_missing_index_error(exc: SQLAlchemyError) -> bool:
    text = str(getattr(exc, "orig", None) or exc).lower()
    return "index" in text


def _commit(db: Session, operation: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Form store %s failed: %s", operation, exc)
        raise StoreWriteFailed(operation, str(exc)) from exc


def _load_row(db: Session, form_id: uuid.UUID | str) -> Form:
    form_uuid = coerce_form_id(form_id)
    if form_uuid is None:
        raise FormNotFound(form_id)
    try:
        form = db.get(Form, form_uuid)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to fetch form %s: %s", form_id, exc)
        raise StoreReadFailed("get", str(exc)) from exc
    if form is None:
        raise FormNotFound(form_id)
    return form


def _load_owned_row(db: Session, form_id: uuid.UUID | str, owner_id: str) -> Form:
    form = _load_row(db, form_id)
    if form.owner_id != owner_id:
        logger.warning("Owner mismatch on form %s: caller=%s", form_id, owner_id)
        raise Forbidden(form_id)
    return form


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def create_form(db: Session, owner_id: str, form: FormDefinition) -> uuid.UUID:
    """Persist a normalized form definition for ``owner_id``.

    Raises:
        FormValidationError: If owner_id or title is empty.
        StoreWriteFailed: If the insert fails.

    Returns:
        The new form id.
    """
    errors: list[FieldError] = []
    if not owner_id or not owner_id.strip():
        errors.append(FieldError("owner_id", "Owner id is required"))
    if not form.title or not form.title.strip():
        errors.append(FieldError("title", "Form title is required"))
    if errors:
        raise FormValidationError(errors)

    receiver_email, webhook_url = enforce_notification_exclusivity(
        form.notification_destination, form.receiver_email, form.webhook_url
    )
    row = Form(
        owner_id=owner_id,
        title=form.title,
        questions=_dump_questions(form.questions),
        background_image_url=form.background_image_url,
        notification_destination=form.notification_destination,
        receiver_email=receiver_email,
        webhook_url=webhook_url,
    )
    db.add(row)
    _commit(db, "create")
    db.refresh(row)
    logger.info(
        "Form created: id=%s owner=%s questions=%d destination=%s",
        row.id,
        owner_id,
        len(form.questions),
        form.notification_destination,
    )
    return row.id


def get_form(db: Session, form_id: uuid.UUID | str) -> StoredForm:
    """Fetch a form by id.

    Raises FormNotFound if it does not exist.
    """
    return to_stored_form(_load_row(db, form_id))


def list_forms_by_owner(db: Session, owner_id: str) -> list[StoredForm]:
    """List an owner's forms, newest first.

    Relies on the (owner_id, created_at) index. When the database reports the
    index is missing, IndexMissing carries the original error text so the
    index can be created from it.
    """
    try:
        rows = (
            db.execute(
                select(Form)
                .where(Form.owner_id == owner_id)
                .order_by(Form.created_at.desc(), Form.id.desc())
            )
            .scalars()
            .all()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        if _is_missing_index_error(exc):
            logger.error(
                "Listing forms for owner %s needs the (owner_id, created_at) index on forms. "
                "Original storage error: %s",
                owner_id,
                exc,
            )
            raise IndexMissing("list_by_owner", str(exc)) from exc
        logger.error("Failed to list forms for owner %s: %s", owner_id, exc)
        raise StoreReadFailed("list_by_owner", str(exc)) from exc
    return [to_stored_form(row) for row in rows]


def update_form(
    db: Session,
    form_id: uuid.UUID | str,
    owner_id: str,
    form: FormDefinition,
) -> StoredForm:
    """Replace a form's editable fields. Last write wins.

    Raises:
        FormNotFound: If the form does not exist.
        Forbidden: If ``owner_id`` is not the recorded owner.
        StoreWriteFailed: If the update fails.
    """
    row = _load_owned_row(db, form_id, owner_id)

    receiver_email, webhook_url = enforce_notification_exclusivity(
        form.notification_destination, form.receiver_email, form.webhook_url
    )
    row.title = form.title
    row.questions = _dump_questions(form.questions)
    row.background_image_url = form.background_image_url
    row.notification_destination = form.notification_destination
    row.receiver_email = receiver_email
    row.webhook_url = webhook_url
    row.updated_at = utc_now()

    _commit(db, "update")
    db.refresh(row)
    logger.info("Form updated: id=%s owner=%s", row.id, owner_id)
    return to_stored_form(row)


def delete_form(db: Session, form_id: uuid.UUID | str, owner_id: str) -> None:
    """Delete a form and, by cascade, all of its responses.

    Raises FormNotFound or Forbidden like update_form.
    """
    row = _load_owned_row(db, form_id, owner_id)
    db.delete(row)
    _commit(db, "delete")
    logger.info("Form deleted: id=%s owner=%s", form_id, owner_id)
