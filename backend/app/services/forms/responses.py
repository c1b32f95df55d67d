"""Response store: append-only submissions, counts and export."""

import csv
import io
import logging
import uuid
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.form_response import FormResponse
from app.schemas.forms import StoredForm
from app.services.forms.answers import format_answer, to_storable
from app.services.forms.exceptions import (
    FieldError,
    FormValidationError,
    StoreError,
    StoreReadFailed,
    StoreWriteFailed,
)
from app.services.forms.store import coerce_form_id, list_forms_by_owner

logger = logging.getLogger(__name__)


def _require_form_id(form_id: uuid.UUID | str) -> uuid.UUID:
    if form_id is None or not str(form_id).strip():
        raise FormValidationError([FieldError("form_id", "Form id is required")])
    form_uuid = coerce_form_id(form_id)
    if form_uuid is None:
        raise FormValidationError([FieldError("form_id", "Form id is malformed")])
    return form_uuid


def append_response(db: Session, form_id: uuid.UUID | str, answers: Mapping[str, Any]) -> uuid.UUID:
    """Store one submission for a form.

    Public: no ownership check. The caller is expected to have loaded the
    form first; only a non-empty form id is required here.

    Returns the new response id.
    """
    form_uuid = _require_form_id(form_id)
    stored = {key: to_storable(value) for key, value in answers.items()}
    response = FormResponse(form_id=form_uuid, answers=stored)
    db.add(response)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to save response for form %s: %s", form_id, exc)
        raise StoreWriteFailed("append", str(exc)) from exc
    db.refresh(response)
    logger.info("Form response saved: id=%s form=%s answers=%d", response.id, form_uuid, len(answers))
    return response.id


def count_responses(db: Session, form_id: uuid.UUID | str) -> int:
    """Number of responses currently stored for a form."""
    form_uuid = _require_form_id(form_id)
    try:
        return db.execute(
            select(func.count()).select_from(FormResponse).where(FormResponse.form_id == form_uuid)
        ).scalar_one()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreReadFailed("count", str(exc)) from exc


def total_responses_for_owner(db: Session, owner_id: str) -> int:
    """Total submissions across all of an owner's forms.

    Best effort dashboard statistic: never raises. Forms whose count fails
    are logged and skipped; the sum of the rest is returned.
    """
    try:
        forms = list_forms_by_owner(db, owner_id)
    except StoreError as exc:
        logger.warning("Could not list forms for owner %s, reporting 0 submissions: %s", owner_id, exc)
        return 0

    total = 0
    failed: list[uuid.UUID] = []
    for form in forms:
        try:
            total += count_responses(db, form.id)
        except StoreError as exc:
            failed.append(form.id)
            logger.warning("Could not count responses for form %s: %s", form.id, exc)

    if failed:
        logger.warning(
            "Partial submission total for owner %s: %d of %d form(s) not counted",
            owner_id,
            len(failed),
            len(forms),
        )
    return total


def list_responses(
    db: Session,
    form_id: uuid.UUID | str,
    *,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[FormResponse], int]:
    """List a form's responses, newest first.

    Returns (responses, total_count).
    """
    form_uuid = _require_form_id(form_id)
    try:
        total = count_responses(db, form_uuid)
        offset = (page - 1) * page_size
        responses = (
            db.execute(
                select(FormResponse)
                .where(FormResponse.form_id == form_uuid)
                .order_by(FormResponse.submitted_at.desc())
                .offset(offset)
                .limit(page_size)
            )
            .scalars()
            .all()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreReadFailed("list_responses", str(exc)) from exc
    return list(responses), total


def all_responses(db: Session, form_id: uuid.UUID | str) -> list[FormResponse]:
    """Every response of a form, oldest first."""
    form_uuid = _require_form_id(form_id)
    try:
        return list(
            db.execute(
                select(FormResponse)
                .where(FormResponse.form_id == form_uuid)
                .order_by(FormResponse.submitted_at.asc())
            )
            .scalars()
            .all()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreReadFailed("list_responses", str(exc)) from exc


def export_responses_csv(form: StoredForm, responses: Iterable[FormResponse]) -> str:
    """Render responses as CSV, one column per question in question order."""
    output = io.StringIO()
    writer = csv.writer(output)

    header = ["response_id"]
    header.extend(q.text for q in form.questions)
    header.append("submitted_at")
    writer.writerow(header)

    for resp in responses:
        answers = resp.answers or {}
        row = [str(resp.id)]
        row.extend(format_answer(answers.get(q.id)) for q in form.questions)
        row.append(resp.submitted_at.isoformat() if resp.submitted_at else "")
        writer.writerow(row)

    return output.getvalue()
