"""Public form API: what respondents holding a form link can reach."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.public import PublicFormView, SubmissionRequest, SubmissionResult
from app.services.forms import FormNotFound, ResponsePersistFailed, StoreError, ValidationIncomplete
from app.services.forms.submission import PublicSubmission
from app.services.notifiers import Notifier, get_notifier

logger = logging.getLogger(__name__)

router = APIRouter()

FORM_NOT_FOUND_DETAIL = "Form not found. Please check the link and try again."


def _load_submission(db: Session, form_id: uuid.UUID, notifier: Notifier | None = None) -> PublicSubmission:
    try:
        return PublicSubmission.load(db, form_id, notifier)
    except FormNotFound:
        raise HTTPException(status_code=404, detail=FORM_NOT_FOUND_DETAIL)
    except StoreError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to load form: {exc}")


@router.get("/forms/{form_id}", response_model=PublicFormView)
def get_public_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    submission = _load_submission(db, form_id)
    return PublicFormView(
        id=submission.form.id,
        title=submission.form.title,
        background_image_url=submission.form.background_image_url,
        fields=submission.fields(),
    )


@router.post("/forms/{form_id}/responses", response_model=SubmissionResult, status_code=201)
async def submit_public_response(
    form_id: uuid.UUID,
    payload: SubmissionRequest,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    submission = _load_submission(db, form_id, notifier)
    submission.set_answers(payload.answers)

    try:
        outcome = await submission.submit()
    except ValidationIncomplete as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": str(exc), "missing_questions": exc.question_texts},
        )
    except ResponsePersistFailed as exc:
        raise HTTPException(status_code=503, detail=str(exc))

    return SubmissionResult(
        response_id=outcome.response_id,
        notification_warning=str(outcome.warning) if outcome.warning else None,
    )
