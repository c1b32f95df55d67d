"""Form API: owner-scoped CRUD, response listing, stats and CSV export."""

import uuid
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.auth import get_current_owner_id
from app.core.database import get_db
from app.schemas.forms import (
    FormDetailResponse,
    FormListResponse,
    FormPayload,
    FormResponseListResponse,
    FormStatsResponse,
    StoredForm,
)
from app.services.forms import (
    Forbidden,
    FormNotFound,
    FormValidationError,
    StoreError,
    StoreWriteFailed,
    all_responses,
    count_responses,
    create_form,
    delete_form,
    export_responses_csv,
    get_form,
    list_forms_by_owner,
    list_responses,
    normalize,
    total_responses_for_owner,
    update_form,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _validation_error(exc: FormValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail=[{"field": e.field, "message": e.message} for e in exc.errors],
    )


def _raise_store_error(exc: StoreError) -> NoReturn:
    status_code = 503 if isinstance(exc, StoreWriteFailed) else 500
    raise HTTPException(status_code=status_code, detail=str(exc))


def _normalize_or_422(payload: FormPayload):
    try:
        return normalize(payload)
    except FormValidationError as exc:
        raise _validation_error(exc)


def _get_owned_form_or_error(form_id: uuid.UUID, owner_id: str, db: Session) -> StoredForm:
    try:
        form = get_form(db, form_id)
    except FormNotFound:
        raise HTTPException(status_code=404, detail="Form not found")
    except StoreError as exc:
        _raise_store_error(exc)
    if form.owner_id != owner_id:
        raise HTTPException(status_code=403, detail="Not authorized to access this form")
    return form


# ---------------------------------------------------------------------------
# Form CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=StoredForm, status_code=201)
def create_form_endpoint(
    payload: FormPayload,
    owner_id: str = Depends(get_current_owner_id),
    db: Session = Depends(get_db),
):
    definition = _normalize_or_422(payload)
    try:
        form_id = create_form(db, owner_id, definition)
        return get_form(db, form_id)
    except FormValidationError as exc:
        raise _validation_error(exc)
    except StoreError as exc:
        _raise_store_error(exc)


@router.get("/", response_model=FormListResponse)
def list_forms_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    owner_id: str = Depends(get_current_owner_id),
    db: Session = Depends(get_db),
):
    try:
        forms = list_forms_by_owner(db, owner_id)
    except StoreError as exc:
        _raise_store_error(exc)

    offset = (page - 1) * page_size
    return FormListResponse(
        items=forms[offset : offset + page_size],
        total=len(forms),
        page=page,
        page_size=page_size,
    )


@router.get("/stats", response_model=FormStatsResponse)
def form_stats_endpoint(
    owner_id: str = Depends(get_current_owner_id),
    db: Session = Depends(get_db),
):
    """Dashboard numbers. Submission total is best effort and never fails the request."""
    try:
        form_count = len(list_forms_by_owner(db, owner_id))
    except StoreError:
        form_count = 0
    return FormStatsResponse(
        form_count=form_count,
        total_submissions=total_responses_for_owner(db, owner_id),
    )


@router.get("/{form_id}", response_model=FormDetailResponse)
def get_form_endpoint(
    form_id: uuid.UUID,
    owner_id: str = Depends(get_current_owner_id),
    db: Session = Depends(get_db),
):
    form = _get_owned_form_or_error(form_id, owner_id, db)
    try:
        response_count = count_responses(db, form.id)
    except StoreError as exc:
        _raise_store_error(exc)
    return FormDetailResponse(**form.model_dump(), response_count=response_count)


@router.put("/{form_id}", response_model=StoredForm)
def update_form_endpoint(
    form_id: uuid.UUID,
    payload: FormPayload,
    owner_id: str = Depends(get_current_owner_id),
    db: Session = Depends(get_db),
):
    definition = _normalize_or_422(payload)
    try:
        return update_form(db, form_id, owner_id, definition)
    except FormNotFound:
        raise HTTPException(status_code=404, detail="Form not found")
    except Forbidden:
        raise HTTPException(status_code=403, detail="Not authorized to update this form")
    except StoreError as exc:
        _raise_store_error(exc)


@router.delete("/{form_id}", status_code=204)
def delete_form_endpoint(
    form_id: uuid.UUID,
    owner_id: str = Depends(get_current_owner_id),
    db: Session = Depends(get_db),
):
    try:
        delete_form(db, form_id, owner_id)
    except FormNotFound:
        raise HTTPException(status_code=404, detail="Form not found")
    except Forbidden:
        raise HTTPException(status_code=403, detail="Not authorized to delete this form")
    except StoreError as exc:
        _raise_store_error(exc)


# ---------------------------------------------------------------------------
# Form responses
# ---------------------------------------------------------------------------


@router.get("/{form_id}/responses", response_model=FormResponseListResponse)
def list_form_responses(
    form_id: uuid.UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    owner_id: str = Depends(get_current_owner_id),
    db: Session = Depends(get_db),
):
    _get_owned_form_or_error(form_id, owner_id, db)
    try:
        responses, total = list_responses(db, form_id, page=page, page_size=page_size)
    except StoreError as exc:
        _raise_store_error(exc)

    return FormResponseListResponse(
        items=responses,
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{form_id}/responses/download")
def download_form_responses(
    form_id: uuid.UUID,
    owner_id: str = Depends(get_current_owner_id),
    db: Session = Depends(get_db),
):
    """Export all form responses as CSV."""
    form = _get_owned_form_or_error(form_id, owner_id, db)
    try:
        responses = all_responses(db, form_id)
    except StoreError as exc:
        _raise_store_error(exc)

    content = export_responses_csv(form, responses)
    filename = f"form_{form.title.replace(' ', '_')}_{form_id}.csv"
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
