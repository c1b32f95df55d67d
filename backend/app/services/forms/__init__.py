"""Forms service: definition model, form store and response store.

The public submission flow lives in ``app.services.forms.submission``.
"""

from app.services.forms.definition import (
    backfill_ids,
    enforce_notification_exclusivity,
    load_questions,
    normalize,
)
from app.services.forms.exceptions import (
    FieldError,
    Forbidden,
    FormNotFound,
    FormServiceError,
    FormValidationError,
    IndexMissing,
    NotificationFailed,
    ResponsePersistFailed,
    StoreError,
    StoreReadFailed,
    StoreWriteFailed,
    SubmissionClosed,
    SubmissionError,
    ValidationIncomplete,
)
from app.services.forms.responses import (
    all_responses,
    append_response,
    count_responses,
    export_responses_csv,
    list_responses,
    total_responses_for_owner,
)
from app.services.forms.store import (
    create_form,
    delete_form,
    get_form,
    list_forms_by_owner,
    update_form,
)

__all__ = [
    "FieldError",
    "Forbidden",
    "FormNotFound",
    "FormServiceError",
    "FormValidationError",
    "IndexMissing",
    "NotificationFailed",
    "ResponsePersistFailed",
    "StoreError",
    "StoreReadFailed",
    "StoreWriteFailed",
    "SubmissionClosed",
    "SubmissionError",
    "ValidationIncomplete",
    "all_responses",
    "append_response",
    "backfill_ids",
    "count_responses",
    "create_form",
    "delete_form",
    "enforce_notification_exclusivity",
    "export_responses_csv",
    "get_form",
    "list_forms_by_owner",
    "list_responses",
    "load_questions",
    "normalize",
    "total_responses_for_owner",
    "update_form",
]
