"""Form definition model: normalization and validation of form payloads.

This is the one place where question/option ids are assigned and where the
notification settings are made consistent. It runs on every write and, in its
lenient form (``load_questions``), on every read of a stored record.
"""

import logging
import re
import uuid
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel

from app.schemas.forms import FormDefinition, Option, Question
from app.services.forms.exceptions import FieldError, FormValidationError

logger = logging.getLogger(__name__)

QUESTION_TYPES = ("short_text", "email", "number", "long_text", "single_choice", "multi_choice")
CHOICE_TYPES = frozenset({"single_choice", "multi_choice"})
NOTIFICATION_DESTINATIONS = ("none", "email", "webhook")

# Older records and clients used these names
_QUESTION_TYPE_ALIASES = {
    "text": "short_text",
    "short-text": "short_text",
    "textarea": "long_text",
    "long-text": "long_text",
    "multiple-choice": "single_choice",
    "multiple_choice": "single_choice",
    "single-choice": "single_choice",
    "radio": "single_choice",
    "checkbox": "multi_choice",
    "multi-choice": "multi_choice",
}
_DESTINATION_ALIASES = {"discord": "webhook"}

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+\-']+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}$")
TITLE_MAX_LENGTH = 255


def new_id() -> str:
    return str(uuid.uuid4())


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value or ""))


def is_valid_url(value: str) -> bool:
    """Accept absolute http(s) URLs with a host and no whitespace."""
    if not value or any(ch.isspace() for ch in value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def canonical_question_type(value: Any) -> str | None:
    name = _clean_text(value).lower()
    if name in QUESTION_TYPES:
        return name
    return _QUESTION_TYPE_ALIASES.get(name)


_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off", ""})


def parse_flag(value: Any) -> bool | None:
    """Read a boolean flag sent as a bool, 0/1 or a word like "true"/"false".

    Returns None when the value is not recognizable as either.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    return None


def _required_value(q: Mapping[str, Any]) -> Any:
    return q.get("is_required", q.get("isRequired", False))


# ---------------------------------------------------------------------------
# Id backfill
# ---------------------------------------------------------------------------


def _has_id(item: Mapping[str, Any]) -> bool:
    return bool(_clean_text(item.get("id")))


def _backfill_option(option: Any) -> dict[str, Any]:
    if isinstance(option, Mapping):
        result = dict(option)
    else:
        # Plain string options: ["Yes", "No"]
        result = {"value": "" if option is None else str(option)}
    result["id"] = _clean_text(result.get("id")) or new_id()
    return result


def backfill_ids(questions: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Return copies of ``questions`` with missing question and option ids filled in.

    Existing ids are kept as they are, so applying this twice changes nothing.
    """
    result: list[dict[str, Any]] = []
    for question in questions:
        q = dict(question)
        q["id"] = _clean_text(q.get("id")) if _has_id(q) else new_id()
        options = q.get("options")
        if isinstance(options, list):
            q["options"] = [_backfill_option(o) for o in options]
        result.append(q)
    return result


# ---------------------------------------------------------------------------
# Notification settings
# ---------------------------------------------------------------------------


def enforce_notification_exclusivity(
    destination: str,
    receiver_email: str | None,
    webhook_url: str | None,
) -> tuple[str | None, str | None]:
    """Keep only the destination field matching ``destination``.

    Returns (receiver_email, webhook_url).
    """
    if destination == "email":
        return receiver_email, None
    if destination == "webhook":
        return None, webhook_url
    return None, None


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _normalize_question(item: Mapping[str, Any], path: str, errors: list[FieldError]) -> Question | None:
    [q] = backfill_ids([item])
    valid = True

    text = _clean_text(q.get("text"))
    if not text:
        errors.append(FieldError(f"{path}.text", "Question text is required"))
        valid = False

    q_type = canonical_question_type(q.get("type"))
    if q_type is None:
        errors.append(FieldError(f"{path}.type", f"Unsupported question type: {q.get('type')!r}"))
        valid = False

    is_required = parse_flag(_required_value(q))
    if is_required is None:
        errors.append(FieldError(f"{path}.is_required", "Required flag must be true or false"))
        valid = False

    options: list[Option] = []
    if q_type in CHOICE_TYPES:
        raw_options = q.get("options") or []
        if not isinstance(raw_options, list) or not raw_options:
            errors.append(FieldError(f"{path}.options", "Choice questions need at least one option"))
            valid = False
            raw_options = []
        for index, option in enumerate(raw_options):
            value = _clean_text(option.get("value"))
            if not value:
                errors.append(FieldError(f"{path}.options.{index}.value", "Option value cannot be empty"))
                valid = False
                continue
            options.append(Option(id=option["id"], value=value))

    if not valid:
        return None
    return Question(id=q["id"], text=text, type=q_type, is_required=is_required, options=options)


def normalize(raw: Mapping[str, Any] | BaseModel) -> FormDefinition:
    """Normalize and validate a raw form payload.

    Assigns missing question/option ids, trims text, clears options of
    non-choice questions and makes the notification fields consistent with
    the chosen destination.

    Raises:
        FormValidationError: With one FieldError per violated field.
    """
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()

    errors: list[FieldError] = []

    title = _clean_text(raw.get("title"))
    if not title:
        errors.append(FieldError("title", "Form title is required"))
    elif len(title) > TITLE_MAX_LENGTH:
        errors.append(FieldError("title", f"Form title must be at most {TITLE_MAX_LENGTH} characters"))

    raw_questions = raw.get("questions") or []
    if not isinstance(raw_questions, list):
        errors.append(FieldError("questions", "Questions must be a list"))
        raw_questions = []
    elif not raw_questions:
        errors.append(FieldError("questions", "Add at least one question to the form"))

    questions: list[Question] = []
    for index, item in enumerate(raw_questions):
        path = f"questions.{index}"
        if not isinstance(item, Mapping):
            errors.append(FieldError(path, "Question must be an object"))
            continue
        question = _normalize_question(item, path, errors)
        if question is not None:
            questions.append(question)

    background_image_url = _clean_text(raw.get("background_image_url")) or None
    if background_image_url and not is_valid_url(background_image_url):
        errors.append(FieldError("background_image_url", "Must be a valid URL"))

    destination = _clean_text(raw.get("notification_destination")).lower() or "none"
    destination = _DESTINATION_ALIASES.get(destination, destination)
    if destination not in NOTIFICATION_DESTINATIONS:
        errors.append(
            FieldError("notification_destination", f"Unsupported notification destination: {destination!r}")
        )
        destination = "none"

    receiver_email, webhook_url = enforce_notification_exclusivity(
        destination,
        _clean_text(raw.get("receiver_email")) or None,
        _clean_text(raw.get("webhook_url")) or None,
    )
    if destination == "email":
        if not receiver_email:
            errors.append(FieldError("receiver_email", "Email address is required for email notifications"))
        elif not is_valid_email(receiver_email):
            errors.append(FieldError("receiver_email", "Invalid email address format"))
    elif destination == "webhook":
        if not webhook_url:
            errors.append(FieldError("webhook_url", "Webhook URL is required for webhook notifications"))
        elif not is_valid_url(webhook_url):
            errors.append(FieldError("webhook_url", "Webhook URL must be a valid http(s) URL"))

    if errors:
        raise FormValidationError(errors)

    return FormDefinition(
        title=title,
        questions=questions,
        background_image_url=background_image_url,
        notification_destination=destination,
        receiver_email=receiver_email,
        webhook_url=webhook_url,
    )


def load_questions(raw_questions: Iterable[Mapping[str, Any]] | None) -> list[Question]:
    """Lenient read path for stored questions.

    Backfills ids and maps legacy type names without rejecting the record;
    unknown types are read as short text.
    """
    questions: list[Question] = []
    for q in backfill_ids(raw_questions or []):
        is_required = parse_flag(_required_value(q))
        if is_required is None:
            logger.warning("Stored question %s has unreadable required flag %r", q["id"], _required_value(q))
            is_required = False
        q_type = canonical_question_type(q.get("type"))
        if q_type is None:
            logger.warning("Stored question %s has unknown type %r, reading as short_text", q["id"], q.get("type"))
            q_type = "short_text"
        options: list[Option] = []
        if q_type in CHOICE_TYPES:
            options = [
                Option(id=o["id"], value=_clean_text(o.get("value")))
                for o in q.get("options") or []
            ]
        questions.append(
            Question(
                id=q["id"],
                text=_clean_text(q.get("text")),
                type=q_type,
                is_required=is_required,
                options=options,
            )
        )
    return questions
