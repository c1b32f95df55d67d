"""Build the question/answer listing sent by notifications."""

from collections.abc import Mapping, Sequence
from typing import Any

from app.schemas.forms import Question
from app.services.forms.answers import format_answer, is_answer_missing
from app.services.notifiers.models import AnswerRow

# Chat services cap the number of fields per message block
MAX_ROWS_PER_BLOCK = 20


def build_answer_rows(questions: Sequence[Question], answers: Mapping[str, Any]) -> list[AnswerRow]:
    """Answered questions in question order, multi-value answers joined with ", "."""
    rows: list[AnswerRow] = []
    for question in questions:
        value = answers.get(question.id)
        if is_answer_missing(value):
            continue
        rows.append(AnswerRow(label=question.text, value=format_answer(value)))
    return rows


def chunk_rows(rows: Sequence[AnswerRow], size: int = MAX_ROWS_PER_BLOCK) -> list[list[AnswerRow]]:
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [list(rows[i : i + size]) for i in range(0, len(rows), size)]
