"""Answer normalization, binary per-question scoring and result review."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from quiz_taker.core.models import (
    AnswerEntry,
    AnswerValue,
    AttemptRecord,
    AttemptReview,
    Question,
    QuestionReview,
    QuestionType,
    QuizDefinition,
)


def normalize_answer(question: Question, value: object) -> AnswerValue:
    """Coerce raw input into the answer shape required by ``question``.

    Multi-choice answers become a frozenset of strings; every other type takes
    a single string. Raises ``ValueError`` when the shape does not match.
    """
    if question.type is QuestionType.MULTI_CHOICE:
        if isinstance(value, str) or not isinstance(value, Iterable):
            raise ValueError(f"Question {question.id!r} expects a collection of option values.")
        selected = frozenset(value)
        if any(not isinstance(item, str) for item in selected):
            raise ValueError(f"Question {question.id!r} option values must be strings.")
        return selected

    if not isinstance(value, str):
        raise ValueError(f"Question {question.id!r} expects a single string answer.")
    return value


def is_answer_empty(value: object) -> bool:
    """True for a missing answer, blank text or an empty selection."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return len(value) == 0  # type: ignore[arg-type]


def is_answer_correct(question: Question, value: object) -> bool:
    if is_answer_empty(value):
        return False

    if question.type is QuestionType.MULTI_CHOICE:
        if isinstance(value, str):
            return False
        submitted = set(value)  # type: ignore[arg-type]
        correct = set(question.correct_answers)
        return len(submitted) == len(correct) and submitted <= correct

    if not isinstance(value, str):
        return False
    # Free-text questions without a declared answer are reviewed by hand and earn no credit.
    if not question.correct_answers:
        return False
    return value == question.correct_answers[0]


def score_answers(questions: Sequence[Question], answers: Mapping[str, AnswerValue]) -> int:
    return sum(1 for question in questions if is_answer_correct(question, answers.get(question.id)))


def find_first_unanswered_required(
    questions: Sequence[Question], answers: Mapping[str, AnswerValue]
) -> int | None:
    """Index of the first required question still lacking an answer, if any."""
    for index, question in enumerate(questions):
        if question.required and is_answer_empty(answers.get(question.id)):
            return index
    return None


def to_answer_entries(
    questions: Sequence[Question], answers: Mapping[str, AnswerValue]
) -> tuple[AnswerEntry, ...]:
    """Snapshot answers in question order; multi-choice sets become sorted tuples."""
    entries: list[AnswerEntry] = []
    for question in questions:
        value = answers.get(question.id)
        if isinstance(value, frozenset):
            stored: str | tuple[str, ...] | None = tuple(sorted(value))
        else:
            stored = value
        entries.append(AnswerEntry(question_id=question.id, value=stored))
    return tuple(entries)


def build_attempt_review(quiz: QuizDefinition, record: AttemptRecord) -> AttemptReview:
    """Join a stored attempt with its quiz to produce per-question results."""
    submitted = {entry.question_id: entry.value for entry in record.answers}
    rows = tuple(
        QuestionReview(
            question=question,
            user_answer=submitted.get(question.id),
            is_correct=is_answer_correct(question, submitted.get(question.id)),
        )
        for question in quiz.questions
    )
    return AttemptReview(record=record, questions=rows)
