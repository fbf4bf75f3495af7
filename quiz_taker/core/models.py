"""Domain models for the quiz-taking application."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum, auto

from quiz_taker.constants.session_constants import BOOLEAN_OPTIONS


class QuestionType(str, Enum):
    """Question kinds, valued with the names used by stored quiz documents."""

    SINGLE_CHOICE = "mcq"
    MULTI_CHOICE = "msq"
    BOOLEAN = "tf"
    FREE_TEXT = "text"


class SubmissionType(str, Enum):
    """What caused an attempt to be submitted."""

    MANUAL = "manual"
    TIMEOUT = "timeout"
    CHEATING = "cheating"


class SubmissionState(Enum):
    """Lifecycle of an attempt's one-shot submission."""

    IN_PROGRESS = auto()
    SUBMITTING = auto()
    SUBMITTED = auto()
    SUBMISSION_FAILED = auto()


# A submitted answer: plain text for single-valued questions, a set for multi-choice.
AnswerValue = str | frozenset[str]


@dataclass(frozen=True, slots=True)
class Question:
    """A single quiz question and its answer key."""

    id: str
    text: str
    type: QuestionType
    options: tuple[str, ...] = ()
    correct_answers: tuple[str, ...] = ()
    image_url: str | None = None
    required: bool = False

    @property
    def display_options(self) -> tuple[str, ...]:
        if self.type is QuestionType.BOOLEAN:
            return BOOLEAN_OPTIONS
        return self.options


@dataclass(frozen=True, slots=True)
class QuizDefinition:
    """Read-only quiz as fetched from the quiz store."""

    id: str
    title: str
    questions: tuple[Question, ...]
    duration_minutes: int
    cheating_protection: bool = False
    max_attempts: int | None = None
    expires_at: datetime | None = None
    description: str = ""
    created_by: str | None = None

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def get_question(self, question_id: str) -> Question:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise KeyError(f"Unknown question id {question_id!r} for quiz {self.id!r}")

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now


@dataclass(frozen=True, slots=True)
class UserIdentity:
    """Authenticated user taking the quiz."""

    user_id: str
    display_name: str | None = None


@dataclass(frozen=True, slots=True)
class AnswerEntry:
    """One question's submitted value inside a persisted attempt."""

    question_id: str
    value: str | tuple[str, ...] | None


@dataclass(frozen=True, slots=True)
class AttemptRecord:
    """Write-once result of a finished attempt."""

    quiz_id: str
    quiz_title: str
    user_id: str
    user_name: str | None
    answers: tuple[AnswerEntry, ...]
    score: int
    total_questions: int
    violation_count: int
    submission_type: SubmissionType
    started_at: datetime
    submitted_at: datetime
    elapsed_seconds: int
    attempt_id: str | None = None

    def with_id(self, attempt_id: str) -> AttemptRecord:
        return replace(self, attempt_id=attempt_id)


@dataclass(frozen=True, slots=True)
class ViolationEntry:
    """Audit-trail entry for one detected focus violation."""

    quiz_id: str
    user_id: str
    violation_number: int
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """User-facing explanation for a rejected navigation or submission."""

    question_index: int
    question_id: str
    message: str


@dataclass(frozen=True, slots=True)
class QuestionReview:
    """A question joined with what the user answered."""

    question: Question
    user_answer: str | tuple[str, ...] | None
    is_correct: bool


@dataclass(frozen=True, slots=True)
class AttemptReview:
    """Results view data for a stored attempt."""

    record: AttemptRecord
    questions: tuple[QuestionReview, ...]
