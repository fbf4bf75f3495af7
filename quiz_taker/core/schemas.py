"""Pydantic schemas for quiz files, stored attempts and violation log lines."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator, model_validator

from quiz_taker.constants.session_constants import BOOLEAN_OPTIONS
from quiz_taker.core.models import (
    AnswerEntry,
    AttemptRecord,
    Question,
    QuestionType,
    QuizDefinition,
    SubmissionType,
    ViolationEntry,
)


class QuestionDocument(BaseModel):
    """Question as written in a quiz JSON file."""

    id: str = Field(min_length=1)
    text: str = Field(min_length=1)
    type: QuestionType
    options: list[str] = Field(default_factory=list)
    correct_answers: list[str] = Field(default_factory=list)
    image_url: str | None = None
    required: bool = False

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Question text cannot be empty.")
        return stripped

    @model_validator(mode="after")
    def _check_answer_key(self) -> QuestionDocument:
        count = len(self.correct_answers)
        if self.type in (QuestionType.SINGLE_CHOICE, QuestionType.BOOLEAN) and count != 1:
            raise ValueError(f"Question {self.id!r} must declare exactly one correct answer.")
        if self.type is QuestionType.MULTI_CHOICE and count < 1:
            raise ValueError(f"Question {self.id!r} must declare at least one correct answer.")
        if self.type is QuestionType.FREE_TEXT and count > 1:
            raise ValueError(f"Question {self.id!r} may declare at most one correct answer.")
        if self.type is QuestionType.BOOLEAN and self.correct_answers[0] not in BOOLEAN_OPTIONS:
            raise ValueError(f"Question {self.id!r} must be answered with True or False.")
        if self.type in (QuestionType.SINGLE_CHOICE, QuestionType.MULTI_CHOICE):
            if not self.options:
                raise ValueError(f"Question {self.id!r} needs at least one option.")
            unknown = set(self.correct_answers) - set(self.options)
            if unknown:
                raise ValueError(f"Question {self.id!r} has correct answers outside its options: {sorted(unknown)}")
        return self

    def to_question(self) -> Question:
        options = tuple(self.options) if self.type in (QuestionType.SINGLE_CHOICE, QuestionType.MULTI_CHOICE) else ()
        return Question(
            id=self.id,
            text=self.text,
            type=self.type,
            options=options,
            correct_answers=tuple(self.correct_answers),
            image_url=self.image_url,
            required=self.required,
        )


class QuizDocument(BaseModel):
    """Quiz as written in a quiz JSON file."""

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str = ""
    created_by: str | None = None
    duration_minutes: int = Field(ge=0)
    cheating_protection: bool = False
    max_attempts: int | None = Field(default=None, ge=1)
    expires_at: datetime | None = None
    questions: list[QuestionDocument] = Field(min_length=1)

    @field_validator("expires_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # Timestamps without an offset are read as UTC.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_unique_question_ids(self) -> QuizDocument:
        seen: set[str] = set()
        for question in self.questions:
            if question.id in seen:
                raise ValueError(f"Duplicate question id {question.id!r}.")
            seen.add(question.id)
        return self

    def to_definition(self) -> QuizDefinition:
        return QuizDefinition(
            id=self.id,
            title=self.title,
            questions=tuple(question.to_question() for question in self.questions),
            duration_minutes=self.duration_minutes,
            cheating_protection=self.cheating_protection,
            max_attempts=self.max_attempts,
            expires_at=self.expires_at,
            description=self.description,
            created_by=self.created_by,
        )


class AnswerDocument(BaseModel):
    question_id: str
    value: str | list[str] | None = None


class AttemptDocument(BaseModel):
    """On-disk and over-the-wire representation of an AttemptRecord."""

    attempt_id: str
    quiz_id: str
    quiz_title: str
    user_id: str
    user_name: str | None = None
    answers: list[AnswerDocument]
    score: int
    total_questions: int
    violation_count: int
    submission_type: SubmissionType
    started_at: datetime
    submitted_at: datetime
    elapsed_seconds: int

    @classmethod
    def from_record(cls, record: AttemptRecord) -> AttemptDocument:
        if record.attempt_id is None:
            raise ValueError("Only persisted attempts can be serialized.")
        return cls(
            attempt_id=record.attempt_id,
            quiz_id=record.quiz_id,
            quiz_title=record.quiz_title,
            user_id=record.user_id,
            user_name=record.user_name,
            answers=[
                AnswerDocument(
                    question_id=entry.question_id,
                    value=list(entry.value) if isinstance(entry.value, tuple) else entry.value,
                )
                for entry in record.answers
            ],
            score=record.score,
            total_questions=record.total_questions,
            violation_count=record.violation_count,
            submission_type=record.submission_type,
            started_at=record.started_at,
            submitted_at=record.submitted_at,
            elapsed_seconds=record.elapsed_seconds,
        )

    def to_record(self) -> AttemptRecord:
        return AttemptRecord(
            quiz_id=self.quiz_id,
            quiz_title=self.quiz_title,
            user_id=self.user_id,
            user_name=self.user_name,
            answers=tuple(
                AnswerEntry(
                    question_id=answer.question_id,
                    value=tuple(answer.value) if isinstance(answer.value, list) else answer.value,
                )
                for answer in self.answers
            ),
            score=self.score,
            total_questions=self.total_questions,
            violation_count=self.violation_count,
            submission_type=self.submission_type,
            started_at=self.started_at,
            submitted_at=self.submitted_at,
            elapsed_seconds=self.elapsed_seconds,
            attempt_id=self.attempt_id,
        )


class ViolationDocument(BaseModel):
    quiz_id: str
    user_id: str
    violation_number: int
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: ViolationEntry) -> ViolationDocument:
        return cls(
            quiz_id=entry.quiz_id,
            user_id=entry.user_id,
            violation_number=entry.violation_number,
            timestamp=entry.timestamp,
        )

    def to_entry(self) -> ViolationEntry:
        return ViolationEntry(
            quiz_id=self.quiz_id,
            user_id=self.user_id,
            violation_number=self.violation_number,
            timestamp=self.timestamp,
        )
