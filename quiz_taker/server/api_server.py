"""FastAPI server exposing quiz summaries and attempt results."""

from __future__ import annotations

from datetime import datetime, timezone
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel
import uvicorn

from quiz_taker.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION
from quiz_taker.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_taker.core.errors import QuizNotFoundError
from quiz_taker.core.markdown_renderer import renderer
from quiz_taker.core.models import QuestionType, QuizDefinition, SubmissionType
from quiz_taker.core.schemas import AttemptDocument
from quiz_taker.core.scoring import build_attempt_review
from quiz_taker.core.services.attempt_gate import evaluate_eligibility
from quiz_taker.core.services.attempt_store import AttemptStore
from quiz_taker.core.services.quiz_repository import QuizRepository
from quiz_taker.core.services.violation_log import ViolationLog


class QuestionSummary(BaseModel):
    """Question as shown to a quiz taker; the answer key is never included."""

    id: str
    type: QuestionType
    question_html: str
    options: list[str]
    image_url: str | None = None
    required: bool = False


class QuizSummary(BaseModel):
    id: str
    title: str
    description: str
    duration_minutes: int
    cheating_protection: bool
    max_attempts: int | None
    expires_at: datetime | None
    question_count: int
    questions: list[QuestionSummary]


class EligibilityResponse(BaseModel):
    can_attempt: bool
    reason: str | None
    attempts_used: int
    last_attempt_id: str | None


class AttemptSummary(BaseModel):
    attempt_id: str
    score: int
    total_questions: int
    violation_count: int
    submission_type: SubmissionType
    submitted_at: datetime
    elapsed_seconds: int


class ViolationResponse(BaseModel):
    user_id: str
    violation_number: int
    timestamp: datetime


class QuestionResult(BaseModel):
    id: str
    type: QuestionType
    question_html: str
    options: list[str]
    correct_answers: list[str]
    user_answer: str | list[str] | None
    is_correct: bool


class AttemptResultResponse(BaseModel):
    attempt: AttemptDocument
    questions: list[QuestionResult]


def _quiz_summary(quiz: QuizDefinition) -> QuizSummary:
    return QuizSummary(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        duration_minutes=quiz.duration_minutes,
        cheating_protection=quiz.cheating_protection,
        max_attempts=quiz.max_attempts,
        expires_at=quiz.expires_at,
        question_count=quiz.question_count,
        questions=[
            QuestionSummary(
                id=question.id,
                type=question.type,
                question_html=renderer.render_fragment(question.text),
                options=list(question.display_options),
                image_url=question.image_url,
                required=question.required,
            )
            for question in quiz.questions
        ],
    )


def _get_dependency(value):
    def dependency():
        return value

    return dependency


def create_api_app(
    quiz_repository: QuizRepository,
    attempt_store: AttemptStore,
    violation_log: ViolationLog,
) -> FastAPI:
    """Create a FastAPI application wired to the provided stores."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, description=APP_ABOUT_TEXT)
    quizzes_dep = _get_dependency(quiz_repository)
    attempts_dep = _get_dependency(attempt_store)
    violations_dep = _get_dependency(violation_log)

    def load_quiz(quiz_id: str, quizzes: QuizRepository) -> QuizDefinition:
        try:
            return quizzes.get_quiz(quiz_id)
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Quiz not found.") from exc

    @app.get("/quizzes/{quiz_id}", response_model=QuizSummary)
    def get_quiz(quiz_id: str, quizzes: QuizRepository = Depends(quizzes_dep)) -> QuizSummary:
        return _quiz_summary(load_quiz(quiz_id, quizzes))

    @app.get("/quizzes/{quiz_id}/eligibility", response_model=EligibilityResponse)
    def get_eligibility(
        quiz_id: str,
        user_id: str,
        quizzes: QuizRepository = Depends(quizzes_dep),
        attempts: AttemptStore = Depends(attempts_dep),
    ) -> EligibilityResponse:
        quiz = load_quiz(quiz_id, quizzes)
        eligibility = evaluate_eligibility(quiz, user_id, attempts, datetime.now(timezone.utc))
        return EligibilityResponse(
            can_attempt=eligibility.can_attempt,
            reason=eligibility.reason,
            attempts_used=eligibility.attempts_used,
            last_attempt_id=eligibility.last_attempt_id,
        )

    @app.get("/quizzes/{quiz_id}/attempts", response_model=list[AttemptSummary])
    def list_attempts(
        quiz_id: str,
        user_id: str | None = None,
        quizzes: QuizRepository = Depends(quizzes_dep),
        attempts: AttemptStore = Depends(attempts_dep),
    ) -> list[AttemptSummary]:
        load_quiz(quiz_id, quizzes)
        return [
            AttemptSummary(
                attempt_id=record.attempt_id,
                score=record.score,
                total_questions=record.total_questions,
                violation_count=record.violation_count,
                submission_type=record.submission_type,
                submitted_at=record.submitted_at,
                elapsed_seconds=record.elapsed_seconds,
            )
            for record in attempts.list_attempts(quiz_id, user_id)
        ]

    @app.get("/quizzes/{quiz_id}/violations", response_model=list[ViolationResponse])
    def list_violations(
        quiz_id: str,
        quizzes: QuizRepository = Depends(quizzes_dep),
        violations: ViolationLog = Depends(violations_dep),
    ) -> list[ViolationResponse]:
        load_quiz(quiz_id, quizzes)
        return [
            ViolationResponse(
                user_id=entry.user_id,
                violation_number=entry.violation_number,
                timestamp=entry.timestamp,
            )
            for entry in violations.get_entries(quiz_id)
        ]

    @app.get("/attempts/{attempt_id}", response_model=AttemptResultResponse)
    def get_attempt_result(
        attempt_id: str,
        quizzes: QuizRepository = Depends(quizzes_dep),
        attempts: AttemptStore = Depends(attempts_dep),
    ) -> AttemptResultResponse:
        record = attempts.get_attempt(attempt_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Attempt not found.")
        try:
            quiz = quizzes.get_quiz(record.quiz_id)
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Associated quiz not found.") from exc

        review = build_attempt_review(quiz, record)
        return AttemptResultResponse(
            attempt=AttemptDocument.from_record(record),
            questions=[
                QuestionResult(
                    id=row.question.id,
                    type=row.question.type,
                    question_html=renderer.render_fragment(row.question.text),
                    options=list(row.question.display_options),
                    correct_answers=list(row.question.correct_answers),
                    user_answer=_as_wire_value(row.user_answer),
                    is_correct=row.is_correct,
                )
                for row in review.questions
            ],
        )

    return app


def _as_wire_value(value: str | tuple[str, ...] | None) -> str | list[str] | None:
    if isinstance(value, tuple):
        return list(value)
    return value


def start_api_server(
    quiz_repository: QuizRepository,
    attempt_store: AttemptStore,
    violation_log: ViolationLog,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(quiz_repository, attempt_store, violation_log)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizApiServer", daemon=True)
    thread.start()
    return thread
