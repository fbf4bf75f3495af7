"""Service owning the state of one quiz attempt: answers, cursor and submission."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
import logging
import math

from quiz_taker.constants.session_constants import (
    AUTO_SUBMIT_VIOLATION_COUNT,
    WARNING_VIOLATION_COUNT,
)
from quiz_taker.core.errors import MissingIdentityError, PersistenceError
from quiz_taker.core.models import (
    AnswerValue,
    AttemptRecord,
    Diagnostic,
    Question,
    QuizDefinition,
    SubmissionState,
    SubmissionType,
    UserIdentity,
    ViolationEntry,
)
from quiz_taker.core.scoring import (
    find_first_unanswered_required,
    is_answer_empty,
    normalize_answer,
    score_answers,
    to_answer_entries,
)
from quiz_taker.core.services.attempt_store import AttemptStore
from quiz_taker.core.services.violation_log import ViolationLog

logger = logging.getLogger(__name__)

REQUIRED_ANSWER_MESSAGE = "Question {number} is required. Please answer it before continuing."


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SubmitStatus(Enum):
    SUBMITTED = auto()
    REJECTED = auto()
    IGNORED = auto()
    FAILED = auto()


@dataclass(frozen=True, slots=True)
class SubmitOutcome:
    """Result of a ``submit()`` call."""

    status: SubmitStatus
    attempt_id: str | None = None
    record: AttemptRecord | None = None
    diagnostic: Diagnostic | None = None
    error: PersistenceError | None = None


class AttemptListener:
    """Receives controller notifications. Subclasses override what they need."""

    def on_question_changed(self, index: int) -> None:
        pass

    def on_time_changed(self, remaining_seconds: int) -> None:
        pass

    def on_violation_warning(self, count: int) -> None:
        pass

    def on_validation_failed(self, diagnostic: Diagnostic) -> None:
        pass

    def on_submission_started(self, trigger: SubmissionType) -> None:
        pass

    def on_submitted(self, attempt_id: str, record: AttemptRecord) -> None:
        pass

    def on_submission_failed(self, error: PersistenceError) -> None:
        pass


class AttemptController:
    """Single writer of session state.

    Focus and clock events arrive as plain method calls carrying their payload
    (``handle_violation(count)``, ``handle_tick(remaining)``); only this class
    decides when the attempt is submitted, and it submits at most once.
    """

    def __init__(
        self,
        quiz: QuizDefinition,
        identity: UserIdentity | None,
        attempt_store: AttemptStore,
        violation_log: ViolationLog | None = None,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        if identity is None:
            raise MissingIdentityError("An authenticated user is required to take a quiz.")
        if not quiz.questions:
            raise ValueError("Quiz must contain at least one question.")

        self._quiz = quiz
        self._identity = identity
        self._attempt_store = attempt_store
        self._violation_log = violation_log
        self._now = now

        self._state = SubmissionState.IN_PROGRESS
        self._current_index = 0
        self._answers: dict[str, AnswerValue] = {}
        self._remaining_seconds = quiz.duration_seconds
        self._violation_count = 0
        self._started_at = now()
        self._pending_trigger: SubmissionType | None = None
        self._attempt_id: str | None = None
        self._record: AttemptRecord | None = None
        self._listeners: list[AttemptListener] = []

    # --- Read-only state ---

    @property
    def quiz(self) -> QuizDefinition:
        return self._quiz

    @property
    def identity(self) -> UserIdentity:
        return self._identity

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_question(self) -> Question:
        return self._quiz.questions[self._current_index]

    @property
    def answers(self) -> dict[str, AnswerValue]:
        return dict(self._answers)

    @property
    def remaining_seconds(self) -> int:
        return self._remaining_seconds

    @property
    def violation_count(self) -> int:
        return self._violation_count

    @property
    def started_at(self) -> datetime:
        return self._started_at

    @property
    def attempt_id(self) -> str | None:
        return self._attempt_id

    @property
    def record(self) -> AttemptRecord | None:
        return self._record

    def is_finished(self) -> bool:
        return self._state is SubmissionState.SUBMITTED

    def get_answer(self, question_id: str) -> AnswerValue | None:
        return self._answers.get(question_id)

    def add_listener(self, listener: AttemptListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: AttemptListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- Answers and navigation ---

    def set_answer(self, question_id: str, value: object) -> None:
        if self._state is not SubmissionState.IN_PROGRESS:
            raise RuntimeError("Answers can only be changed while the attempt is in progress.")
        question = self._quiz.get_question(question_id)
        self._answers[question_id] = normalize_answer(question, value)

    def go_next(self) -> Diagnostic | None:
        """Advance the cursor; a required, unanswered current question blocks the move."""
        question = self.current_question
        if question.required and is_answer_empty(self._answers.get(question.id)):
            diagnostic = self._required_diagnostic(self._current_index)
            self._notify("on_validation_failed", diagnostic)
            return diagnostic
        if self._current_index < self._quiz.question_count - 1:
            self._move_to(self._current_index + 1)
        return None

    def go_previous(self) -> None:
        if self._current_index > 0:
            self._move_to(self._current_index - 1)

    # --- Submission ---

    def submit(self, trigger: SubmissionType = SubmissionType.MANUAL) -> SubmitOutcome:
        if self._state is not SubmissionState.IN_PROGRESS:
            logger.debug("Ignoring %s submission in state %s", trigger.value, self._state.name)
            return SubmitOutcome(status=SubmitStatus.IGNORED, attempt_id=self._attempt_id)

        # A manual retry after a failed automatic submission keeps the automatic cause.
        if trigger is SubmissionType.MANUAL and self._pending_trigger is not None:
            trigger = self._pending_trigger

        if trigger is SubmissionType.MANUAL:
            missing_index = find_first_unanswered_required(self._quiz.questions, self._answers)
            if missing_index is not None:
                self._move_to(missing_index)
                diagnostic = self._required_diagnostic(missing_index)
                self._notify("on_validation_failed", diagnostic)
                return SubmitOutcome(status=SubmitStatus.REJECTED, diagnostic=diagnostic)

        record = self._build_record(trigger)
        self._state = SubmissionState.SUBMITTING

        try:
            self._notify("on_submission_started", trigger)
            attempt_id = self._attempt_store.create_attempt(record)
        except Exception as exc:
            logger.exception("Submitting %s attempt for quiz %s failed", trigger.value, self._quiz.id)
            error = exc if isinstance(exc, PersistenceError) else PersistenceError(str(exc))
            self._state = SubmissionState.SUBMISSION_FAILED
            if trigger is not SubmissionType.MANUAL:
                self._pending_trigger = trigger
            try:
                self._notify("on_submission_failed", error)
            finally:
                self._state = SubmissionState.IN_PROGRESS
            return SubmitOutcome(status=SubmitStatus.FAILED, error=error)

        self._attempt_id = attempt_id
        self._record = record.with_id(attempt_id)
        self._state = SubmissionState.SUBMITTED
        self._notify("on_submitted", attempt_id, self._record)
        return SubmitOutcome(status=SubmitStatus.SUBMITTED, attempt_id=attempt_id, record=self._record)

    # --- Event handlers ---

    def handle_tick(self, remaining_seconds: int) -> None:
        if self._state is SubmissionState.SUBMITTED:
            return
        self._remaining_seconds = max(0, remaining_seconds)
        self._notify("on_time_changed", self._remaining_seconds)

    def handle_expire(self) -> SubmitOutcome:
        self._remaining_seconds = 0
        logger.info("Time is up for quiz %s", self._quiz.id)
        return self.submit(SubmissionType.TIMEOUT)

    def handle_violation(self, count: int) -> SubmitOutcome | None:
        if self._state is SubmissionState.SUBMITTED:
            return None
        self._violation_count = max(self._violation_count, count)
        logger.warning("Focus violation %d detected for quiz %s", count, self._quiz.id)
        self._log_violation(count)

        if count == WARNING_VIOLATION_COUNT:
            self._notify("on_violation_warning", count)
            return None
        if count >= AUTO_SUBMIT_VIOLATION_COUNT:
            return self.submit(SubmissionType.CHEATING)
        return None

    # --- Internals ---

    def _build_record(self, trigger: SubmissionType) -> AttemptRecord:
        submitted_at = self._now()
        if trigger is SubmissionType.CHEATING:
            score = 0
        else:
            score = score_answers(self._quiz.questions, self._answers)
        elapsed = max(0, math.floor((submitted_at - self._started_at).total_seconds()))
        return AttemptRecord(
            quiz_id=self._quiz.id,
            quiz_title=self._quiz.title,
            user_id=self._identity.user_id,
            user_name=self._identity.display_name,
            answers=to_answer_entries(self._quiz.questions, self._answers),
            score=score,
            total_questions=self._quiz.question_count,
            violation_count=self._violation_count,
            submission_type=trigger,
            started_at=self._started_at,
            submitted_at=submitted_at,
            elapsed_seconds=elapsed,
        )

    def _log_violation(self, count: int) -> None:
        if self._violation_log is None:
            return
        entry = ViolationEntry(
            quiz_id=self._quiz.id,
            user_id=self._identity.user_id,
            violation_number=count,
            timestamp=self._now(),
        )
        try:
            self._violation_log.log_violation(entry)
        except Exception:
            logger.warning("Could not record violation %d for quiz %s", count, self._quiz.id, exc_info=True)

    def _required_diagnostic(self, index: int) -> Diagnostic:
        question = self._quiz.questions[index]
        return Diagnostic(
            question_index=index,
            question_id=question.id,
            message=REQUIRED_ANSWER_MESSAGE.format(number=index + 1),
        )

    def _move_to(self, index: int) -> None:
        if index == self._current_index:
            return
        self._current_index = index
        self._notify("on_question_changed", index)

    def _notify(self, method_name: str, *args: object) -> None:
        for listener in list(self._listeners):
            getattr(listener, method_name)(*args)
