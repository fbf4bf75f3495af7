"""Checks whether a user may start another attempt at a quiz."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from quiz_taker.core.errors import QuizUnavailableError
from quiz_taker.core.models import QuizDefinition
from quiz_taker.core.services.attempt_store import AttemptStore


@dataclass(frozen=True, slots=True)
class Eligibility:
    can_attempt: bool
    reason: str | None
    attempts_used: int
    last_attempt_id: str | None


def evaluate_eligibility(
    quiz: QuizDefinition,
    user_id: str,
    attempt_store: AttemptStore,
    now: datetime,
) -> Eligibility:
    """Expired quizzes and exhausted attempt limits block everyone but the quiz's creator."""
    previous = attempt_store.list_attempts(quiz.id, user_id)
    last_attempt_id = previous[0].attempt_id if previous else None
    attempts_used = len(previous)

    reason: str | None = None
    if quiz.is_expired(now):
        reason = "This quiz has expired."
    elif quiz.max_attempts is not None and attempts_used >= quiz.max_attempts:
        reason = f"You have reached the maximum of {quiz.max_attempts} attempts for this quiz."

    if reason is not None and quiz.created_by is not None and quiz.created_by == user_id:
        reason = None

    return Eligibility(
        can_attempt=reason is None,
        reason=reason,
        attempts_used=attempts_used,
        last_attempt_id=last_attempt_id,
    )


def ensure_can_attempt(
    quiz: QuizDefinition,
    user_id: str,
    attempt_store: AttemptStore,
    now: datetime,
) -> None:
    eligibility = evaluate_eligibility(quiz, user_id, attempt_store, now)
    if not eligibility.can_attempt:
        raise QuizUnavailableError(eligibility.reason)
