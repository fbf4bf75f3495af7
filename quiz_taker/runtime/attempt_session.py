"""Scoped wiring of the focus monitor and countdown to an attempt controller."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
import logging

from quiz_taker.core.errors import MissingIdentityError
from quiz_taker.core.models import AttemptRecord, UserIdentity
from quiz_taker.core.services.attempt_controller import AttemptController, AttemptListener
from quiz_taker.core.services.attempt_gate import ensure_can_attempt
from quiz_taker.core.services.attempt_store import AttemptStore
from quiz_taker.core.services.quiz_repository import QuizRepository
from quiz_taker.core.services.violation_log import ViolationLog
from quiz_taker.runtime.focus_monitor import FocusMonitor
from quiz_taker.runtime.session_clock import SessionClock

logger = logging.getLogger(__name__)


class AttemptSession(AttemptListener):
    """Owns the timers and listeners of one attempt for exactly its lifetime.

    ``start()`` acquires them, ``close()`` releases them; a successful
    submission closes the session on its own. Usable as a context manager.
    """

    def __init__(
        self,
        controller: AttemptController,
        focus_monitor: FocusMonitor | None = None,
        clock: SessionClock | None = None,
    ) -> None:
        self._controller = controller
        self._focus_monitor = focus_monitor or FocusMonitor(enabled=controller.quiz.cheating_protection)
        self._clock = clock or SessionClock()
        self._started = False
        self._closed = False

    @property
    def controller(self) -> AttemptController:
        return self._controller

    @property
    def focus_monitor(self) -> FocusMonitor:
        return self._focus_monitor

    @property
    def clock(self) -> SessionClock:
        return self._clock

    def is_closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        if self._closed:
            raise RuntimeError("A closed attempt session cannot be restarted.")
        if self._started:
            return
        self._started = True
        self._controller.add_listener(self)
        self._focus_monitor.start(self._controller.handle_violation)
        # A zero-length quiz expires (and may submit and close) inside start().
        self._clock.start(
            self._controller.quiz.duration_seconds,
            self._controller.handle_tick,
            self._controller.handle_expire,
        )
        logger.info(
            "Attempt started for quiz %s by %s",
            self._controller.quiz.id,
            self._controller.identity.user_id,
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._focus_monitor.stop()
        self._clock.stop()
        self._controller.remove_listener(self)
        if not self._controller.is_finished():
            logger.info("Attempt for quiz %s abandoned before submission", self._controller.quiz.id)

    def on_submitted(self, attempt_id: str, record: AttemptRecord) -> None:
        self.close()

    def __enter__(self) -> AttemptSession:
        self.start()
        return self

    def __exit__(self, exc_type, exc, traceback) -> None:
        self.close()


def open_attempt_session(
    quiz_id: str,
    identity: UserIdentity | None,
    quiz_repository: QuizRepository,
    attempt_store: AttemptStore,
    violation_log: ViolationLog | None = None,
    now: Callable[[], datetime] | None = None,
) -> AttemptSession:
    """Fetch the quiz, check the user may attempt it and build an unstarted session.

    Raises ``QuizNotFoundError``, ``MissingIdentityError`` or
    ``QuizUnavailableError``; no session exists in those cases.
    """
    clock = now or (lambda: datetime.now(timezone.utc))
    quiz = quiz_repository.get_quiz(quiz_id)
    if identity is None:
        raise MissingIdentityError("You must be logged in to take this quiz.")
    ensure_can_attempt(quiz, identity.user_id, attempt_store, clock())
    controller = AttemptController(
        quiz=quiz,
        identity=identity,
        attempt_store=attempt_store,
        violation_log=violation_log,
        now=clock,
    )
    return AttemptSession(controller)
