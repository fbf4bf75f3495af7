import time
from datetime import datetime, timedelta, timezone

import pytest
from PySide6.QtCore import QCoreApplication, QEventLoop

from quiz_taker.core.errors import PersistenceError, ViolationLogError
from quiz_taker.core.models import (
    Question,
    QuestionType,
    QuizDefinition,
    UserIdentity,
)
from quiz_taker.core.services.attempt_store import AttemptStore
from quiz_taker.core.services.violation_log import ViolationLog


@pytest.fixture(scope="session")
def qt_app():
    """One QCoreApplication for the whole run; QTimer needs an event loop."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def wait_until(qt_app):
    """Pump Qt events until ``predicate()`` holds or the timeout passes."""
    def _wait(predicate, timeout_s=2.0):
        deadline = time.monotonic() + timeout_s
        while not predicate():
            if time.monotonic() > deadline:
                return False
            qt_app.processEvents(QEventLoop.AllEvents, 10)
            time.sleep(0.001)
        return True

    return _wait


@pytest.fixture
def pump_for(qt_app):
    """Pump Qt events for a fixed wall-clock duration."""
    def _pump(duration_s):
        deadline = time.monotonic() + duration_s
        while time.monotonic() < deadline:
            qt_app.processEvents(QEventLoop.AllEvents, 10)
            time.sleep(0.001)

    return _pump


class FakeClock:
    """Deterministic replacement for ``datetime.now``."""

    def __init__(self, start=None):
        self.current = start or datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.current

    def advance(self, seconds):
        self.current += timedelta(seconds=seconds)


class RecordingAttemptStore(AttemptStore):
    """In-memory store that counts writes and can be told to fail."""

    def __init__(self, fail_times=0):
        super().__init__()
        self.calls = []
        self.fail_times = fail_times

    def create_attempt(self, record):
        self.calls.append(record)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise PersistenceError("database unavailable")
        return super().create_attempt(record)


class FailingViolationLog(ViolationLog):
    def log_violation(self, entry):
        raise ViolationLogError("audit log offline")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def attempt_store():
    return RecordingAttemptStore()


@pytest.fixture
def violation_log():
    return ViolationLog()


@pytest.fixture
def identity():
    return UserIdentity(user_id="student-1", display_name="Alice Student")


def make_question(question_id, question_type, correct, options=(), required=False, text=None):
    return Question(
        id=question_id,
        text=text or f"Question {question_id}?",
        type=question_type,
        options=tuple(options),
        correct_answers=tuple(correct),
        required=required,
    )


def make_quiz(questions, duration_minutes=10, cheating_protection=True, **kwargs):
    return QuizDefinition(
        id=kwargs.pop("quiz_id", "quiz-1"),
        title=kwargs.pop("title", "Sample Quiz"),
        questions=tuple(questions),
        duration_minutes=duration_minutes,
        cheating_protection=cheating_protection,
        **kwargs,
    )


@pytest.fixture
def three_question_quiz():
    """Single choice (B), multi choice ({X, Y}) and true/false (True)."""
    return make_quiz(
        [
            make_question("q1", QuestionType.SINGLE_CHOICE, ["B"], options=["A", "B", "C"]),
            make_question("q2", QuestionType.MULTI_CHOICE, ["X", "Y"], options=["X", "Y", "Z"]),
            make_question("q3", QuestionType.BOOLEAN, ["True"]),
        ]
    )


@pytest.fixture
def required_quiz():
    """q2 and q3 are required; q1 is optional."""
    return make_quiz(
        [
            make_question("q1", QuestionType.SINGLE_CHOICE, ["A"], options=["A", "B"]),
            make_question("q2", QuestionType.FREE_TEXT, [], required=True),
            make_question("q3", QuestionType.MULTI_CHOICE, ["A"], options=["A", "B"], required=True),
        ]
    )
