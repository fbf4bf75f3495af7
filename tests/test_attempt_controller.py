"""Tests for the attempt controller's navigation and one-shot submission."""

import pytest

from conftest import FailingViolationLog, RecordingAttemptStore
from quiz_taker.core.errors import MissingIdentityError
from quiz_taker.core.models import SubmissionState, SubmissionType
from quiz_taker.core.services.attempt_controller import (
    AttemptController,
    AttemptListener,
    SubmitStatus,
)


class RecordingListener(AttemptListener):
    def __init__(self):
        self.events = []

    def on_question_changed(self, index):
        self.events.append(("question", index))

    def on_violation_warning(self, count):
        self.events.append(("warning", count))

    def on_validation_failed(self, diagnostic):
        self.events.append(("invalid", diagnostic.question_index))

    def on_submission_started(self, trigger):
        self.events.append(("started", trigger))

    def on_submitted(self, attempt_id, record):
        self.events.append(("submitted", record.submission_type))

    def on_submission_failed(self, error):
        self.events.append(("failed", str(error)))


@pytest.fixture
def build_controller(identity, attempt_store, violation_log, clock):
    def _build(quiz, store=None, log=None):
        return AttemptController(
            quiz=quiz,
            identity=identity,
            attempt_store=store or attempt_store,
            violation_log=log or violation_log,
            now=clock,
        )

    return _build


def answer_two_of_three_correctly(controller):
    controller.set_answer("q1", "B")
    controller.set_answer("q2", ["Y", "X"])
    controller.set_answer("q3", "False")


def test_missing_identity_is_rejected(three_question_quiz, attempt_store):
    with pytest.raises(MissingIdentityError):
        AttemptController(three_question_quiz, None, attempt_store)


def test_initial_state(build_controller, three_question_quiz):
    controller = build_controller(three_question_quiz)

    assert controller.state is SubmissionState.IN_PROGRESS
    assert controller.current_index == 0
    assert controller.remaining_seconds == 600
    assert controller.violation_count == 0
    assert controller.answers == {}


def test_manual_submission_scores_answers(build_controller, three_question_quiz, attempt_store, clock):
    controller = build_controller(three_question_quiz)
    answer_two_of_three_correctly(controller)
    clock.advance(95.8)

    outcome = controller.submit()

    assert outcome.status is SubmitStatus.SUBMITTED
    assert outcome.record.score == 2
    assert outcome.record.total_questions == 3
    assert outcome.record.submission_type is SubmissionType.MANUAL
    assert outcome.record.elapsed_seconds == 95
    assert outcome.record.user_id == "student-1"
    assert controller.state is SubmissionState.SUBMITTED
    assert attempt_store.get_attempt(outcome.attempt_id) == outcome.record


def test_second_submit_is_ignored(build_controller, three_question_quiz, attempt_store):
    controller = build_controller(three_question_quiz)
    first = controller.submit()
    second = controller.submit()

    assert first.status is SubmitStatus.SUBMITTED
    assert second.status is SubmitStatus.IGNORED
    assert second.attempt_id == first.attempt_id
    assert len(attempt_store.calls) == 1


def test_timeout_and_cheating_race_persists_once(build_controller, three_question_quiz, attempt_store):
    controller = build_controller(three_question_quiz)
    controller.handle_expire()
    controller.handle_violation(1)
    controller.handle_violation(2)

    assert len(attempt_store.calls) == 1
    assert controller.record.submission_type is SubmissionType.TIMEOUT


def test_answers_are_frozen_after_submission(build_controller, three_question_quiz):
    controller = build_controller(three_question_quiz)
    controller.submit()

    with pytest.raises(RuntimeError):
        controller.set_answer("q1", "A")


def test_answer_shape_is_checked(build_controller, three_question_quiz):
    controller = build_controller(three_question_quiz)
    with pytest.raises(ValueError):
        controller.set_answer("q2", "X")


def test_go_next_blocks_on_unanswered_required(build_controller, required_quiz):
    controller = build_controller(required_quiz)
    listener = RecordingListener()
    controller.add_listener(listener)

    assert controller.go_next() is None
    diagnostic = controller.go_next()

    assert diagnostic is not None
    assert diagnostic.question_index == 1
    assert diagnostic.question_id == "q2"
    assert "Question 2 is required" in diagnostic.message
    assert controller.current_index == 1
    assert listener.events == [("question", 1), ("invalid", 1)]


def test_go_next_treats_blank_text_as_unanswered(build_controller, required_quiz):
    controller = build_controller(required_quiz)
    controller.go_next()
    controller.set_answer("q2", "   ")

    assert controller.go_next() is not None
    controller.set_answer("q2", "an answer")
    assert controller.go_next() is None
    assert controller.current_index == 2


def test_navigation_stays_in_bounds(build_controller, three_question_quiz):
    controller = build_controller(three_question_quiz)
    controller.go_previous()
    assert controller.current_index == 0

    for _ in range(5):
        controller.go_next()
    assert controller.current_index == 2


def test_manual_submit_relocates_to_first_missing_required(build_controller, required_quiz, attempt_store):
    controller = build_controller(required_quiz)
    controller.set_answer("q2", "answered")

    outcome = controller.submit()

    assert outcome.status is SubmitStatus.REJECTED
    assert outcome.diagnostic.question_id == "q3"
    assert controller.current_index == 2
    assert controller.state is SubmissionState.IN_PROGRESS
    assert attempt_store.calls == []


def test_automatic_submission_skips_required_check(build_controller, required_quiz):
    controller = build_controller(required_quiz)

    outcome = controller.handle_expire()

    assert outcome.status is SubmitStatus.SUBMITTED
    assert outcome.record.submission_type is SubmissionType.TIMEOUT
    assert controller.remaining_seconds == 0


def test_first_violation_only_warns(build_controller, three_question_quiz, attempt_store, violation_log):
    controller = build_controller(three_question_quiz)
    listener = RecordingListener()
    controller.add_listener(listener)

    assert controller.handle_violation(1) is None

    assert listener.events == [("warning", 1)]
    assert controller.state is SubmissionState.IN_PROGRESS
    assert attempt_store.calls == []
    assert [entry.violation_number for entry in violation_log.get_entries("quiz-1")] == [1]


def test_second_violation_submits_with_zero_score(build_controller, three_question_quiz):
    controller = build_controller(three_question_quiz)
    controller.set_answer("q1", "B")
    controller.set_answer("q2", ["X", "Y"])
    controller.set_answer("q3", "True")

    controller.handle_violation(1)
    outcome = controller.handle_violation(2)

    assert outcome.status is SubmitStatus.SUBMITTED
    assert outcome.record.submission_type is SubmissionType.CHEATING
    assert outcome.record.score == 0
    assert outcome.record.violation_count == 2


def test_violation_log_failure_does_not_block_attempt(build_controller, three_question_quiz):
    controller = build_controller(three_question_quiz, log=FailingViolationLog())

    controller.handle_violation(1)
    outcome = controller.handle_violation(2)

    assert outcome.status is SubmitStatus.SUBMITTED
    assert outcome.record.submission_type is SubmissionType.CHEATING


def test_violations_after_submission_are_ignored(build_controller, three_question_quiz, violation_log):
    controller = build_controller(three_question_quiz)
    controller.submit()

    assert controller.handle_violation(3) is None
    assert controller.violation_count == 0
    assert violation_log.get_entries() == []


def test_ticks_update_remaining_time(build_controller, three_question_quiz):
    controller = build_controller(three_question_quiz)
    controller.handle_tick(42)
    assert controller.remaining_seconds == 42


def test_failed_submission_can_be_retried(build_controller, three_question_quiz):
    store = RecordingAttemptStore(fail_times=1)
    controller = build_controller(three_question_quiz, store=store)
    listener = RecordingListener()
    controller.add_listener(listener)
    controller.set_answer("q1", "B")

    failed = controller.submit()

    assert failed.status is SubmitStatus.FAILED
    assert "database unavailable" in str(failed.error)
    assert controller.state is SubmissionState.IN_PROGRESS
    assert controller.answers == {"q1": "B"}
    assert listener.events[-1] == ("failed", "database unavailable")

    retried = controller.submit()

    assert retried.status is SubmitStatus.SUBMITTED
    assert retried.record.score == 1
    assert len(store.calls) == 2


def test_retry_after_failed_cheating_submission_keeps_cause(build_controller, required_quiz):
    store = RecordingAttemptStore(fail_times=1)
    controller = build_controller(required_quiz, store=store)

    controller.handle_violation(1)
    assert controller.handle_violation(2).status is SubmitStatus.FAILED

    outcome = controller.submit(SubmissionType.MANUAL)

    assert outcome.status is SubmitStatus.SUBMITTED
    assert outcome.record.submission_type is SubmissionType.CHEATING
    assert outcome.record.score == 0


def test_unexpected_store_error_is_reported_as_persistence_failure(build_controller, three_question_quiz):
    class BrokenStore(RecordingAttemptStore):
        def create_attempt(self, record):
            raise OSError("disk full")

    controller = build_controller(three_question_quiz, store=BrokenStore())
    outcome = controller.submit()

    assert outcome.status is SubmitStatus.FAILED
    assert "disk full" in str(outcome.error)


def test_listener_error_during_submission_leaves_attempt_retryable(build_controller, three_question_quiz, attempt_store):
    class ExplodingListener(AttemptListener):
        def on_submission_started(self, trigger):
            raise RuntimeError("window already destroyed")

    controller = build_controller(three_question_quiz)
    listener = ExplodingListener()
    controller.add_listener(listener)

    failed = controller.handle_expire()

    assert failed.status is SubmitStatus.FAILED
    assert controller.state is SubmissionState.IN_PROGRESS
    assert attempt_store.calls == []

    controller.remove_listener(listener)
    retried = controller.submit()

    assert retried.status is SubmitStatus.SUBMITTED
    assert retried.record.submission_type is SubmissionType.TIMEOUT
    assert len(attempt_store.calls) == 1
