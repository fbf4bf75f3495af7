"""Tests for answer normalization, scoring and attempt review."""

from datetime import datetime, timezone

import pytest

from conftest import make_question, make_quiz
from quiz_taker.core.models import AnswerEntry, AttemptRecord, QuestionType, SubmissionType
from quiz_taker.core.scoring import (
    build_attempt_review,
    find_first_unanswered_required,
    is_answer_correct,
    is_answer_empty,
    normalize_answer,
    score_answers,
    to_answer_entries,
)

MULTI = make_question("m", QuestionType.MULTI_CHOICE, ["A", "C"], options=["A", "B", "C"])
SINGLE = make_question("s", QuestionType.SINGLE_CHOICE, ["Paris"], options=["Paris", "Rome"])
BOOLEAN = make_question("b", QuestionType.BOOLEAN, ["False"])
TEXT_WITH_KEY = make_question("t", QuestionType.FREE_TEXT, ["42"])
TEXT_WITHOUT_KEY = make_question("u", QuestionType.FREE_TEXT, [])


def test_multi_choice_answer_becomes_frozenset():
    assert normalize_answer(MULTI, ["C", "A", "C"]) == frozenset({"A", "C"})


def test_multi_choice_rejects_plain_string():
    with pytest.raises(ValueError):
        normalize_answer(MULTI, "A")


def test_single_valued_question_rejects_collection():
    with pytest.raises(ValueError):
        normalize_answer(SINGLE, ["Paris"])


@pytest.mark.parametrize("value", [None, "", "   \n", frozenset(), ()])
def test_empty_answers(value):
    assert is_answer_empty(value)


def test_non_blank_answer_is_not_empty():
    assert not is_answer_empty(" x ")
    assert not is_answer_empty(frozenset({"A"}))


def test_multi_choice_is_order_independent():
    assert is_answer_correct(MULTI, frozenset({"C", "A"}))
    assert is_answer_correct(MULTI, ("C", "A"))


@pytest.mark.parametrize("value", [frozenset({"A"}), frozenset({"A", "B", "C"}), frozenset({"A", "B"})])
def test_multi_choice_requires_exact_set(value):
    assert not is_answer_correct(MULTI, value)


def test_single_choice_is_exact_and_case_sensitive():
    assert is_answer_correct(SINGLE, "Paris")
    assert not is_answer_correct(SINGLE, "paris")
    assert not is_answer_correct(SINGLE, "Rome")


def test_boolean_question():
    assert is_answer_correct(BOOLEAN, "False")
    assert not is_answer_correct(BOOLEAN, "True")


def test_free_text_matches_declared_answer_exactly():
    assert is_answer_correct(TEXT_WITH_KEY, "42")
    assert not is_answer_correct(TEXT_WITH_KEY, " 42")


def test_free_text_without_declared_answer_earns_nothing():
    assert not is_answer_correct(TEXT_WITHOUT_KEY, "anything at all")


def test_missing_answer_is_incorrect():
    assert not is_answer_correct(SINGLE, None)


def test_score_counts_correct_questions_only():
    questions = [MULTI, SINGLE, BOOLEAN, TEXT_WITHOUT_KEY]
    answers = {"m": frozenset({"A", "C"}), "s": "Rome", "b": "False", "u": "essay"}
    assert score_answers(questions, answers) == 2


def test_first_unanswered_required_skips_optional(required_quiz):
    assert find_first_unanswered_required(required_quiz.questions, {}) == 1


def test_blank_text_counts_as_unanswered(required_quiz):
    answers = {"q2": "   ", "q3": frozenset({"A"})}
    assert find_first_unanswered_required(required_quiz.questions, answers) == 1


def test_all_required_answered(required_quiz):
    answers = {"q2": "text", "q3": frozenset({"B"})}
    assert find_first_unanswered_required(required_quiz.questions, answers) is None


def test_answer_entries_follow_question_order_and_sort_sets():
    entries = to_answer_entries([MULTI, SINGLE], {"m": frozenset({"C", "A"})})
    assert entries == (
        AnswerEntry(question_id="m", value=("A", "C")),
        AnswerEntry(question_id="s", value=None),
    )


def test_build_attempt_review_marks_each_question():
    quiz = make_quiz([MULTI, SINGLE])
    now = datetime(2026, 3, 1, tzinfo=timezone.utc)
    record = AttemptRecord(
        quiz_id=quiz.id,
        quiz_title=quiz.title,
        user_id="student-1",
        user_name=None,
        answers=(AnswerEntry("m", ("A", "C")), AnswerEntry("s", "Rome")),
        score=1,
        total_questions=2,
        violation_count=0,
        submission_type=SubmissionType.MANUAL,
        started_at=now,
        submitted_at=now,
        elapsed_seconds=0,
        attempt_id="abc",
    )

    review = build_attempt_review(quiz, record)

    assert [row.is_correct for row in review.questions] == [True, False]
    assert review.questions[1].user_answer == "Rome"
    assert review.record is record
