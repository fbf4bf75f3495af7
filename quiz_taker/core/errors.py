"""Exception types raised across the quiz-taking core."""

from __future__ import annotations


class QuizTakerError(Exception):
    """Base class for all quiz-taking errors."""


class QuizImportError(QuizTakerError):
    """Raised when a quiz definition cannot be parsed."""


class QuizNotFoundError(QuizTakerError):
    """Raised when a quiz id does not resolve to a stored quiz."""

    def __init__(self, quiz_id: str) -> None:
        super().__init__(f"Quiz not found: {quiz_id}")
        self.quiz_id = quiz_id


class QuizUnavailableError(QuizTakerError):
    """Raised when the user may not start a new attempt (expired or out of attempts)."""


class MissingIdentityError(QuizTakerError):
    """Raised when a session is requested without an authenticated user."""


class PersistenceError(QuizTakerError):
    """Raised when an attempt record could not be stored."""


class ViolationLogError(QuizTakerError):
    """Raised when a violation entry could not be written to the audit log."""
