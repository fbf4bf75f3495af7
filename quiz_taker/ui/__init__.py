"""Qt UI components for the quiz-taking client."""

from .dialog_helpers import (
    confirm_submit_quiz,
    show_error,
    show_info,
    show_warning,
)
from .take_window import QuizTakeWindow

__all__ = [
    "QuizTakeWindow",
    "confirm_submit_quiz",
    "show_error",
    "show_info",
    "show_warning",
]
