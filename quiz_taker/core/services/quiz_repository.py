"""Service for looking up quiz definitions by id."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock

from quiz_taker.core.errors import QuizImportError, QuizNotFoundError
from quiz_taker.core.models import QuizDefinition
from quiz_taker.core.quiz_importer import load_quiz_from_file

logger = logging.getLogger(__name__)


class QuizRepository:
    """Read side of the quiz store, shared between the Qt client and the API thread."""

    def __init__(self, quizzes: list[QuizDefinition] | None = None) -> None:
        self._lock = Lock()
        self._quizzes: dict[str, QuizDefinition] = {}
        for quiz in quizzes or []:
            self.add_quiz(quiz)

    @classmethod
    def from_directory(cls, directory: Path) -> QuizRepository:
        """Load every ``*.json`` quiz in ``directory``, skipping files that fail validation."""
        quizzes: list[QuizDefinition] = []
        if directory.is_dir():
            for path in sorted(directory.glob("*.json")):
                try:
                    quizzes.append(load_quiz_from_file(path))
                except QuizImportError:
                    logger.warning("Skipping invalid quiz file %s", path, exc_info=True)
        logger.info("Loaded %d quiz definition(s) from %s", len(quizzes), directory)
        return cls(quizzes)

    def add_quiz(self, quiz: QuizDefinition) -> None:
        """Register a quiz, replacing any previous definition with the same id."""
        if not quiz.questions:
            raise ValueError("Quiz must contain at least one question.")
        with self._lock:
            self._quizzes[quiz.id] = quiz

    def get_quiz(self, quiz_id: str) -> QuizDefinition:
        with self._lock:
            quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(quiz_id)
        return quiz

    def get_quiz_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._quizzes)

    def has_quiz(self, quiz_id: str) -> bool:
        with self._lock:
            return quiz_id in self._quizzes
