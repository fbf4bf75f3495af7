"""Utilities for loading quiz definitions from JSON files.

File format (one quiz per ``.json`` file):

    {
      "id": "python-basics",
      "title": "Python Basics",
      "duration_minutes": 10,
      "cheating_protection": true,
      "max_attempts": 2,
      "expires_at": "2026-12-31T23:59:00+00:00",
      "questions": [
        {"id": "q1", "text": "Which keyword defines a function?", "type": "mcq",
         "options": ["func", "def", "lambda"], "correct_answers": ["def"], "required": true},
        {"id": "q2", "text": "Pick the immutable types.", "type": "msq",
         "options": ["list", "tuple", "frozenset"], "correct_answers": ["tuple", "frozenset"]},
        {"id": "q3", "text": "`None` is falsy.", "type": "tf", "correct_answers": ["True"]},
        {"id": "q4", "text": "Explain duck typing.", "type": "text"}
      ]
    }

Question types are ``mcq`` (single choice), ``msq`` (multiple choice), ``tf``
(true/false) and ``text`` (free text). Free-text questions may omit
``correct_answers``; they then earn no credit and are left for manual review.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from quiz_taker.core.errors import QuizImportError
from quiz_taker.core.models import QuizDefinition
from quiz_taker.core.schemas import QuizDocument


def load_quiz_from_file(file_path: Path) -> QuizDefinition:
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise QuizImportError(f"Could not read quiz file {file_path}: {exc}") from exc
    return parse_quiz_json(text, source=str(file_path))


def parse_quiz_json(text: str, source: str = "<string>") -> QuizDefinition:
    try:
        document = QuizDocument.model_validate_json(text)
    except ValidationError as exc:
        raise QuizImportError(f"Invalid quiz definition in {source}: {exc}") from exc
    return document.to_definition()

