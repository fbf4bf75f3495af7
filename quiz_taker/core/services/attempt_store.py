"""Write-once storage for finished attempts."""

from __future__ import annotations

from contextlib import suppress
import logging
import os
from pathlib import Path
from threading import Lock
from uuid import uuid4

from pydantic import ValidationError

from quiz_taker.core.errors import PersistenceError
from quiz_taker.core.models import AttemptRecord
from quiz_taker.core.schemas import AttemptDocument

logger = logging.getLogger(__name__)


class AttemptStore:
    """Keeps attempts in memory and, when given a directory, one JSON file per attempt.

    Files are written to a temporary name and then renamed into place, so a
    record is either fully stored or not stored at all.
    """

    def __init__(self, storage_dir: Path | None = None) -> None:
        self._lock = Lock()
        self._attempts: dict[str, AttemptRecord] = {}
        self._storage_dir = storage_dir
        if storage_dir is not None:
            self._load_existing(storage_dir)

    def create_attempt(self, record: AttemptRecord) -> str:
        """Persist ``record`` and return its new attempt id."""
        attempt_id = uuid4().hex
        stored = record.with_id(attempt_id)
        with self._lock:
            if self._storage_dir is not None:
                self._write_file(stored)
            self._attempts[attempt_id] = stored
        logger.info(
            "Stored attempt %s for quiz %s (score %d/%d, %s)",
            attempt_id,
            record.quiz_id,
            record.score,
            record.total_questions,
            record.submission_type.value,
        )
        return attempt_id

    def get_attempt(self, attempt_id: str) -> AttemptRecord | None:
        with self._lock:
            return self._attempts.get(attempt_id)

    def list_attempts(self, quiz_id: str, user_id: str | None = None) -> list[AttemptRecord]:
        """Attempts for a quiz, optionally narrowed to one user, newest first."""
        with self._lock:
            matches = [
                record
                for record in self._attempts.values()
                if record.quiz_id == quiz_id and (user_id is None or record.user_id == user_id)
            ]
        return sorted(matches, key=lambda record: record.submitted_at, reverse=True)

    def count_attempts(self, quiz_id: str, user_id: str) -> int:
        return len(self.list_attempts(quiz_id, user_id))

    def _write_file(self, record: AttemptRecord) -> None:
        assert self._storage_dir is not None
        target = self._storage_dir / f"{record.attempt_id}.json"
        temp_path = target.with_suffix(".json.tmp")
        try:
            self._storage_dir.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(AttemptDocument.from_record(record).model_dump_json(indent=2), encoding="utf-8")
            os.replace(temp_path, target)
        except OSError as exc:
            with suppress(OSError):
                temp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Could not store attempt {record.attempt_id}: {exc}") from exc

    def _load_existing(self, storage_dir: Path) -> None:
        if not storage_dir.is_dir():
            return
        for path in sorted(storage_dir.glob("*.json")):
            try:
                document = AttemptDocument.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, ValidationError):
                logger.warning("Skipping unreadable attempt file %s", path, exc_info=True)
                continue
            self._attempts[document.attempt_id] = document.to_record()
        logger.info("Loaded %d stored attempt(s) from %s", len(self._attempts), storage_dir)
