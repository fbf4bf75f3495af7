"""Best-effort audit trail of focus violations."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock

from pydantic import ValidationError

from quiz_taker.core.errors import ViolationLogError
from quiz_taker.core.models import ViolationEntry
from quiz_taker.core.schemas import ViolationDocument

logger = logging.getLogger(__name__)


class ViolationLog:
    """Collects violation entries in memory and appends them to a JSON-lines file."""

    def __init__(self, log_path: Path | None = None) -> None:
        self._lock = Lock()
        self._entries: list[ViolationEntry] = []
        self._log_path = log_path
        if log_path is not None and log_path.is_file():
            self._load_existing(log_path)

    def log_violation(self, entry: ViolationEntry) -> None:
        with self._lock:
            self._entries.append(entry)
            if self._log_path is None:
                return
            line = ViolationDocument.from_entry(entry).model_dump_json()
            try:
                self._log_path.parent.mkdir(parents=True, exist_ok=True)
                with self._log_path.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
            except OSError as exc:
                raise ViolationLogError(f"Could not append to {self._log_path}: {exc}") from exc

    def get_entries(self, quiz_id: str | None = None) -> list[ViolationEntry]:
        with self._lock:
            if quiz_id is None:
                return list(self._entries)
            return [entry for entry in self._entries if entry.quiz_id == quiz_id]

    def _load_existing(self, log_path: Path) -> None:
        for line in log_path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            try:
                self._entries.append(ViolationDocument.model_validate_json(line).to_entry())
            except ValidationError:
                logger.warning("Skipping malformed violation log line in %s", log_path)
