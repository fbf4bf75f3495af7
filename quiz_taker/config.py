"""Environment-driven settings for the desktop client and read API."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from quiz_taker.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT


@dataclass(frozen=True, slots=True)
class Settings:
    """Deployment settings resolved once at startup."""

    data_dir: Path
    api_host: str = DEFAULT_HOST
    api_port: int = DEFAULT_PORT
    log_level: str = "INFO"
    user_id: str | None = None
    display_name: str | None = None

    @property
    def attempts_dir(self) -> Path:
        return self.data_dir / "attempts"

    @property
    def violation_log_path(self) -> Path:
        return self.data_dir / "violations.jsonl"


def load_settings(env_file: Path | None = None) -> Settings:
    """Read settings from the environment, optionally seeded from a .env file."""
    load_dotenv(dotenv_path=env_file)

    raw_port = os.getenv("QUIZ_TAKER_API_PORT")
    try:
        api_port = int(raw_port) if raw_port else DEFAULT_PORT
    except ValueError as exc:
        raise ValueError(f"QUIZ_TAKER_API_PORT must be an integer, got {raw_port!r}") from exc

    return Settings(
        data_dir=Path(os.getenv("QUIZ_TAKER_DATA_DIR", "data")).expanduser(),
        api_host=os.getenv("QUIZ_TAKER_API_HOST", DEFAULT_HOST),
        api_port=api_port,
        log_level=os.getenv("QUIZ_TAKER_LOG_LEVEL", "INFO"),
        user_id=os.getenv("QUIZ_TAKER_USER_ID") or None,
        display_name=os.getenv("QUIZ_TAKER_DISPLAY_NAME") or None,
    )
