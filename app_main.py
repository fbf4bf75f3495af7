"""Application entry point for the QuizTaker desktop client."""

from __future__ import annotations

import argparse
import sys

from PySide6.QtWidgets import QApplication

from quiz_taker.config import load_settings
from quiz_taker.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION
from quiz_taker.core.errors import (
    MissingIdentityError,
    QuizNotFoundError,
    QuizUnavailableError,
)
from quiz_taker.core.models import UserIdentity
from quiz_taker.core.services.attempt_store import AttemptStore
from quiz_taker.core.services.quiz_repository import QuizRepository
from quiz_taker.core.services.violation_log import ViolationLog
from quiz_taker.runtime.attempt_session import open_attempt_session
from quiz_taker.server.api_server import start_api_server
from quiz_taker.ui.dialog_helpers import show_error
from quiz_taker.ui.take_window import QuizTakeWindow
from quiz_taker.utils.logging_config import configure_logging


def _parse_args(argv: list[str]) -> tuple[argparse.Namespace, list[str]]:
    parser = argparse.ArgumentParser(prog=APP_NAME.lower(), description=APP_ABOUT_TEXT)
    parser.add_argument("quiz_id", help="Id of the quiz to take")
    parser.add_argument("--user-id", help="Overrides QUIZ_TAKER_USER_ID")
    parser.add_argument("--display-name", help="Overrides QUIZ_TAKER_DISPLAY_NAME")
    parser.add_argument("--no-api", action="store_true", help="Do not start the results API")
    return parser.parse_known_args(argv)


def main() -> None:
    """Load settings and stores, start the results API, and run one attempt."""
    args, qt_args = _parse_args(sys.argv[1:])
    settings = load_settings()
    logger = configure_logging(settings.log_level)
    logger.info("Starting QuizTaker with data directory %s", settings.data_dir)

    quiz_repository = QuizRepository.from_directory(settings.data_dir)
    attempt_store = AttemptStore(settings.attempts_dir)
    violation_log = ViolationLog(settings.violation_log_path)

    if not args.no_api:
        start_api_server(
            quiz_repository,
            attempt_store,
            violation_log,
            host=settings.api_host,
            port=settings.api_port,
        )
        logger.info("Results API available at http://%s:%d/", settings.api_host, settings.api_port)

    app = QApplication([sys.argv[0], *qt_args])
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)

    user_id = args.user_id or settings.user_id
    identity = None
    if user_id:
        identity = UserIdentity(user_id=user_id, display_name=args.display_name or settings.display_name)

    try:
        session = open_attempt_session(
            args.quiz_id,
            identity,
            quiz_repository,
            attempt_store,
            violation_log,
        )
    except (QuizNotFoundError, MissingIdentityError, QuizUnavailableError) as exc:
        logger.error("Cannot start quiz %s: %s", args.quiz_id, exc)
        show_error(None, "Error", str(exc))
        sys.exit(1)

    def on_finished(attempt_id: str | None) -> None:
        if attempt_id is not None:
            logger.info(
                "Attempt %s stored; results at http://%s:%d/attempts/%s",
                attempt_id,
                settings.api_host,
                settings.api_port,
                attempt_id,
            )

    window = QuizTakeWindow(session, on_finished=on_finished)
    window.show()
    session.focus_monitor.watch_window(window.windowHandle())
    session.start()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
