"""Helper functions for common dialog patterns in the quiz-taking UI."""

from __future__ import annotations

from PySide6.QtWidgets import QMessageBox, QWidget

from quiz_taker.constants.ui_constants import CONFIRM_SUBMIT_MESSAGE, CONFIRM_SUBMIT_TITLE


def confirm_submit_quiz(parent: QWidget) -> bool:
    """Ask the user to confirm a manual submission.

    Returns:
        True if user confirmed, False otherwise
    """
    reply = QMessageBox.question(
        parent,
        CONFIRM_SUBMIT_TITLE,
        CONFIRM_SUBMIT_MESSAGE,
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes


def show_error(parent: QWidget | None, title: str, message: str) -> None:
    QMessageBox.critical(parent, title, message)


def show_info(parent: QWidget | None, title: str, message: str) -> None:
    QMessageBox.information(parent, title, message)


def show_warning(parent: QWidget | None, title: str, message: str) -> None:
    QMessageBox.warning(parent, title, message)
