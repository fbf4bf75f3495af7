"""Qt window for taking one quiz attempt."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import Qt
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QButtonGroup,
    QCheckBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPlainTextEdit,
    QProgressBar,
    QPushButton,
    QRadioButton,
    QVBoxLayout,
    QWidget,
)

from quiz_taker.constants.session_constants import LOW_TIME_WARNING_SECONDS
from quiz_taker.constants.ui_constants import (
    CHEATING_SUBMIT_MESSAGE,
    CHEATING_SUBMIT_TITLE,
    CHEATING_WARNING_MESSAGE,
    CHEATING_WARNING_TITLE,
    NEXT_BUTTON,
    PREVIOUS_BUTTON,
    QUESTION_COUNTER_TEMPLATE,
    REQUIRED_QUESTION_TITLE,
    RESULT_TEMPLATE,
    RESULT_TITLE,
    SUBMISSION_ERROR_MESSAGE,
    SUBMISSION_ERROR_TITLE,
    SUBMIT_BUTTON,
    SUBMITTING_BUTTON,
    TEXT_ANSWER_PLACEHOLDER,
    TIME_UP_MESSAGE,
    TIME_UP_TITLE,
    WINDOW_TITLE,
)
from quiz_taker.core.errors import PersistenceError
from quiz_taker.core.markdown_renderer import renderer
from quiz_taker.core.models import (
    AttemptRecord,
    Diagnostic,
    QuestionType,
    SubmissionState,
    SubmissionType,
)
from quiz_taker.core.services.attempt_controller import AttemptListener
from quiz_taker.runtime.attempt_session import AttemptSession
from quiz_taker.ui.dialog_helpers import (
    confirm_submit_quiz,
    show_error,
    show_info,
    show_warning,
)

_NORMAL_TIMER_STYLE = "font-weight: bold; padding: 2px 8px; border-radius: 4px;"
_LOW_TIMER_STYLE = _NORMAL_TIMER_STYLE + " color: #b91c1c; background: #fee2e2;"


def format_time(seconds: int) -> str:
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


class _WindowListener(AttemptListener):
    """Forwards controller notifications to the window."""

    def __init__(self, window: QuizTakeWindow) -> None:
        self._window = window

    def on_question_changed(self, index: int) -> None:
        self._window.render_current_question()

    def on_time_changed(self, remaining_seconds: int) -> None:
        self._window.update_timer(remaining_seconds)

    def on_violation_warning(self, count: int) -> None:
        show_warning(self._window, CHEATING_WARNING_TITLE, CHEATING_WARNING_MESSAGE)

    def on_validation_failed(self, diagnostic: Diagnostic) -> None:
        show_warning(self._window, REQUIRED_QUESTION_TITLE, diagnostic.message)

    def on_submission_started(self, trigger: SubmissionType) -> None:
        self._window.set_submitting(True)

    def on_submitted(self, attempt_id: str, record: AttemptRecord) -> None:
        self._window.show_result(attempt_id, record)

    def on_submission_failed(self, error: PersistenceError) -> None:
        self._window.set_submitting(False)
        show_error(self._window, SUBMISSION_ERROR_TITLE, SUBMISSION_ERROR_MESSAGE)


class QuizTakeWindow(QMainWindow):
    """Presents one question at a time and forwards user input to the controller."""

    def __init__(
        self,
        session: AttemptSession,
        on_finished: Callable[[str | None], None] | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.session = session
        self.controller = session.controller
        self.on_finished = on_finished
        self._listener = _WindowListener(self)
        self._answer_widgets: list[QWidget] = []
        self._button_group: QButtonGroup | None = None

        self.setWindowTitle(f"{WINDOW_TITLE} - {self.controller.quiz.title}")
        self._build_ui()
        self.controller.add_listener(self._listener)
        self.update_timer(self.controller.remaining_seconds)
        self.render_current_question()

    def _build_ui(self) -> None:
        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)
        layout = QVBoxLayout()
        central_widget.setLayout(layout)

        header_row = QHBoxLayout()
        self.title_label = QLabel(self.controller.quiz.title, self)
        self.title_label.setStyleSheet("font-size: 16pt; font-weight: bold;")
        header_row.addWidget(self.title_label)
        header_row.addStretch()
        self.timer_label = QLabel("", self)
        self.timer_label.setStyleSheet(_NORMAL_TIMER_STYLE)
        header_row.addWidget(self.timer_label)
        layout.addLayout(header_row)

        self.progress_bar = QProgressBar(self)
        self.progress_bar.setRange(0, self.controller.quiz.question_count)
        self.progress_bar.setTextVisible(False)
        layout.addWidget(self.progress_bar)

        self.counter_label = QLabel("", self)
        self.counter_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.counter_label)

        self.question_label = QLabel("", self)
        self.question_label.setTextFormat(Qt.RichText)
        self.question_label.setWordWrap(True)
        self.question_label.setMinimumHeight(100)
        layout.addWidget(self.question_label)

        self.answers_layout = QVBoxLayout()
        layout.addLayout(self.answers_layout)
        layout.addStretch()

        nav_row = QHBoxLayout()
        self.prev_button = QPushButton(PREVIOUS_BUTTON, self)
        self.prev_button.clicked.connect(self._handle_previous)
        nav_row.addWidget(self.prev_button)
        nav_row.addStretch()

        self.next_button = QPushButton(NEXT_BUTTON, self)
        self.next_button.clicked.connect(self._handle_next)
        nav_row.addWidget(self.next_button)

        self.submit_button = QPushButton(SUBMIT_BUTTON, self)
        self.submit_button.clicked.connect(self._handle_submit)
        nav_row.addWidget(self.submit_button)
        layout.addLayout(nav_row)

    # --- Rendering ---

    def render_current_question(self) -> None:
        controller = self.controller
        index = controller.current_index
        total = controller.quiz.question_count
        question = controller.current_question

        self.progress_bar.setValue(index + 1)
        self.counter_label.setText(QUESTION_COUNTER_TEMPLATE.format(current=index + 1, total=total))
        html = renderer.render_fragment(question.text)
        if question.image_url:
            html += f'<p><img src="{question.image_url}" /></p>'
        self.question_label.setText(html)

        self._clear_answer_widgets()
        current_answer = controller.get_answer(question.id)
        if question.type is QuestionType.MULTI_CHOICE:
            selected = current_answer if isinstance(current_answer, frozenset) else frozenset()
            for option in question.display_options:
                checkbox = QCheckBox(option, self)
                checkbox.setChecked(option in selected)
                checkbox.toggled.connect(lambda _checked: self._collect_multi_choice())
                self._add_answer_widget(checkbox)
        elif question.type is QuestionType.FREE_TEXT:
            editor = QPlainTextEdit(self)
            editor.setPlaceholderText(TEXT_ANSWER_PLACEHOLDER)
            editor.setPlainText(current_answer if isinstance(current_answer, str) else "")
            editor.textChanged.connect(lambda: self._set_answer(editor.toPlainText()))
            self._add_answer_widget(editor)
        else:
            self._button_group = QButtonGroup(self)
            for option in question.display_options:
                radio = QRadioButton(option, self)
                radio.setChecked(option == current_answer)
                radio.toggled.connect(lambda checked, value=option: self._handle_option_toggled(checked, value))
                self._button_group.addButton(radio)
                self._add_answer_widget(radio)

        is_last = index == total - 1
        self.prev_button.setEnabled(index > 0)
        self.next_button.setVisible(not is_last)
        self.submit_button.setVisible(is_last)

    def update_timer(self, remaining_seconds: int) -> None:
        self.timer_label.setText(format_time(remaining_seconds))
        style = _LOW_TIMER_STYLE if remaining_seconds < LOW_TIME_WARNING_SECONDS else _NORMAL_TIMER_STYLE
        self.timer_label.setStyleSheet(style)

    def set_submitting(self, submitting: bool) -> None:
        self.submit_button.setText(SUBMITTING_BUTTON if submitting else SUBMIT_BUTTON)
        for button in (self.prev_button, self.next_button, self.submit_button):
            button.setEnabled(not submitting)
        for widget in self._answer_widgets:
            widget.setEnabled(not submitting)
        if not submitting:
            self.prev_button.setEnabled(self.controller.current_index > 0)

    def show_result(self, attempt_id: str, record: AttemptRecord) -> None:
        if record.submission_type is SubmissionType.CHEATING:
            show_warning(self, CHEATING_SUBMIT_TITLE, CHEATING_SUBMIT_MESSAGE)
        elif record.submission_type is SubmissionType.TIMEOUT:
            show_info(self, TIME_UP_TITLE, TIME_UP_MESSAGE)
        show_info(
            self,
            RESULT_TITLE,
            RESULT_TEMPLATE.format(score=record.score, total=record.total_questions, attempt_id=attempt_id),
        )
        self.close()

    # --- Input handlers ---

    def _set_answer(self, value: object) -> None:
        if self.controller.state is not SubmissionState.IN_PROGRESS:
            return
        self.controller.set_answer(self.controller.current_question.id, value)

    def _handle_option_toggled(self, checked: bool, value: str) -> None:
        if checked:
            self._set_answer(value)

    def _collect_multi_choice(self) -> None:
        selected = [widget.text() for widget in self._answer_widgets if isinstance(widget, QCheckBox) and widget.isChecked()]
        self._set_answer(selected)

    def _handle_previous(self) -> None:
        self.controller.go_previous()

    def _handle_next(self) -> None:
        self.controller.go_next()

    def _handle_submit(self) -> None:
        if not confirm_submit_quiz(self):
            return
        self.controller.submit(SubmissionType.MANUAL)

    def _add_answer_widget(self, widget: QWidget) -> None:
        self.answers_layout.addWidget(widget)
        self._answer_widgets.append(widget)

    def _clear_answer_widgets(self) -> None:
        while self.answers_layout.count():
            item = self.answers_layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()
        self._answer_widgets = []
        if self._button_group is not None:
            self._button_group.deleteLater()
            self._button_group = None

    def closeEvent(self, event: QCloseEvent) -> None:
        self.controller.remove_listener(self._listener)
        self.session.close()
        if self.on_finished is not None:
            self.on_finished(self.controller.attempt_id)
            self.on_finished = None
        super().closeEvent(event)
