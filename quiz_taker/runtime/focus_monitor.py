"""Detects when the quiz window loses visibility or focus."""

from __future__ import annotations

from collections.abc import Callable
import logging

from PySide6.QtCore import QObject, Qt, QTimer
from PySide6.QtGui import QGuiApplication, QWindow

from quiz_taker.constants.session_constants import FOCUS_GRACE_INTERVAL_MS

logger = logging.getLogger(__name__)

_HIDDEN_APPLICATION_STATES = (
    Qt.ApplicationState.ApplicationHidden,
    Qt.ApplicationState.ApplicationSuspended,
)
_HIDDEN_WINDOW_VISIBILITIES = (
    QWindow.Visibility.Hidden,
    QWindow.Visibility.Minimized,
)


def _application_has_focus() -> bool:
    app = QGuiApplication.instance()
    if not isinstance(app, QGuiApplication):
        return False
    return QGuiApplication.focusWindow() is not None


class FocusMonitor(QObject):
    """Counts focus violations and reports each new count through a callback.

    Two signals can describe the same real event: the page becoming hidden and
    the window losing focus. Focus loss is only counted after a short grace
    interval, and only if the hidden signal has not already counted it.
    The count never decreases while the monitor lives.
    """

    def __init__(
        self,
        enabled: bool = True,
        grace_interval_ms: int = FOCUS_GRACE_INTERVAL_MS,
        focus_probe: Callable[[], bool] | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._enabled = enabled
        self._focus_probe = focus_probe or _application_has_focus
        self._watched_window: QWindow | None = None
        self._violation_count = 0
        self._is_visible = True
        self._on_violation: Callable[[int], None] | None = None
        self._active = False
        self._connected_app: QGuiApplication | None = None

        self._grace_timer = QTimer(self)
        self._grace_timer.setSingleShot(True)
        self._grace_timer.setInterval(grace_interval_ms)
        self._grace_timer.timeout.connect(self._handle_grace_elapsed)

    @property
    def violation_count(self) -> int:
        return self._violation_count

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def is_active(self) -> bool:
        return self._active

    def start(self, on_violation: Callable[[int], None]) -> None:
        if not self._enabled:
            logger.debug("Focus monitoring disabled; no listeners attached")
            return
        self._on_violation = on_violation
        if self._active:
            return
        self._active = True
        self._connect_sources()

    def watch_window(self, window: QWindow | None) -> None:
        """Also count the quiz window being minimized or hidden as the page becoming hidden."""
        if window is self._watched_window:
            return
        if self._active:
            self._disconnect_window()
        self._watched_window = window
        if self._active:
            self._connect_window()

    def stop(self) -> None:
        """Detach all listeners. Safe to call more than once."""
        self._active = False
        self._on_violation = None
        self._grace_timer.stop()
        self._disconnect_sources()

    # --- Transition rules ---

    def handle_visibility_changed(self, hidden: bool) -> None:
        if not self._active:
            return
        if not hidden:
            self._is_visible = True
            return
        if self._is_visible:
            self._is_visible = False
            self._register_violation()

    def handle_focus_lost(self) -> None:
        if not self._active:
            return
        self._grace_timer.start()

    def handle_focus_gained(self) -> None:
        if not self._active:
            return
        self._is_visible = True

    def _handle_grace_elapsed(self) -> None:
        if not self._active:
            return
        if self._is_visible and not self._focus_probe():
            self._is_visible = False
            self._register_violation()

    def _register_violation(self) -> None:
        self._violation_count += 1
        logger.info("Focus violation #%d", self._violation_count)
        callback = self._on_violation
        if callback is not None:
            callback(self._violation_count)

    # --- Qt signal plumbing ---

    def _connect_sources(self) -> None:
        app = QGuiApplication.instance()
        if isinstance(app, QGuiApplication):
            app.applicationStateChanged.connect(self._on_application_state_changed)
            app.focusWindowChanged.connect(self._on_focus_window_changed)
            self._connected_app = app
        self._connect_window()

    def _disconnect_sources(self) -> None:
        if self._connected_app is not None:
            self._connected_app.applicationStateChanged.disconnect(self._on_application_state_changed)
            self._connected_app.focusWindowChanged.disconnect(self._on_focus_window_changed)
            self._connected_app = None
        self._disconnect_window()

    def _connect_window(self) -> None:
        if self._watched_window is not None:
            self._watched_window.visibilityChanged.connect(self._on_window_visibility_changed)

    def _disconnect_window(self) -> None:
        if self._watched_window is not None:
            try:
                self._watched_window.visibilityChanged.disconnect(self._on_window_visibility_changed)
            except (RuntimeError, TypeError):
                # Not connected (never started) or the window is already gone.
                pass

    def _on_application_state_changed(self, state: Qt.ApplicationState) -> None:
        if state in _HIDDEN_APPLICATION_STATES:
            self.handle_visibility_changed(hidden=True)
        elif state == Qt.ApplicationState.ApplicationActive:
            self.handle_visibility_changed(hidden=False)

    def _on_focus_window_changed(self, window: QWindow | None) -> None:
        if window is None:
            self.handle_focus_lost()
        else:
            self.handle_focus_gained()

    def _on_window_visibility_changed(self, visibility: QWindow.Visibility) -> None:
        self.handle_visibility_changed(hidden=visibility in _HIDDEN_WINDOW_VISIBILITIES)
