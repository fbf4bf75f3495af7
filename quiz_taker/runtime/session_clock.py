"""One-second countdown with a single expiry notification."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QObject, QTimer

from quiz_taker.constants.session_constants import CLOCK_TICK_INTERVAL_MS


class SessionClock(QObject):
    """Counts down from a fixed number of seconds on the Qt event loop."""

    def __init__(self, tick_interval_ms: int = CLOCK_TICK_INTERVAL_MS, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._remaining_seconds = 0
        self._running = False
        self._on_tick: Callable[[int], None] | None = None
        self._on_expire: Callable[[], None] | None = None

        self._timer = QTimer(self)
        self._timer.setInterval(tick_interval_ms)
        self._timer.timeout.connect(self._handle_timeout)

    @property
    def remaining_seconds(self) -> int:
        return self._remaining_seconds

    def is_running(self) -> bool:
        return self._running

    def start(
        self,
        total_seconds: int,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
    ) -> None:
        """Begin counting down; a zero duration expires immediately without ticking."""
        if total_seconds < 0:
            raise ValueError("Countdown duration must not be negative.")
        self.stop()
        self._remaining_seconds = total_seconds
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._running = True
        if total_seconds == 0:
            self._finish()
            return
        self._timer.start()

    def stop(self) -> None:
        self._running = False
        self._timer.stop()
        self._on_tick = None
        self._on_expire = None

    def _handle_timeout(self) -> None:
        if not self._running:
            return
        self._remaining_seconds = max(0, self._remaining_seconds - 1)
        on_tick = self._on_tick
        if on_tick is not None:
            on_tick(self._remaining_seconds)
        # on_tick may have stopped the clock; only a still-running clock expires.
        if self._running and self._remaining_seconds == 0:
            self._finish()

    def _finish(self) -> None:
        on_expire = self._on_expire
        self._running = False
        self._timer.stop()
        self._on_tick = None
        self._on_expire = None
        if on_expire is not None:
            on_expire()
