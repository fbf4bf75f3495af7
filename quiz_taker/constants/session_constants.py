"""Timing and policy constants for a quiz-taking session."""

CLOCK_TICK_INTERVAL_MS: int = 1000
FOCUS_GRACE_INTERVAL_MS: int = 300
WARNING_VIOLATION_COUNT: int = 1
AUTO_SUBMIT_VIOLATION_COUNT: int = 2
LOW_TIME_WARNING_SECONDS: int = 60
BOOLEAN_OPTIONS: tuple[str, str] = ("True", "False")
