"""Static metadata describing QuizTaker."""

APP_NAME = "QuizTaker"
APP_VERSION = "0.1"
APP_ABOUT_TEXT = (
    "QuizTaker runs timed quizzes on the desktop with basic focus-loss detection "
    "and serves attempt results over a small read-only API."
)
