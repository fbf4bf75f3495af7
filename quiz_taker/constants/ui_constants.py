"""Qt UI constants used across widgets."""

WINDOW_TITLE: str = "QuizTaker"
PREVIOUS_BUTTON: str = "Previous"
NEXT_BUTTON: str = "Next"
SUBMIT_BUTTON: str = "Submit Quiz"
SUBMITTING_BUTTON: str = "Submitting..."
TEXT_ANSWER_PLACEHOLDER: str = "Your answer..."
QUESTION_COUNTER_TEMPLATE: str = "Question {current} of {total}"

CONFIRM_SUBMIT_TITLE: str = "Are you sure you want to submit?"
CONFIRM_SUBMIT_MESSAGE: str = "You cannot change your answers after submitting."

CHEATING_WARNING_TITLE: str = "Warning: Cheating Detected"
CHEATING_WARNING_MESSAGE: str = (
    "You have lost focus of the quiz. One more violation will result in auto-submission."
)
CHEATING_SUBMIT_TITLE: str = "Quiz Auto-Submitted"
CHEATING_SUBMIT_MESSAGE: str = "Your quiz has been submitted due to multiple cheating violations."
TIME_UP_TITLE: str = "Time's Up!"
TIME_UP_MESSAGE: str = "Your quiz has been automatically submitted."

SUBMISSION_ERROR_TITLE: str = "Submission Error"
SUBMISSION_ERROR_MESSAGE: str = "Could not save your quiz results. Please try again."
REQUIRED_QUESTION_TITLE: str = "Answer required"
RESULT_TITLE: str = "Quiz submitted"
RESULT_TEMPLATE: str = "You scored {score} out of {total}.\nAttempt id: {attempt_id}"
