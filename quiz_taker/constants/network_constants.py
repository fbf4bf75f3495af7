"""Network configuration constants for the quiz application."""

DEFAULT_HOST: str = "127.0.0.1"
DEFAULT_PORT: int = 8000
