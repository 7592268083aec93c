# errors.py
# One small hierarchy so callers can catch everything from this project with a single except.

from typing import Any, Dict, Optional


class OthelloRLError(Exception):
    """Base exception for the trainer. Carries an optional context dict for log lines."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self):
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ConfigError(OthelloRLError):
    """A required option is missing or malformed. Always fatal."""


class IllegalMoveError(OthelloRLError):
    """The rules engine rejected a move. A programming defect, never retried."""


class StorageError(OthelloRLError):
    """A durable write to the value table failed and was rolled back."""


class SessionError(OthelloRLError):
    """The persisted training session could not be read."""
