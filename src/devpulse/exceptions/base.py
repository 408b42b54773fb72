"""Root of the devpulse error hierarchy."""

from typing import Mapping, Optional


class DevPulseError(Exception):
    """Any error devpulse raises deliberately.

    ``details`` names the failing source or setting (path, branch, tracker,
    config key); values are stored as strings and shown after the message.
    """

    def __init__(self, message: str, details: Optional[Mapping[str, object]] = None):
        super().__init__(message)
        self.message = message
        self.details = {key: str(value) for key, value in (details or {}).items()}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({context})"
