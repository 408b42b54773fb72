"""Exception hierarchy for devpulse."""

from .base import DevPulseError
from .config import ConfigurationError, InvalidConfigError
from .source import (
    GitCommandError,
    GitNotFoundError,
    IssueFetchError,
    RepositoryNotFoundError,
    SourceUnavailableError,
)

__all__ = [
    "DevPulseError",
    "SourceUnavailableError",
    "RepositoryNotFoundError",
    "GitNotFoundError",
    "GitCommandError",
    "IssueFetchError",
    "ConfigurationError",
    "InvalidConfigError",
]
