"""Source exceptions: a repository or issue tracker that cannot be read."""

from pathlib import Path
from typing import Optional, Sequence, Union

from .base import DevPulseError


class SourceUnavailableError(DevPulseError):
    """Base class for errors where a whole data source cannot be read."""

    pass


class RepositoryNotFoundError(SourceUnavailableError):
    """Raised when a path is not inside a git work tree."""

    def __init__(self, path: Union[str, Path], reason: str = "not a git repository"):
        super().__init__(
            f"Not a git repository: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class GitNotFoundError(SourceUnavailableError):
    """Raised when the git executable is not installed or not on PATH."""

    def __init__(self):
        super().__init__("git executable not found on PATH")


class GitCommandError(SourceUnavailableError):
    """Raised when a git query exits non-zero or times out."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        details = {"command": " ".join(command)}
        if returncode is not None:
            details["returncode"] = str(returncode)
        if stderr:
            details["stderr"] = stderr.strip()

        super().__init__("git command failed", details=details)
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr


class IssueFetchError(SourceUnavailableError):
    """Raised when an issue tracker fetch fails outright."""

    def __init__(self, source: str, reason: str):
        super().__init__(
            f"Cannot fetch issues from {source}",
            details={"source": source, "reason": reason},
        )
        self.source = source
        self.reason = reason
