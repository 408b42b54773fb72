"""Parse textual git output (log, numstat, blame, branch listings).

All parsers are pure functions over strings so they can be tested without a
repository. Malformed rows degrade to zeros or are skipped; nothing here
raises on bad input.
"""

from __future__ import annotations

import re
from typing import Optional

from ..logging_config import get_logger
from ..math.periods import parse_timestamp
from .models import Commit, FileChange

logger = get_logger(__name__)

# Record separator starts every commit header so subjects can't fake one
COMMIT_MARKER = "\x1e"

# hash | short hash | author | email | ISO date | parents | subject
# Subject comes last because it may itself contain "|"
LOG_FORMAT = f"{COMMIT_MARKER}%H|%h|%aN|%aE|%aI|%P|%s"

BINARY_PLACEHOLDER = "-"

NO_EXTENSION = "no-ext"

_BRACE_RENAME_RE = re.compile(r"\{([^{}]*) => ([^{}]*)\}")
_EXTENSION_RE = re.compile(r"\.([^./]+)$")
_REMOTE_NAME_RE = re.compile(r"[/:]([^/:]+?)(?:\.git)?/?$")


def parse_numstat_value(token: str) -> int:
    """Binary placeholders and non-numeric tokens count as zero."""
    token = token.strip()
    if token == BINARY_PLACEHOLDER:
        return 0
    try:
        return int(token)
    except ValueError:
        return 0


def normalize_rename_path(path: str) -> str:
    """Resolve numstat rename notation to the destination path.

    ``src/{old => new}/a.py`` -> ``src/new/a.py``; ``old.py => new.py`` -> ``new.py``.
    """
    if " => " not in path:
        return path
    if "{" in path:
        resolved = _BRACE_RENAME_RE.sub(r"\2", path)
        return re.sub(r"/{2,}", "/", resolved).lstrip("/")
    return path.split(" => ", 1)[1]


def parse_numstat_line(line: str) -> Optional[FileChange]:
    """Parse ``added<TAB>deleted<TAB>path``; None if the row has under two columns."""
    parts = line.strip().split("\t")
    if len(parts) < 2:
        return None
    path = normalize_rename_path(parts[2]) if len(parts) >= 3 else ""
    return FileChange(
        path=path,
        added=parse_numstat_value(parts[0]),
        deleted=parse_numstat_value(parts[1]),
    )


def sum_numstat(raw: str) -> tuple[int, int]:
    """Total (added, deleted) over every numstat row in ``raw``."""
    added = 0
    deleted = 0
    for line in raw.splitlines():
        change = parse_numstat_line(line)
        if change is not None:
            added += change.added
            deleted += change.deleted
    return added, deleted


def _parse_header(line: str) -> Optional[Commit]:
    parts = line[len(COMMIT_MARKER):].split("|", 6)
    if len(parts) < 7:
        logger.debug("Skipping malformed log header: %r", line)
        return None

    full_hash, short_hash, author, email, date_str, parents, message = parts
    try:
        timestamp = parse_timestamp(date_str)
    except ValueError:
        logger.debug("Skipping commit %s with unparseable date %r", full_hash, date_str)
        return None

    return Commit(
        hash=full_hash,
        short_hash=short_hash,
        author=author,
        email=email,
        timestamp=timestamp,
        message=message,
        parents=tuple(parents.split()),
    )


def parse_commit_log(raw: str) -> list[Commit]:
    """Parse ``git log --format=LOG_FORMAT --numstat`` output.

    Headers are detected by the leading marker rather than blank-line
    separation, so merge commits (no numstat rows) and consecutive headers
    are handled. Output order is preserved (newest first for git log).
    """
    commits: list[Commit] = []
    current: Optional[Commit] = None
    changes: list[FileChange] = []

    def flush() -> None:
        if current is not None:
            commits.append(
                Commit(
                    hash=current.hash,
                    short_hash=current.short_hash,
                    author=current.author,
                    email=current.email,
                    timestamp=current.timestamp,
                    message=current.message,
                    parents=current.parents,
                    changes=tuple(changes),
                )
            )

    # splitlines() would also break on the marker itself
    for line in raw.split("\n"):
        if line.startswith(COMMIT_MARKER):
            flush()
            current = _parse_header(line)
            changes = []
        elif current is not None and line.strip():
            change = parse_numstat_line(line)
            if change is not None:
                changes.append(change)

    flush()
    return commits


def parse_blame_porcelain(raw: str) -> list[tuple[str, str]]:
    """Return one (author, email) pair per blamed line of ``--line-porcelain`` output."""
    owners: list[tuple[str, str]] = []
    current_author = ""
    for line in raw.splitlines():
        if line.startswith("author "):
            current_author = line[len("author "):]
        elif line.startswith("author-mail "):
            email = line[len("author-mail "):].strip().strip("<>")
            if current_author:
                owners.append((current_author, email))
    return owners


def parse_branch_list(raw: str, main_branch: str) -> list[str]:
    """Filter ``git branch -r --no-merged`` output down to real unmerged branches.

    Drops blank lines, symbolic HEAD pointers and aliases of the main branch.
    """
    excluded = {main_branch, f"origin/{main_branch}", "origin/main", "origin/master"}
    branches: list[str] = []
    for line in raw.splitlines():
        name = line.strip().lstrip("*").strip()
        if not name or "HEAD" in name or name in excluded:
            continue
        if name not in branches:
            branches.append(name)
    return branches


def file_extension(path: str) -> str:
    """Extension after the last dot of the file name, or ``no-ext``."""
    match = _EXTENSION_RE.search(path)
    return match.group(1) if match else NO_EXTENSION


def parse_repo_name(remote_url: str) -> Optional[str]:
    """Repository name from a remote URL (https or scp-style)."""
    match = _REMOTE_NAME_RE.search(remote_url.strip())
    return match.group(1) if match else None


def unique_lines(raw: str) -> list[str]:
    """Distinct non-blank lines in first-seen order."""
    seen: dict[str, None] = {}
    for line in raw.splitlines():
        line = line.strip()
        if line:
            seen.setdefault(line, None)
    return list(seen)
