"""Shared test fixtures for devpulse tests."""

import os
import shutil
import subprocess
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from devpulse.temporal.git_extractor import GitExtractor
from devpulse.temporal.parsing import COMMIT_MARKER
from devpulse.tracker.models import Issue, StatusTransition

BASE_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)

HAS_GIT = shutil.which("git") is not None


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "git: test needs a git executable")


def pytest_collection_modifyitems(config, items):
    """Skip git-backed tests when git is not installed."""
    if HAS_GIT:
        return
    skip_git = pytest.mark.skip(reason="git not found")
    for item in items:
        if "git" in item.keywords:
            item.add_marker(skip_git)


def _log_entry(
    sha,
    author="Alice",
    email="alice@example.com",
    date="2024-01-15T10:00:00+00:00",
    parents="0000000",
    subject="Change things",
    numstat=(),
):
    """One commit as ``git log --format=LOG_FORMAT --numstat`` prints it."""
    header = f"{COMMIT_MARKER}{sha}|{sha[:7]}|{author}|{email}|{date}|{parents}|{subject}"
    body = ["", *numstat, ""] if numstat else [""]
    return "\n".join([header, *body])


class FakeGitExtractor(GitExtractor):
    """GitExtractor whose git calls are answered by a handler instead of git."""

    def __init__(self, repo_path, handler):
        self.handler = handler
        self.calls = []
        super().__init__(str(repo_path))

    def _run(self, args):
        args = list(args)
        self.calls.append(args)
        if args[:1] == ["rev-parse"]:
            return ".git\n"
        return self.handler(args)


@pytest.fixture
def log_entry():
    """One canned commit block; see ``_log_entry``."""
    return _log_entry


@pytest.fixture
def make_log():
    """Build canned git log output from commit entries."""

    def _make(*entries):
        return "\n".join(_log_entry(**entry) for entry in entries)

    return _make


@pytest.fixture
def fake_git(tmp_path):
    """Factory for extractors backed by a canned-output handler."""

    def _make(handler):
        return FakeGitExtractor(tmp_path, handler)

    return _make


@pytest.fixture
def day():
    """Day offset from 2024-01-01 UTC -> aware datetime."""

    def _day(n, hours=0):
        return BASE_DATE + timedelta(days=n, hours=hours)

    return _day


@pytest.fixture
def make_issue(day):
    """Build an issue from (day, status) transitions.

    Transitions are given as (day offset, to_status) pairs; ``status`` is
    the last transition's target unless passed explicitly.
    """

    def _make(
        key="DEV-1",
        issue_type="Story",
        created=0,
        transitions=(),
        status=None,
        resolved=None,
        **fields,
    ):
        history = []
        previous = None
        for offset, to_status in transitions:
            history.append(StatusTransition(day(offset), previous, to_status))
            previous = to_status
        return Issue(
            key=key,
            issue_type=issue_type,
            status=status or previous or "To Do",
            created=day(created),
            resolved=day(resolved) if resolved is not None else None,
            transitions=history,
            **fields,
        )

    return _make


@pytest.fixture
def git_repo(tmp_path):
    """Throwaway git repository with a fixed identity and initial branch "main"."""
    repo = tmp_path / "repo"
    repo.mkdir()

    def git(*args, env_date=None):
        env = None
        if env_date:
            env = {**os.environ, "GIT_AUTHOR_DATE": env_date, "GIT_COMMITTER_DATE": env_date}
        return subprocess.run(
            ["git", "-C", str(repo), *args], capture_output=True, text=True, check=True, env=env
        ).stdout

    git("init", "-q", "-b", "main")
    git("config", "user.email", "alice@example.com")
    git("config", "user.name", "Alice")
    git("config", "commit.gpgsign", "false")

    def commit(path, content, message, date="2024-01-15T10:00:00+00:00"):
        target = repo / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        git("add", path)
        git("commit", "-q", "-m", message, env_date=date)
        return git("rev-parse", "HEAD").strip()

    return SimpleNamespace(path=repo, git=git, commit=commit)
