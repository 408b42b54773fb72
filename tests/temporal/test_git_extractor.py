"""Tests for GitExtractor: argument building, error mapping and statistics."""

import subprocess

import pytest

from devpulse.exceptions import GitCommandError, GitNotFoundError, RepositoryNotFoundError
from devpulse.temporal.git_extractor import GitExtractor
from devpulse.temporal.models import FilterOptions


def _log_handler(with_merges, without_merges=None):
    """Answer ``git log`` with canned output, honouring --no-merges."""

    def handler(args):
        if args[0] == "log":
            if "--no-merges" in args and without_merges is not None:
                return without_merges
            return with_merges
        if args[0] == "branch" and "-a" in args:
            return "* main\n  feature\n  remotes/origin/main\n"
        if args[0] == "branch" and "--show-current" in args:
            return "main\n"
        raise GitCommandError(["git", *args], 1, "unexpected")

    return handler


class TestBuildLogArgs:
    """Tests for FilterOptions -> git log arguments."""

    def test_defaults_exclude_merges(self):
        """No filters still excludes merges."""
        assert GitExtractor.build_log_args(FilterOptions()) == ["--no-merges"]

    def test_email_preferred_over_author(self):
        """Email wins when both identities are given."""
        args = GitExtractor.build_log_args(FilterOptions(author="Alice", email="a@x.io"))
        assert "--author=a@x.io" in args
        assert "--author=Alice" not in args

    def test_author_name_when_no_email(self):
        """Name is used as a fallback."""
        assert "--author=Alice" in GitExtractor.build_log_args(FilterOptions(author="Alice"))

    def test_window(self):
        """since/until pass straight through."""
        args = GitExtractor.build_log_args(FilterOptions(since="2024-01-01", until="2024-02-01"))
        assert args[:2] == ["--since=2024-01-01", "--until=2024-02-01"]

    def test_branch_set_switches_to_all(self):
        """A branch set queries --all; the reconciler restricts."""
        args = GitExtractor.build_log_args(FilterOptions(branch="dev", branches=("main", "dev")))
        assert "--all" in args
        assert "dev" not in args

    def test_single_branch(self):
        """A single branch is a revision argument."""
        assert GitExtractor.build_log_args(FilterOptions(branch="dev"))[-1] == "dev"

    def test_paths_last(self):
        """Path scoping comes after the -- separator."""
        args = GitExtractor.build_log_args(
            FilterOptions(branch="dev", include_merges=True, paths=("src", "docs"))
        )
        assert args == ["dev", "--", "src", "docs"]


class TestCommandErrors:
    """Tests for subprocess failures mapped to devpulse errors."""

    def test_missing_directory(self, tmp_path):
        """A path that doesn't exist is not a repository."""
        with pytest.raises(RepositoryNotFoundError):
            GitExtractor(str(tmp_path / "missing"))

    def test_git_not_installed(self, fake_git, monkeypatch):
        """FileNotFoundError from subprocess means git is missing."""
        extractor = fake_git(_log_handler(""))

        def boom(*args, **kwargs):
            raise FileNotFoundError("git")

        monkeypatch.setattr(subprocess, "run", boom)
        with pytest.raises(GitNotFoundError):
            GitExtractor._run(extractor, ["status"])

    def test_nonzero_exit(self, fake_git, monkeypatch):
        """Non-zero exit raises GitCommandError with stderr attached."""
        extractor = fake_git(_log_handler(""))
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda cmd, **kw: subprocess.CompletedProcess(cmd, 128, "", "fatal: bad revision"),
        )
        with pytest.raises(GitCommandError) as exc_info:
            GitExtractor._run(extractor, ["log", "nope"])

        assert exc_info.value.returncode == 128
        assert "bad revision" in exc_info.value.stderr

    def test_timeout(self, fake_git, monkeypatch):
        """A hung git call is reported as a failed command."""
        extractor = fake_git(_log_handler(""))

        def hang(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

        monkeypatch.setattr(subprocess, "run", hang)
        with pytest.raises(GitCommandError):
            GitExtractor._run(extractor, ["log"])


class TestStatistics:
    """Tests for statistics derived from canned log output."""

    def test_repo_summary(self, fake_git, make_log):
        """Totals, distinct authors and files, and branch info."""
        log = make_log(
            {"sha": "a" * 40, "numstat": ["10\t2\tsrc/a.py"], "date": "2024-01-10T09:00:00+00:00"},
            {
                "sha": "b" * 40,
                "author": "Bob",
                "email": "bob@example.com",
                "numstat": ["5\t5\tsrc/a.py", "1\t0\tREADME"],
                "date": "2024-01-12T09:00:00+00:00",
            },
        )
        summary = fake_git(_log_handler(log)).get_repo_summary()

        assert summary.total_commits == 2
        assert summary.total_authors == 2
        assert summary.total_lines_added == 16
        assert summary.total_lines_deleted == 7
        assert summary.total_files_changed == 2
        assert summary.first_commit_date.day == 10
        assert summary.last_commit_date.day == 12
        assert summary.active_branches == 3
        assert summary.current_branch == "main"
        assert summary.branches_analyzed is None

    def test_author_stats_count_merges_by_subtraction(self, fake_git, make_log):
        """Merges show up in merge_commits but not in commits by default."""
        regular = {"sha": "a" * 40, "numstat": ["3\t1\tx.py"], "date": "2024-01-10T09:00:00+00:00"}
        merge = {"sha": "m" * 40, "parents": "p1 p2", "date": "2024-01-11T09:00:00+00:00"}
        octopus = {"sha": "o" * 40, "parents": "p1 p2 p3", "date": "2024-01-11T10:00:00+00:00"}

        extractor = fake_git(_log_handler(make_log(octopus, merge, regular), make_log(regular)))
        [stat] = extractor.get_author_stats()

        assert stat.commits == 1
        assert stat.merge_commits == 2
        assert stat.lines_added == 3
        assert stat.active_days == 1
        assert stat.avg_commits_per_day == 1.0
        assert stat.username == "alice"

    def test_author_stats_include_merges(self, fake_git, make_log):
        """include_merges counts merges as commits."""
        log = make_log(
            {"sha": "m" * 40, "parents": "p1 p2", "date": "2024-01-11T09:00:00+00:00"},
            {"sha": "a" * 40, "date": "2024-01-10T09:00:00+00:00"},
        )
        [stat] = fake_git(_log_handler(log)).get_author_stats(FilterOptions(include_merges=True))
        assert stat.commits == 2
        assert stat.merge_commits == 1
        assert stat.active_days == 2

    def test_author_stats_sorted_and_keyed_by_email(self, fake_git, make_log):
        """Same name with different emails are different authors."""
        log = make_log(
            {"sha": "1" * 40, "email": "alice@work.io"},
            {"sha": "2" * 40, "email": "alice@example.com"},
            {"sha": "3" * 40, "email": "alice@example.com"},
        )
        stats = fake_git(_log_handler(log)).get_author_stats()
        assert [(s.email, s.commits) for s in stats] == [
            ("alice@example.com", 2),
            ("alice@work.io", 1),
        ]

    def test_time_stats_fully_populated(self, fake_git, make_log):
        """Every hour and weekday is present even with one commit."""
        log = make_log({"sha": "a" * 40, "date": "2024-01-01T14:30:00+02:00"})
        stats = fake_git(_log_handler(log)).get_time_stats()

        assert len(stats.by_hour) == 24
        assert stats.by_hour[14] == 1
        assert sum(stats.by_hour.values()) == 1
        assert stats.by_day_of_week["Monday"] == 1
        assert stats.by_month == {"2024-01": 1}
        assert stats.by_week == {"2024-W01": 1}

    def test_stats_by_period(self, fake_git, make_log):
        """Buckets ascend by key with distinct commit and author counts."""
        log = make_log(
            {"sha": "c" * 40, "date": "2024-02-03T09:00:00+00:00", "numstat": ["1\t0\ta"]},
            {"sha": "b" * 40, "author": "Bob", "date": "2024-01-20T09:00:00+00:00"},
            {"sha": "a" * 40, "date": "2024-01-05T09:00:00+00:00", "numstat": ["4\t4\tb"]},
        )
        periods = fake_git(_log_handler(log)).get_stats_by_period(group_by="month")

        assert [p.period for p in periods] == ["2024-01", "2024-02"]
        assert (periods[0].commits, periods[0].authors) == (2, 2)
        assert (periods[0].lines_added, periods[0].lines_deleted) == (4, 4)

    def test_file_stats(self, fake_git, make_log):
        """Hotspots ordered by change count, limited."""
        log = make_log(
            {"sha": "a" * 40, "numstat": ["1\t1\thot.py", "2\t0\tcold.py"]},
            {"sha": "b" * 40, "author": "Bob", "numstat": ["3\t0\thot.py"]},
        )
        files = fake_git(_log_handler(log)).get_file_stats(limit=1)

        assert len(files) == 1
        assert files[0].path == "hot.py"
        assert files[0].changes == 2
        assert files[0].lines_added == 4
        assert files[0].authors == ["Alice", "Bob"]

    def test_file_type_stats(self, fake_git, make_log):
        """Distinct files and lines per extension."""
        log = make_log(
            {"sha": "a" * 40, "numstat": ["1\t1\ta.py", "5\t0\tMakefile"]},
            {"sha": "b" * 40, "numstat": ["2\t0\ta.py", "1\t0\tb.py"]},
        )
        stats = fake_git(_log_handler(log)).get_file_type_stats()

        assert stats["py"].files == 2
        assert stats["py"].lines == 5
        assert stats["no-ext"].lines == 5

    def test_commits_limit_passed_to_git(self, fake_git, make_log):
        """A limit becomes -n on the query."""
        extractor = fake_git(_log_handler(make_log({"sha": "a" * 40})))
        extractor.get_commits(limit=5)
        log_call = next(c for c in extractor.calls if c[0] == "log")
        assert log_call[log_call.index("-n") + 1] == "5"


class TestBranchesAndBlame:
    """Tests for branch listing, repo name and blame."""

    def test_unmerged_branches_failure_is_empty(self, fake_git):
        """No remotes means no unmerged branches, not an error."""
        extractor = fake_git(_log_handler(""))
        assert extractor.get_unmerged_branches("main") == []
        assert extractor.get_all_active_branches("main") == ["main"]

    def test_all_active_branches(self, fake_git):
        """Main first, then filtered unmerged branches."""

        def handler(args):
            if args[:2] == ["branch", "-r"]:
                return "  origin/HEAD -> origin/main\n  origin/feat\n"
            raise GitCommandError(["git", *args])

        extractor = fake_git(handler)
        assert extractor.get_all_active_branches("main") == ["main", "origin/feat"]

    def test_repo_name_falls_back_to_directory(self, fake_git, tmp_path):
        """Without an origin remote the directory name is used."""
        assert fake_git(_log_handler("")).get_repo_name() == tmp_path.name

    def test_repo_name_from_remote(self, fake_git):
        """origin URL wins when present."""

        def handler(args):
            if args[:2] == ["remote", "get-url"]:
                return "git@github.com:acme/widgets.git\n"
            raise GitCommandError(["git", *args])

        assert fake_git(handler).get_repo_name() == "widgets"

    def test_blame_skips_unreadable_files(self, fake_git):
        """A failing file is skipped and excluded from the total."""
        blame = {
            "a.py": "h 1 1 3\nauthor Alice\nauthor-mail <alice@example.com>\n\tx\n" * 3,
            "b.py": "h 1 1 1\nauthor Bob\nauthor-mail <bob@example.com>\n\ty\n",
        }

        def handler(args):
            if args[0] == "ls-files":
                return "a.py\nb.py\nbinary.dat\n"
            if args[0] == "blame":
                path = args[-1]
                if path not in blame:
                    raise GitCommandError(["git", *args], 128, "binary")
                return blame[path]
            raise GitCommandError(["git", *args])

        stats = fake_git(handler).get_blame_stats()

        assert [(s.author, s.lines, s.percentage) for s in stats] == [
            ("Alice", 3, 75.0),
            ("Bob", 1, 25.0),
        ]

    def test_blame_file_limit(self, fake_git):
        """Only the first blame_file_limit files are blamed."""
        blamed = []

        def handler(args):
            if args[0] == "ls-files":
                return "\n".join(f"f{i}.py" for i in range(5))
            if args[0] == "blame":
                blamed.append(args[-1])
                return ""
            raise GitCommandError(["git", *args])

        extractor = fake_git(handler)
        extractor.blame_file_limit = 2
        extractor.get_blame_stats()
        assert blamed == ["f0.py", "f1.py"]


@pytest.mark.git
class TestRealRepository:
    """Integration tests against a throwaway git repository."""

    def test_not_a_repository(self, tmp_path):
        """A plain directory is rejected."""
        plain = tmp_path / "plain"
        plain.mkdir()
        with pytest.raises(RepositoryNotFoundError):
            GitExtractor(str(plain))

    def test_history_round_trip(self, git_repo):
        """Commits, numstat totals and branch info come from real git."""
        git_repo.commit("src/app.py", "a\nb\nc\n", "Add app", date="2024-01-10T09:00:00+00:00")
        git_repo.commit("src/app.py", "a\nB\nc\nd\n", "Edit app", date="2024-01-11T09:00:00+00:00")

        extractor = GitExtractor(str(git_repo.path))
        summary = extractor.get_repo_summary()
        commits = extractor.get_commits()

        assert summary.total_commits == 2
        assert summary.total_authors == 1
        assert summary.total_lines_added == 5
        assert summary.total_lines_deleted == 1
        assert summary.total_files_changed == 1
        assert summary.current_branch == "main"
        assert [c.message for c in commits] == ["Edit app", "Add app"]
        assert extractor.get_repo_name() == "repo"

    def test_author_filter_by_email(self, git_repo):
        """Email filtering keeps only that identity's commits."""
        git_repo.commit("a.txt", "1\n", "Alice commit")
        git_repo.git("config", "user.email", "bob@example.com")
        git_repo.git("config", "user.name", "Bob")
        git_repo.commit("b.txt", "2\n", "Bob commit")

        extractor = GitExtractor(str(git_repo.path))
        stats = extractor.get_author_stats(FilterOptions(email="bob@example.com"))

        assert [s.name for s in stats] == ["Bob"]
        assert stats[0].commits == 1

    def test_blame(self, git_repo):
        """Blame attributes every line of a committed file."""
        git_repo.commit("notes.txt", "one\ntwo\nthree\n", "Notes")
        [stat] = GitExtractor(str(git_repo.path)).get_blame_stats()
        assert (stat.author, stat.lines, stat.percentage) == ("Alice", 3, 100.0)
