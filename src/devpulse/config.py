"""Configuration loading and management for devpulse.

Configuration sources are merged in priority order:
    1. Defaults (defined in MetricsConfig)
    2. Global config (~/.devpulse.toml)
    3. Project config (./devpulse.toml)
    4. Explicit config file
    5. Environment variables (DEVPULSE_* prefix)
    6. Keyword overrides

Example:
    >>> config = load_config(collection_days=30, all_branches=True)
    >>> config.collection_days
    30
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError
from .math.periods import GROUP_BY_CHOICES, GroupBy
from .tracker.models import DEFAULT_STATUS_MAPPING, StatusMapping

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "DEVPULSE_"
GLOBAL_CONFIG_NAME = ".devpulse.toml"
PROJECT_CONFIG_NAME = "devpulse.toml"


@dataclass(frozen=True)
class MetricsConfig:
    """Settings for one metrics collection run.

    Attributes:
        Branch selection:
            main_branch: Branch treated as trunk when listing unmerged branches
            all_branches: Reconcile main plus every unmerged branch

        Git queries:
            collection_days: Default window when no explicit period is given
            commit_limit: Maximum commits returned by get_commits
            file_limit: Maximum entries in file hotspot lists
            blame_file_limit: Maximum tracked files blamed per run
            git_timeout_seconds: Timeout for a single git invocation

        Aggregation:
            group_by: Trend bucket for period stats

        Issue tracking:
            page_delay_seconds: Pause between paginated tracker requests
            status_mapping: Status names classified into todo/in progress/blocked/done

        Output control:
            verbosity: Logging verbosity level
    """

    # Branch selection
    main_branch: str = "main"
    all_branches: bool = False

    # Git queries
    collection_days: int = 90
    commit_limit: int = 50
    file_limit: int = 20
    blame_file_limit: int = 100
    git_timeout_seconds: int = 60

    # Aggregation
    group_by: GroupBy = "week"

    # Issue tracking
    page_delay_seconds: float = 0.1
    status_mapping: StatusMapping = field(default_factory=lambda: DEFAULT_STATUS_MAPPING)

    # Output control
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        if not self.main_branch.strip():
            raise InvalidConfigError("main_branch", self.main_branch, "must not be empty")

        for name in ("collection_days", "commit_limit", "file_limit", "blame_file_limit"):
            if getattr(self, name) < 1:
                raise InvalidConfigError(name, getattr(self, name), "must be at least 1")

        if self.git_timeout_seconds < 1:
            raise InvalidConfigError(
                "git_timeout_seconds", self.git_timeout_seconds, "must be at least 1"
            )
        if self.page_delay_seconds < 0:
            raise InvalidConfigError(
                "page_delay_seconds", self.page_delay_seconds, "must be non-negative"
            )
        if self.group_by not in GROUP_BY_CHOICES:
            raise InvalidConfigError(
                "group_by", self.group_by, f"must be one of {', '.join(GROUP_BY_CHOICES)}"
            )
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "must be quiet, normal or verbose")


def load_config(config_file: Optional[Path] = None, **overrides) -> MetricsConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides; ``verbose`` / ``quiet`` booleans
            are translated to ``verbosity``

    Returns:
        Validated MetricsConfig instance

    Raises:
        ConfigurationError: If a config file is missing or unreadable
        InvalidConfigError: If a value fails validation
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / GLOBAL_CONFIG_NAME
    if global_config.exists():
        merged.update(_read_config_file(global_config, "global"))

    project_config = Path.cwd() / PROJECT_CONFIG_NAME
    if project_config.exists():
        merged.update(_read_config_file(project_config, "project"))

    if config_file is not None:
        config_file = Path(config_file)
        if not config_file.exists():
            raise ConfigurationError(
                f"Config file not found: {config_file}", details={"path": str(config_file)}
            )
        merged.update(_read_config_file(config_file, "explicit"))

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"
    merged.update(overrides)

    mapping = merged.pop("status_mapping", None)
    if isinstance(mapping, dict):
        merged["status_mapping"] = _status_mapping_from_table(mapping)
    elif isinstance(mapping, StatusMapping):
        merged["status_mapping"] = mapping
    elif mapping is not None:
        raise InvalidConfigError("status_mapping", mapping, "must be a table of status lists")

    try:
        return MetricsConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")


def _status_mapping_from_table(table: dict[str, Any]) -> StatusMapping:
    for bucket, statuses in table.items():
        if bucket not in ("todo", "in_progress", "inProgress", "blocked", "done"):
            raise InvalidConfigError(f"status_mapping.{bucket}", statuses, "unknown status bucket")
        if not isinstance(statuses, list) or not all(isinstance(s, str) for s in statuses):
            raise InvalidConfigError(
                f"status_mapping.{bucket}", statuses, "must be a list of status names"
            )
    return StatusMapping.from_dict(table)


def _read_config_file(path: Path, kind: str) -> dict[str, Any]:
    try:
        return _load_toml_file(path)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Invalid {kind} config '{path}': {e}", details={"path": str(path)}
        ) from e


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from DEVPULSE_* environment variables.

    Every scalar field is supported, e.g. DEVPULSE_MAIN_BRANCH,
    DEVPULSE_ALL_BRANCHES (true/false/1/0), DEVPULSE_COLLECTION_DAYS,
    DEVPULSE_GROUP_BY. The status mapping can only be set from a file.
    """
    type_hints = get_type_hints(MetricsConfig)
    result: dict[str, Any] = {}

    for field_name in MetricsConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hints.get(field_name))
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment string to the field's type; None for unsupported types.

    Raises:
        ValueError: If value can't be parsed to the expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    # String, including Literal types like GroupBy
    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore

    with open(path, "rb") as f:
        return tomllib.load(f)
