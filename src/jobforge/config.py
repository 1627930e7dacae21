"""Configuration management for jobforge.

This module holds the values that drive job-script generation:

- JobScriptConfig: the immutable description of one cluster job
- ClusterSettings: site defaults shared by every generated script
- Settings: top-level container, loadable from a TOML file

Example:
    >>> from jobforge.config import JobScriptConfig, Settings
    >>> config = JobScriptConfig(name="nnSVG_array", memory="20G", task_count=4)
    >>> config.is_array
    True
    >>> settings = Settings.load("jobforge.toml")
    >>> settings.cluster.partition
    'shared'
"""

from __future__ import annotations

import re
import tomllib
from pathlib import Path
from typing import Any

import attrs

# =============================================================================
# Default Configuration Values
# =============================================================================

DEFAULT_MEMORY = "10G"
DEFAULT_CORES = 1
DEFAULT_TASK_COUNT = 1
DEFAULT_LOG_DIR = "logs"
DEFAULT_SHELL = "/bin/bash"

# Job names end up in file paths and in --job-name
NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class ConfigError(ValueError):
    """Raised when a job configuration or settings value is invalid."""


# =============================================================================
# Validators
# =============================================================================


def _check_name(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{attribute.name} must be a non-empty string, got {value!r}")
    if not NAME_PATTERN.fullmatch(value):
        raise ConfigError(
            f"{attribute.name} {value!r} may only contain letters, digits, "
            "underscores and hyphens"
        )


def _check_token(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    """Reject empty values and anything that would break a directive line."""
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{attribute.name} must be a non-empty string, got {value!r}")
    if any(ch.isspace() for ch in value):
        raise ConfigError(f"{attribute.name} must not contain whitespace: {value!r}")


def _check_optional_token(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    if value is not None:
        _check_token(instance, attribute, value)


def _check_positive(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    # bool is an int subclass; True would otherwise pass as 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{attribute.name} must be an integer, got {value!r}")
    if value < 1:
        raise ConfigError(f"{attribute.name} must be >= 1, got {value}")


def _check_optional_positive(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    if value is not None:
        _check_positive(instance, attribute, value)


def _check_bool(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    if not isinstance(value, bool):
        raise ConfigError(f"{attribute.name} must be a boolean, got {value!r}")


def _to_tuple(value: Any) -> tuple:
    if isinstance(value, str):
        return (value,)
    return tuple(value)


def _check_modules(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    for module in value:
        if not isinstance(module, str) or not module or any(ch.isspace() for ch in module):
            raise ConfigError(f"Invalid module name: {module!r}")


# =============================================================================
# Configuration Classes
# =============================================================================


@attrs.frozen
class JobScriptConfig:
    """Description of a single cluster job.

    Attributes:
        name: Job name, also used for the script file and log names.
        memory: Memory request passed verbatim to --mem (e.g. "20G").
        cores: CPU cores per task.
        task_count: 1 for a plain job, >1 for an array job of that many tasks.
        create_logdir: Write logs into a dedicated directory and make sure it exists.
        create_shell: Persist the script to <name>.sh.
    """

    name: str = attrs.field(validator=_check_name)
    memory: str = attrs.field(default=DEFAULT_MEMORY, validator=_check_token)
    cores: int = attrs.field(default=DEFAULT_CORES, validator=_check_positive)
    task_count: int = attrs.field(default=DEFAULT_TASK_COUNT, validator=_check_positive)
    create_logdir: bool = attrs.field(default=False, validator=_check_bool)
    create_shell: bool = attrs.field(default=False, validator=_check_bool)

    @property
    def is_array(self) -> bool:
        """Whether this config describes an array job."""
        return self.task_count > 1


@attrs.frozen
class ClusterSettings:
    """Site defaults applied to every generated script.

    Attributes:
        partition: SLURM partition, omitted from the script when None.
        time_limit: Wall-time limit (e.g. "1-00:00:00"), omitted when None.
        mail_type: Value for --mail-type, omitted when None.
        log_dir: Directory for log files when create_logdir is set.
        tasks_limit: Maximum concurrently running array tasks (``%N`` suffix).
        modules: Environment modules loaded before the job body.
        shell: Interpreter for the shebang line.
    """

    partition: str | None = attrs.field(default=None, validator=_check_optional_token)
    time_limit: str | None = attrs.field(default=None, validator=_check_optional_token)
    mail_type: str | None = attrs.field(default=None, validator=_check_optional_token)
    log_dir: str = attrs.field(default=DEFAULT_LOG_DIR, validator=_check_token)
    tasks_limit: int | None = attrs.field(default=None, validator=_check_optional_positive)
    modules: tuple[str, ...] = attrs.field(
        default=(), converter=_to_tuple, validator=_check_modules
    )
    shell: str = attrs.field(default=DEFAULT_SHELL, validator=_check_token)


@attrs.frozen
class Settings:
    """Main configuration container for jobforge.

    Attributes:
        cluster: Site defaults for generated job scripts.
    """

    cluster: ClusterSettings = attrs.Factory(ClusterSettings)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "Settings":
        """Load settings from a TOML file.

        The file holds a single ``[cluster]`` table whose keys match
        ClusterSettings attributes.

        Args:
            path: Path to the TOML file. If None, returns default settings.

        Returns:
            Loaded settings.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ConfigError: If the file is not valid TOML or has unknown keys.
        """
        if path is None:
            return cls()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e

        unknown_tables = set(data) - {"cluster"}
        if unknown_tables:
            raise ConfigError(f"Unknown sections in {path}: {sorted(unknown_tables)}")

        cluster_data = data.get("cluster", {})
        known = {a.name for a in attrs.fields(ClusterSettings)}
        unknown_keys = set(cluster_data) - known
        if unknown_keys:
            raise ConfigError(
                f"Unknown [cluster] keys in {path}: {sorted(unknown_keys)}"
            )

        return cls(cluster=ClusterSettings(**cluster_data))

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary."""
        return attrs.asdict(self)
