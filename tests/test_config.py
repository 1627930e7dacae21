"""Tests for jobforge.config module.

Tests cover:
- JobScriptConfig validation and defaults
- ClusterSettings validation
- Settings loading from TOML
"""

from pathlib import Path

import attrs
import pytest

from jobforge.config import (
    ClusterSettings,
    ConfigError,
    JobScriptConfig,
    Settings,
)


# =============================================================================
# JobScriptConfig Tests
# =============================================================================


class TestJobScriptConfig:
    """Tests for JobScriptConfig."""

    def test_defaults(self):
        """Only name is required; side effects default to off."""
        config = JobScriptConfig(name="job")

        assert config.memory == "10G"
        assert config.cores == 1
        assert config.task_count == 1
        assert config.create_logdir is False
        assert config.create_shell is False

    def test_is_array(self):
        """task_count > 1 means an array job."""
        assert JobScriptConfig(name="a", task_count=1).is_array is False
        assert JobScriptConfig(name="a", task_count=2).is_array is True

    def test_immutable(self, array_config):
        """Configs cannot be modified after creation."""
        with pytest.raises(attrs.exceptions.FrozenInstanceError):
            array_config.cores = 4

    def test_is_value_error(self):
        """ConfigError can be caught as ValueError."""
        with pytest.raises(ValueError):
            JobScriptConfig(name="")

    @pytest.mark.parametrize("name", ["job", "nnSVG_array", "step-2", "A1"])
    def test_valid_names(self, name):
        assert JobScriptConfig(name=name).name == name

    @pytest.mark.parametrize(
        "name",
        ["", "my job", "dir/job", "..", "job.sh", "job\n", "café", "a;rm"],
    )
    def test_invalid_names(self, name):
        """Names outside [A-Za-z0-9_-] are rejected."""
        with pytest.raises(ConfigError, match="name"):
            JobScriptConfig(name=name)

    def test_non_string_name(self):
        with pytest.raises(ConfigError):
            JobScriptConfig(name=42)

    @pytest.mark.parametrize("cores", [0, -1])
    def test_non_positive_cores(self, cores):
        with pytest.raises(ConfigError, match="cores must be >= 1"):
            JobScriptConfig(name="job", cores=cores)

    @pytest.mark.parametrize("task_count", [0, -3])
    def test_non_positive_task_count(self, task_count):
        with pytest.raises(ConfigError, match="task_count must be >= 1"):
            JobScriptConfig(name="job", task_count=task_count)

    @pytest.mark.parametrize("value", [1.5, "4", True, None])
    def test_non_integer_cores(self, value):
        with pytest.raises(ConfigError, match="cores must be an integer"):
            JobScriptConfig(name="job", cores=value)

    @pytest.mark.parametrize("memory", ["", "20 G", "20G\n#SBATCH --x"])
    def test_invalid_memory(self, memory):
        """Memory must be a single non-empty token."""
        with pytest.raises(ConfigError, match="memory"):
            JobScriptConfig(name="job", memory=memory)

    @pytest.mark.parametrize("memory", ["20G", "500M", "1T", "16000"])
    def test_memory_kept_verbatim(self, memory):
        assert JobScriptConfig(name="job", memory=memory).memory == memory

    def test_flags_must_be_bool(self):
        with pytest.raises(ConfigError, match="create_shell"):
            JobScriptConfig(name="job", create_shell="yes")


# =============================================================================
# ClusterSettings Tests
# =============================================================================


class TestClusterSettings:
    """Tests for ClusterSettings."""

    def test_defaults(self):
        cluster = ClusterSettings()

        assert cluster.partition is None
        assert cluster.time_limit is None
        assert cluster.mail_type is None
        assert cluster.log_dir == "logs"
        assert cluster.tasks_limit is None
        assert cluster.modules == ()
        assert cluster.shell == "/bin/bash"

    def test_modules_converted_to_tuple(self):
        cluster = ClusterSettings(modules=["conda_R/4.3", "samtools"])
        assert cluster.modules == ("conda_R/4.3", "samtools")

    def test_single_module_string(self):
        """A lone string is one module, not a sequence of characters."""
        assert ClusterSettings(modules="samtools").modules == ("samtools",)

    def test_invalid_module(self):
        with pytest.raises(ConfigError, match="Invalid module"):
            ClusterSettings(modules=["conda R"])

    def test_invalid_tasks_limit(self):
        with pytest.raises(ConfigError, match="tasks_limit"):
            ClusterSettings(tasks_limit=0)

    def test_invalid_partition(self):
        with pytest.raises(ConfigError, match="partition"):
            ClusterSettings(partition="")


# =============================================================================
# Settings Tests
# =============================================================================


class TestSettings:
    """Tests for Settings loading."""

    def test_load_none_returns_defaults(self):
        assert Settings.load(None) == Settings()

    def test_load_file(self, settings_file):
        settings = Settings.load(settings_file)

        assert settings.cluster.partition == "shared"
        assert settings.cluster.time_limit == "2:00:00"
        assert settings.cluster.mail_type == "FAIL"
        assert settings.cluster.tasks_limit == 5
        assert settings.cluster.modules == ("conda_R/4.3",)
        assert settings.cluster.log_dir == "logs"

    def test_load_str_path(self, settings_file):
        assert Settings.load(str(settings_file)).cluster.partition == "shared"

    def test_load_empty_file(self, tmp_path):
        path = tmp_path / "empty.toml"
        path.write_text("")
        assert Settings.load(path) == Settings()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Settings file not found"):
            Settings.load(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[cluster\npartition = ")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            Settings.load(path)

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "typo.toml"
        path.write_text('[cluster]\npartion = "shared"\n')
        with pytest.raises(ConfigError, match="partion"):
            Settings.load(path)

    def test_unknown_section(self, tmp_path):
        path = tmp_path / "extra.toml"
        path.write_text('[scheduler]\nname = "pbs"\n')
        with pytest.raises(ConfigError, match="scheduler"):
            Settings.load(path)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "bad_value.toml"
        path.write_text("[cluster]\ntasks_limit = 0\n")
        with pytest.raises(ConfigError, match="tasks_limit"):
            Settings.load(path)

    def test_to_dict(self, site_settings):
        d = site_settings.to_dict()
        assert d["cluster"]["partition"] == "shared"
        assert list(d["cluster"]["modules"]) == ["conda_R/4.3", "samtools"]
