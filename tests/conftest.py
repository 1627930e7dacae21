"""Pytest configuration and shared fixtures for jobforge tests.

Fixtures are organized by category:

- Config fixtures: Job configs and site settings
- Sink fixtures: In-memory output sinks
- Environment fixtures: SLURM environment mappings
"""

from pathlib import Path

import pytest

from jobforge.config import ClusterSettings, JobScriptConfig, Settings
from jobforge.jobscript.sinks import MemorySink


# =============================================================================
# Config Fixtures
# =============================================================================


@pytest.fixture
def single_config() -> JobScriptConfig:
    """A plain (non-array) job."""
    return JobScriptConfig(name="qc_report", memory="8G", cores=2)


@pytest.fixture
def array_config() -> JobScriptConfig:
    """The nnSVG example: 4 array tasks, one core each."""
    return JobScriptConfig(
        name="nnSVG_array",
        memory="20G",
        cores=1,
        task_count=4,
        create_logdir=False,
        create_shell=False,
    )


@pytest.fixture
def site_settings() -> Settings:
    """Settings with every optional directive enabled."""
    return Settings(
        cluster=ClusterSettings(
            partition="shared",
            time_limit="1-00:00:00",
            mail_type="ALL",
            log_dir="logs",
            tasks_limit=20,
            modules=["conda_R/4.3", "samtools"],
        )
    )


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    """A TOML settings file."""
    path = tmp_path / "jobforge.toml"
    path.write_text(
        "[cluster]\n"
        'partition = "shared"\n'
        'time_limit = "2:00:00"\n'
        'mail_type = "FAIL"\n'
        "tasks_limit = 5\n"
        'modules = ["conda_R/4.3"]\n'
    )
    return path


# =============================================================================
# Sink Fixtures
# =============================================================================


@pytest.fixture
def console_sink() -> MemorySink:
    """In-memory replacement for the console."""
    return MemorySink()


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture
def slurm_env() -> dict:
    """Environment of task 3 in a SLURM array job."""
    return {
        "SLURM_JOB_ID": "12345",
        "SLURM_ARRAY_JOB_ID": "12340",
        "SLURM_ARRAY_TASK_ID": "3",
        "SLURM_ARRAY_TASK_COUNT": "4",
        "SLURM_CPUS_PER_TASK": "8",
        "SLURM_MEM_PER_NODE": "32G",
        "SLURM_JOB_NAME": "nnSVG_array",
        "SLURM_NODELIST": "compute-101",
        "HOME": "/home/user",
    }
