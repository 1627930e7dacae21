"""SLURM environment helpers for jobs that are already running.

These helpers read the variables SLURM sets inside a job: the job id,
the array task id, and the cores and memory that were allocated. Every
function takes the environment as an explicit mapping, so callers read
``os.environ`` once at start-up and pass it in:

Example:
    >>> import os
    >>> from jobforge.parallel.slurm import requested_cores, get_slurm_task_id
    >>> env = dict(os.environ)
    >>> cores = requested_cores(env)
    >>> task_id = get_slurm_task_id(env)
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SLURM_ENV_VARS = [
    "SLURM_JOB_ID",
    "SLURM_ARRAY_JOB_ID",
    "SLURM_ARRAY_TASK_ID",
    "SLURM_ARRAY_TASK_COUNT",
    "SLURM_CPUS_PER_TASK",
    "SLURM_NTASKS",
    "SLURM_MEM_PER_NODE",
    "SLURM_JOB_NAME",
    "SLURM_SUBMIT_DIR",
    "SLURM_NODELIST",
]


# =============================================================================
# Environment Detection
# =============================================================================


def detect_slurm_environment(environ: Mapping[str, str]) -> dict | None:
    """Detect if running under SLURM.

    Args:
        environ: Environment mapping (e.g. ``dict(os.environ)``).

    Returns:
        Dict with SLURM env vars if in SLURM, None otherwise.
    """
    if "SLURM_JOB_ID" not in environ:
        return None

    return {k: environ[k] for k in SLURM_ENV_VARS if k in environ}


def is_slurm_job(environ: Mapping[str, str]) -> bool:
    """Check if running under SLURM."""
    return "SLURM_JOB_ID" in environ


def get_slurm_task_id(environ: Mapping[str, str]) -> int | None:
    """Get current SLURM array task ID.

    Returns:
        Task ID (as set by the scheduler, 1-based for jobforge scripts)
        or None if not an array job.

    Raises:
        ValueError: If SLURM_ARRAY_TASK_ID is not an integer.
    """
    task_id = environ.get("SLURM_ARRAY_TASK_ID")
    if task_id is None:
        return None
    try:
        return int(task_id)
    except ValueError:
        raise ValueError(
            f"SLURM_ARRAY_TASK_ID must be an integer, got {task_id!r}"
        ) from None


# =============================================================================
# Resource Access
# =============================================================================


def requested_cores(environ: Mapping[str, str], default: int = 1) -> int:
    """Number of cores this job asked for.

    Reads SLURM_CPUS_PER_TASK, then SLURM_NTASKS.

    Args:
        environ: Environment mapping.
        default: Value used outside SLURM or when the variables are unset.

    Returns:
        Positive core count.
    """
    for key in ("SLURM_CPUS_PER_TASK", "SLURM_NTASKS"):
        value = environ.get(key)
        if not value:
            continue
        try:
            cores = int(value)
        except ValueError:
            logger.warning(f"Ignoring non-integer {key}={value!r}")
            continue
        if cores >= 1:
            return cores
    return max(1, default)


def get_slurm_resources(environ: Mapping[str, str]) -> dict:
    """Get allocated resources from SLURM environment.

    Returns:
        Dict with:
            - cpus: Number of CPUs per task
            - memory_mb: Memory in MB (if available)
            - task_id: Array task ID (if array job)
            - node: Node name (if available)
    """
    env = detect_slurm_environment(environ)
    if not env:
        return {
            "cpus": 1,
            "memory_mb": None,
            "task_id": None,
            "node": None,
        }

    return {
        "cpus": requested_cores(env),
        "memory_mb": parse_slurm_memory(env.get("SLURM_MEM_PER_NODE")),
        "task_id": get_slurm_task_id(env),
        "node": env.get("SLURM_NODELIST"),
    }


def parse_slurm_memory(mem_str: str | None) -> int | None:
    """Parse SLURM memory string to MB.

    Args:
        mem_str: Memory string (e.g., '16G', '16000M', '16000').

    Returns:
        Memory in MB, or None if parsing fails.
    """
    if not mem_str:
        return None

    mem_str = mem_str.strip().upper()
    if mem_str.endswith("B"):
        mem_str = mem_str[:-1]

    try:
        if mem_str.endswith("T"):
            return int(float(mem_str[:-1]) * 1024 * 1024)
        elif mem_str.endswith("G"):
            return int(float(mem_str[:-1]) * 1024)
        elif mem_str.endswith("M"):
            return int(float(mem_str[:-1]))
        elif mem_str.endswith("K"):
            return int(float(mem_str[:-1]) / 1024)
        else:
            # Assume MB
            return int(mem_str)
    except ValueError:
        return None


# =============================================================================
# Work Selection (for use within SLURM array jobs)
# =============================================================================


def select_task_item(items: Sequence[T], task_id: int | None) -> T:
    """Get the item assigned to an array task.

    jobforge array scripts use ``--array=1-N``, so task 1 gets the
    first item and task N the last.

    Args:
        items: One entry per array task (e.g. donor ids).
        task_id: 1-based task id, usually from get_slurm_task_id().

    Returns:
        The item for this task.

    Raises:
        RuntimeError: If task_id is None.
        IndexError: If task_id is outside 1..len(items).
    """
    if task_id is None:
        raise RuntimeError("Task ID not provided and SLURM_ARRAY_TASK_ID not set")

    if task_id < 1 or task_id > len(items):
        raise IndexError(
            f"Task ID {task_id} outside range 1-{len(items)}"
        )

    return items[task_id - 1]


__all__ = [
    "SLURM_ENV_VARS",
    "detect_slurm_environment",
    "is_slurm_job",
    "get_slurm_task_id",
    "requested_cores",
    "get_slurm_resources",
    "parse_slurm_memory",
    "select_task_item",
]
