"""Parallelization utilities for jobforge.

This module provides the two ways of spreading work on a cluster:

- Local parallel map over worker processes or threads (one job)
- SLURM array-task helpers (one task per unit of work)
- Example workflows for both

For a SLURM array job, the recommended approach is:
1. Generate the script with jobforge.jobscript (task_count = number of items)
2. In the job body, read the task id with get_slurm_task_id
3. Process the matching item with run_array_task

Example:
    >>> from jobforge.parallel import ParallelExecutor, requested_cores
    >>> executor = ParallelExecutor(n_workers=requested_cores(env))
    >>> results, stats = executor.map_items(process_donor, donors)
"""

from jobforge.parallel.executor import (
    ExecutionStats,
    ExecutorBackend,
    ParallelExecutor,
    TaskFailedError,
    TaskResult,
    create_progress_bar,
)

from jobforge.parallel.slurm import (
    detect_slurm_environment,
    get_slurm_resources,
    get_slurm_task_id,
    is_slurm_job,
    parse_slurm_memory,
    requested_cores,
    select_task_item,
)

from jobforge.parallel.workflows import (
    run_array_task,
    square,
    square_vector,
)

__all__ = [
    # Execution
    "ExecutorBackend",
    "ExecutionStats",
    "ParallelExecutor",
    "TaskFailedError",
    "TaskResult",
    "create_progress_bar",
    # SLURM Utilities
    "detect_slurm_environment",
    "is_slurm_job",
    "get_slurm_task_id",
    "get_slurm_resources",
    "parse_slurm_memory",
    "requested_cores",
    "select_task_item",
    # Workflows
    "square",
    "square_vector",
    "run_array_task",
]
