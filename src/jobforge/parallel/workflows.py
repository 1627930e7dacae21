"""Example workflows for the two parallelization techniques.

In-process parallel map (one job, several cores):

    >>> from jobforge.parallel.workflows import square_vector
    >>> square_vector([1, 2, 3, 4], n_workers=2)
    [1, 4, 9, 16]

Array job (one task per unit of work). Inside the job script generated
with ``task_count=len(donors)``, each task runs:

    >>> import os
    >>> from jobforge.parallel.workflows import run_array_task
    >>> env = dict(os.environ)
    >>> result = run_array_task(donors, analyze_donor, get_slurm_task_id(env))

The analysis function itself (filtering, normalization, spatially
variable gene detection, ...) is supplied by the caller.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence, TypeVar

from jobforge.parallel.executor import ExecutorBackend, ParallelExecutor
from jobforge.parallel.slurm import select_task_item

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def square(x: float) -> float:
    """Square a number."""
    return x * x


def square_vector(
    values: Sequence[float],
    n_workers: int = 1,
    backend: ExecutorBackend | str = ExecutorBackend.PROCESSES,
    progress_callback: Callable[[int, int, str], None] | None = None,
) -> list[float]:
    """Square every value using a pool of workers.

    Args:
        values: Numbers to square.
        n_workers: Worker count, typically requested_cores(environ).
        backend: Execution backend for ParallelExecutor.
        progress_callback: Called with (completed, total, task_id).

    Returns:
        Squares in the same order as ``values``.

    Raises:
        RuntimeError: If any value could not be squared.
    """
    executor = ParallelExecutor(
        n_workers=n_workers,
        backend=backend,
        progress_callback=progress_callback,
    )
    results, stats = executor.map_items(square, values)

    failed = [r for r in results if not r.success]
    if failed:
        details = "; ".join(f"{r.task_id}: {r.error}" for r in failed)
        raise RuntimeError(f"{stats.failed} of {stats.total_tasks} values failed: {details}")

    return [r.result for r in results]


def run_array_task(
    items: Sequence[T],
    func: Callable[[T], R],
    task_id: int | None,
) -> R:
    """Run ``func`` on the item assigned to one array task.

    Args:
        items: One entry per array task, in task order.
        func: Analysis to run on the selected item.
        task_id: 1-based task id from get_slurm_task_id().

    Returns:
        Whatever ``func`` returns.

    Raises:
        RuntimeError: If task_id is None.
        IndexError: If task_id is outside 1..len(items).
    """
    item = select_task_item(items, task_id)
    logger.info(f"Task {task_id}/{len(items)}: processing {item!r}")
    return func(item)


__all__ = [
    "square",
    "square_vector",
    "run_array_task",
]
