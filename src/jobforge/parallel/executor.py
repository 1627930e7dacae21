"""Local parallel execution using concurrent.futures.

This module is the in-process side of jobforge: one job on one node
fans a function out over several workers. The actual pool is
``concurrent.futures``; ParallelExecutor adds per-task timing, error
capture and ordered results.

Features:
    - Multiple execution backends (serial, threads, processes)
    - Results returned in input order
    - Error handling (continue on failure or stop at the first one)
    - Optional progress callback

Example:
    >>> from jobforge.parallel.executor import ParallelExecutor
    >>> executor = ParallelExecutor(n_workers=4)
    >>> results, stats = executor.map_items(abs, [-1, -2, -3])
    >>> [r.result for r in results]
    [1, 2, 3]
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import (
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)
from enum import Enum
from typing import Any, Callable, Sequence, TypeVar

import attrs
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


# =============================================================================
# Enums
# =============================================================================


class ExecutorBackend(Enum):
    """Available execution backends."""

    SERIAL = "serial"
    THREADS = "threads"
    PROCESSES = "processes"


# =============================================================================
# Data Structures
# =============================================================================


@attrs.define(slots=True)
class TaskResult:
    """Result from a parallel task."""

    task_id: str
    success: bool
    result: Any | None = None
    error: str | None = None
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "task_id": self.task_id,
            "success": self.success,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@attrs.define(slots=True)
class ExecutionStats:
    """Statistics from parallel execution."""

    total_tasks: int
    successful: int
    failed: int
    total_duration: float
    mean_task_duration: float
    max_task_duration: float

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "total_tasks": self.total_tasks,
            "successful": self.successful,
            "failed": self.failed,
            "total_duration": round(self.total_duration, 3),
            "mean_task_duration": round(self.mean_task_duration, 3),
            "max_task_duration": round(self.max_task_duration, 3),
        }


class TaskFailedError(RuntimeError):
    """Raised when a task fails and continue_on_error is False."""

    def __init__(self, task_id: str, error: str) -> None:
        super().__init__(f"Task {task_id} failed: {error}")
        self.task_id = task_id
        self.error = error


# =============================================================================
# Task Wrapper
# =============================================================================


def _run_task(func: Callable[[T], R], task_id: str, item: T) -> TaskResult:
    """Run one task and capture its outcome.

    Module-level so that it can be pickled for ProcessPoolExecutor.
    """
    start_time = time.time()
    try:
        result = func(item)
    except Exception as e:
        return TaskResult(
            task_id=task_id,
            success=False,
            error=f"{type(e).__name__}: {e}",
            duration_seconds=time.time() - start_time,
        )
    return TaskResult(
        task_id=task_id,
        success=True,
        result=result,
        duration_seconds=time.time() - start_time,
    )


# =============================================================================
# Parallel Executor
# =============================================================================


class ParallelExecutor:
    """Apply a function to many items in parallel.

    Example:
        >>> executor = ParallelExecutor(n_workers=4, backend="processes")
        >>> results, stats = executor.map_items(process_donor, donors)
        >>> print(f"Processed {stats.successful}/{stats.total_tasks} donors")
    """

    def __init__(
        self,
        n_workers: int = 1,
        backend: ExecutorBackend | str = ExecutorBackend.PROCESSES,
        progress_callback: Callable[[int, int, str], None] | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            n_workers: Number of parallel workers (1 = serial).
            backend: Execution backend.
            progress_callback: Called with (completed, total, task_id).
        """
        self.n_workers = max(1, n_workers)
        self.backend = (
            ExecutorBackend(backend) if isinstance(backend, str) else backend
        )
        self.progress_callback = progress_callback

        # Auto-select serial if n_workers=1
        if self.n_workers == 1:
            self.backend = ExecutorBackend.SERIAL

    def map_items(
        self,
        func: Callable[[T], R],
        items: Sequence[T],
        continue_on_error: bool = True,
    ) -> tuple[list[TaskResult], ExecutionStats]:
        """Apply function to each item.

        With the processes backend, ``func`` and the items must be
        picklable (use module-level functions).

        Args:
            func: Function taking one item.
            items: Items to process.
            continue_on_error: If True, record failures and keep going.
                If False, raise TaskFailedError at the first failure.

        Returns:
            Tuple of (results in input order, execution stats).
        """
        items = list(items)
        task_ids = [f"item_{i:06d}" for i in range(len(items))]

        if not items:
            return [], ExecutionStats(
                total_tasks=0,
                successful=0,
                failed=0,
                total_duration=0.0,
                mean_task_duration=0.0,
                max_task_duration=0.0,
            )

        logger.info(
            f"Processing {len(items)} items with {self.n_workers} workers "
            f"(backend={self.backend.value})"
        )

        start_time = time.time()

        if self.backend == ExecutorBackend.SERIAL:
            results = self._execute_serial(func, task_ids, items, continue_on_error)
        else:
            if self.backend == ExecutorBackend.THREADS:
                pool_cls = ThreadPoolExecutor
            else:
                pool_cls = ProcessPoolExecutor
            results = self._execute_pool(
                pool_cls, func, task_ids, items, continue_on_error
            )

        total_duration = time.time() - start_time
        successful = sum(1 for r in results if r.success)
        failed = len(results) - successful
        durations = [r.duration_seconds for r in results]

        stats = ExecutionStats(
            total_tasks=len(results),
            successful=successful,
            failed=failed,
            total_duration=total_duration,
            mean_task_duration=sum(durations) / len(durations) if durations else 0,
            max_task_duration=max(durations) if durations else 0,
        )

        logger.info(
            f"Completed: {successful}/{len(items)} items, "
            f"duration={total_duration:.1f}s"
        )

        return results, stats

    def _execute_serial(
        self,
        func: Callable,
        task_ids: list[str],
        items: list,
        continue_on_error: bool,
    ) -> list[TaskResult]:
        """Serial execution with progress tracking."""
        results = []
        total = len(items)

        for i, (task_id, item) in enumerate(zip(task_ids, items)):
            task_result = _run_task(func, task_id, item)
            results.append(task_result)

            if self.progress_callback:
                self.progress_callback(i + 1, total, task_id)

            if not task_result.success and not continue_on_error:
                logger.error(f"Task {task_id} failed: {task_result.error}")
                raise TaskFailedError(task_id, task_result.error or "")

        return results

    def _execute_pool(
        self,
        pool_cls: type[ThreadPoolExecutor] | type[ProcessPoolExecutor],
        func: Callable,
        task_ids: list[str],
        items: list,
        continue_on_error: bool,
    ) -> list[TaskResult]:
        """Pool execution; results are slotted back into input order."""
        results: list[TaskResult | None] = [None] * len(items)
        total = len(items)
        completed = 0

        with pool_cls(max_workers=self.n_workers) as executor:
            futures: dict[Future, int] = {
                executor.submit(_run_task, func, task_id, item): i
                for i, (task_id, item) in enumerate(zip(task_ids, items))
            }

            for future in as_completed(futures):
                index = futures[future]
                task_result = future.result()
                results[index] = task_result
                completed += 1

                if self.progress_callback:
                    self.progress_callback(completed, total, task_result.task_id)

                if not task_result.success and not continue_on_error:
                    logger.error(
                        f"Task {task_result.task_id} failed: {task_result.error}"
                    )
                    executor.shutdown(wait=False, cancel_futures=True)
                    raise TaskFailedError(task_result.task_id, task_result.error or "")

        return [r for r in results if r is not None]


def create_progress_bar(
    console: Console | None = None,
    disable: bool = False,
) -> Progress:
    """Create rich progress bar for parallel execution.

    Args:
        console: Console to draw on (defaults to stderr, keeping stdout
            free for results).
        disable: Create the bar without drawing anything.

    Returns:
        Rich Progress object; add a task to it and update it from
        a progress_callback.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console if console is not None else Console(stderr=True),
        transient=True,
        disable=disable,
    )


__all__ = [
    "ExecutorBackend",
    "TaskResult",
    "ExecutionStats",
    "TaskFailedError",
    "ParallelExecutor",
    "create_progress_bar",
]
