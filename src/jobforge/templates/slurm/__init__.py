"""SLURM job templates for jobforge.

Available templates:
    - job.sh.j2: SBATCH script for single and array jobs

Usage:
    >>> from jobforge.templates import render_template
    >>> script = render_template("slurm/job.sh.j2",
    ...     shell="/bin/bash",
    ...     directives=[("job-name", "my_job"), ("array", "1-10")],
    ...     is_array=True,
    ...     log_dir=None,
    ...     modules=[],
    ...     commands=['echo "task ${SLURM_ARRAY_TASK_ID}"'],
    ...     version="0.1.0",
    ... )
"""
