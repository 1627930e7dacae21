"""jobforge: parallelize computational biology workflows on SLURM clusters.

jobforge covers the two usual ways of spreading work across a shared
HPC cluster: an in-process parallel map over worker processes inside a
single job, and SLURM array jobs whose tasks each pick their own unit
of work.

Example:
    >>> import jobforge
    >>> jobforge.__version__
    '0.1.0'

Modules:
    config: Job configuration and site settings
    jobscript: SBATCH script generation for single and array jobs
    parallel: Parallel map, SLURM environment helpers and example workflows
    templates: Jinja2 script templates
    utils: Logging setup
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
