"""Job-script generation for SLURM clusters.

This module turns a small job description into an SBATCH script for
either a single job or an array job:

- Rendering a JobScriptConfig into script text
- Printing the script and/or writing it to <name>.sh
- Swappable output sinks for the console and the filesystem

Example:
    >>> from jobforge.jobscript import job_script
    >>> result = job_script("nnSVG_array", memory="20G", task_count=4,
    ...                     create_shell=True)
    >>> result.path
    PosixPath('nnSVG_array.sh')
    >>> # Submit with: sbatch nnSVG_array.sh
"""

from jobforge.jobscript.generator import (
    JobScriptGenerator,
    ScriptResult,
    array_range,
    build_directives,
    generate,
    job_script,
    log_paths,
    render_script,
    script_path_for,
)

from jobforge.jobscript.sinks import (
    ConsoleSink,
    FileSink,
    MemorySink,
    ScriptWriteError,
)

__all__ = [
    # Generation
    "JobScriptGenerator",
    "ScriptResult",
    "generate",
    "job_script",
    "render_script",
    "build_directives",
    "log_paths",
    "array_range",
    "script_path_for",
    # Sinks
    "ConsoleSink",
    "FileSink",
    "MemorySink",
    "ScriptWriteError",
]
