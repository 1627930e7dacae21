"""Job-script generation for SLURM single and array jobs.

A JobScriptConfig is rendered into an SBATCH script with:

- scheduler directives for name, memory, cores, logs and (for array
  jobs) the task range ``1-N``
- a reproducibility preamble that prints start time, user, job id,
  host, working directory and kernel when the job runs
- a body holding the caller's commands, or a placeholder that reads
  ``${SLURM_ARRAY_TASK_ID}`` for array jobs

The text depends only on the config and settings, so generating twice
gives identical output. Printing and persisting the script are optional
and independent.

Example:
    >>> from jobforge.jobscript import generate
    >>> from jobforge.config import JobScriptConfig
    >>> result = generate(
    ...     JobScriptConfig(name="nnSVG_array", memory="20G", task_count=4),
    ...     print_script=False,
    ... )
    >>> "#SBATCH --array=1-4" in result.text
    True

    Submit with: sbatch nnSVG_array.sh
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import attrs

from jobforge import __version__
from jobforge.config import (
    DEFAULT_CORES,
    DEFAULT_MEMORY,
    DEFAULT_TASK_COUNT,
    ConfigError,
    JobScriptConfig,
    Settings,
)
from jobforge.jobscript.sinks import (
    ConsoleSink,
    FileSink,
    ScriptFileSink,
    ScriptWriteError,
    TextSink,
)
from jobforge.templates import render_template

logger = logging.getLogger(__name__)

JOB_TEMPLATE = "slurm/job.sh.j2"

ARRAY_PLACEHOLDER = (
    'echo "Processing task ${SLURM_ARRAY_TASK_ID} of ${SLURM_ARRAY_TASK_COUNT}"'
)
SINGLE_PLACEHOLDER = 'echo "Hello from ${SLURM_JOB_NAME}"'


# =============================================================================
# Data Structures
# =============================================================================


@attrs.frozen
class ScriptResult:
    """Outcome of generating one job script.

    Attributes:
        text: The generated script.
        path: Where the script was written, or None if it was not persisted.
        config: The config the script was generated from.
    """

    text: str
    path: Path | None
    config: JobScriptConfig


# =============================================================================
# Rendering
# =============================================================================


def log_paths(config: JobScriptConfig, settings: Settings) -> tuple[str, str]:
    """Build the --output and --error paths for a job.

    Array tasks get ``%a`` in the file name so that concurrent tasks
    never share a log file. Logs go into the configured log directory
    only when ``create_logdir`` is set.

    Returns:
        (output_log, error_log) tuple.
    """
    suffix = ".%a.txt" if config.is_array else ".txt"
    filename = f"{config.name}{suffix}"
    if config.create_logdir:
        filename = f"{settings.cluster.log_dir.rstrip('/')}/{filename}"
    # stdout and stderr share one file per task
    return filename, filename


def array_range(config: JobScriptConfig, settings: Settings) -> str | None:
    """Return the --array value, or None for a plain job."""
    if not config.is_array:
        return None
    task_range = f"1-{config.task_count}"
    if settings.cluster.tasks_limit is not None:
        task_range = f"{task_range}%{settings.cluster.tasks_limit}"
    return task_range


def build_directives(
    config: JobScriptConfig,
    settings: Settings,
) -> list[tuple[str, str]]:
    """Build ordered (option, value) pairs for the ``#SBATCH`` block."""
    cluster = settings.cluster
    output_log, error_log = log_paths(config, settings)

    directives: list[tuple[str, str]] = []
    if cluster.partition:
        directives.append(("partition", cluster.partition))
    directives.append(("mem", config.memory))
    directives.append(("job-name", config.name))
    directives.append(("cpus-per-task", str(config.cores)))
    if cluster.time_limit:
        directives.append(("time", cluster.time_limit))
    directives.append(("output", output_log))
    directives.append(("error", error_log))
    if cluster.mail_type:
        directives.append(("mail-type", cluster.mail_type))

    array_spec = array_range(config, settings)
    if array_spec is not None:
        directives.append(("array", array_spec))

    return directives


def render_script(
    config: JobScriptConfig,
    settings: Settings | None = None,
    commands: Sequence[str] | None = None,
) -> str:
    """Render a config into script text without any side effects.

    Args:
        config: Job description.
        settings: Site defaults (defaults to Settings()).
        commands: Body lines. A placeholder is used when empty.

    Returns:
        The script text.
    """
    settings = settings or Settings()

    body = [line for line in (commands or ()) if line.strip()]
    if not body:
        body = [ARRAY_PLACEHOLDER if config.is_array else SINGLE_PLACEHOLDER]

    text = render_template(
        JOB_TEMPLATE,
        shell=settings.cluster.shell,
        directives=build_directives(config, settings),
        is_array=config.is_array,
        log_dir=settings.cluster.log_dir if config.create_logdir else None,
        modules=list(settings.cluster.modules),
        commands=body,
        version=__version__,
    )
    logger.debug(f"Rendered {len(text.splitlines())} lines for job {config.name}")
    return text


def script_path_for(name: str, directory: Path | str = ".") -> Path:
    """Return the path a job script named ``name`` is written to."""
    return Path(directory) / f"{name}.sh"


# =============================================================================
# Generator
# =============================================================================


class JobScriptGenerator:
    """Render job scripts and send them to the configured sinks.

    Example:
        >>> from jobforge.jobscript.sinks import MemorySink
        >>> console = MemorySink()
        >>> gen = JobScriptGenerator(console_sink=console)
        >>> result = gen.generate(JobScriptConfig(name="demo"))
        >>> console.getvalue() == result.text
        True
    """

    def __init__(
        self,
        settings: Settings | None = None,
        console_sink: TextSink | None = None,
        file_sink: ScriptFileSink | None = None,
        output_dir: Path | str = ".",
    ) -> None:
        """Initialize the generator.

        Args:
            settings: Site defaults applied to every script.
            console_sink: Where printed scripts go (defaults to stdout).
            file_sink: How scripts are persisted (defaults to atomic FileSink).
            output_dir: Directory that persisted scripts are written to.
        """
        self.settings = settings or Settings()
        self.console_sink = console_sink if console_sink is not None else ConsoleSink()
        self.file_sink = file_sink if file_sink is not None else FileSink()
        self.output_dir = Path(output_dir)

    def generate(
        self,
        config: JobScriptConfig,
        commands: Sequence[str] | None = None,
        print_script: bool = True,
    ) -> ScriptResult:
        """Generate a job script and emit it.

        The script is printed first (if requested) and then persisted
        (if ``config.create_shell``); a write failure does not undo the
        print.

        Args:
            config: Job description.
            commands: Body lines for the job.
            print_script: Send the script to the console sink.

        Returns:
            ScriptResult with the text and the written path, if any.

        Raises:
            ConfigError: If config is not a JobScriptConfig.
            ScriptWriteError: If persisting the script fails.
        """
        if not isinstance(config, JobScriptConfig):
            raise ConfigError(
                f"Expected a JobScriptConfig, got {type(config).__name__}"
            )

        text = render_script(config, self.settings, commands)

        if print_script:
            self.console_sink.write(text)

        path = None
        if config.create_shell:
            target = script_path_for(config.name, self.output_dir)
            if config.create_logdir:
                self._ensure_log_dir()
            path = self.file_sink.write(text, target)
            logger.debug(f"Wrote job script {path}")

        return ScriptResult(text=text, path=path, config=config)

    def _ensure_log_dir(self) -> None:
        """Create the log directory next to the script.

        SLURM opens log files before the script runs, so the directory
        must exist at submission time.
        """
        log_dir = self.output_dir / self.settings.cluster.log_dir
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ScriptWriteError(log_dir, e.strerror or str(e)) from e


def generate(
    config: JobScriptConfig,
    *,
    print_script: bool = True,
    settings: Settings | None = None,
    output_dir: Path | str = ".",
    commands: Sequence[str] | None = None,
    console_sink: TextSink | None = None,
    file_sink: ScriptFileSink | None = None,
) -> ScriptResult:
    """Generate a job script from a config.

    Convenience wrapper around JobScriptGenerator; see
    JobScriptGenerator.generate for behavior and errors.
    """
    generator = JobScriptGenerator(
        settings=settings,
        console_sink=console_sink,
        file_sink=file_sink,
        output_dir=output_dir,
    )
    return generator.generate(config, commands=commands, print_script=print_script)


def job_script(
    name: str,
    memory: str = DEFAULT_MEMORY,
    cores: int = DEFAULT_CORES,
    task_count: int = DEFAULT_TASK_COUNT,
    create_logdir: bool = False,
    create_shell: bool = False,
    **kwargs,
) -> ScriptResult:
    """Build a config from the six job fields and generate its script.

    Extra keyword arguments are passed to generate().

    Example:
        >>> result = job_script("nnSVG_array", memory="20G", task_count=4,
        ...                     print_script=False)
        >>> result.path is None
        True
    """
    config = JobScriptConfig(
        name=name,
        memory=memory,
        cores=cores,
        task_count=task_count,
        create_logdir=create_logdir,
        create_shell=create_shell,
    )
    return generate(config, **kwargs)


__all__ = [
    "ScriptResult",
    "JobScriptGenerator",
    "generate",
    "job_script",
    "render_script",
    "build_directives",
    "log_paths",
    "array_range",
    "script_path_for",
]
