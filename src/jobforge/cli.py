"""Command-line interface for jobforge.

This module provides the main entry point for the jobforge CLI tool.
It uses Click to define commands and subcommands.

Commands:
    job-script: Generate a SLURM script for a single or array job
    env: Show the SLURM environment visible to this process
    square: Square a vector with the in-process parallel map

Example:
    $ jobforge --help
    $ jobforge job-script nnSVG_array --memory 20G --tasks 4 --create-shell
    $ jobforge job-script my_job --cores 4 --command 'Rscript run.R' --no-print --create-shell
    $ jobforge square 1 2 3 4 --cores 2
"""

import os
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from jobforge import __version__
from jobforge.config import (
    DEFAULT_CORES,
    DEFAULT_MEMORY,
    DEFAULT_TASK_COUNT,
    ConfigError,
    JobScriptConfig,
    Settings,
)
from jobforge.utils.logging import Timer, get_logger, setup_logging

# Status messages go to stderr so generated scripts can be piped
console = Console(stderr=True, soft_wrap=True)

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="jobforge")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """jobforge: parallelize computational biology workflows on SLURM.

    Generate SBATCH scripts for single and array jobs, inspect the SLURM
    environment of a running job, and run work through an in-process
    parallel map.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    verbosity = 0 if quiet else (2 if verbose else 1)
    setup_logging(verbosity=verbosity)


# =============================================================================
# job-script command
# =============================================================================


@main.command("job-script")
@click.argument("name")
@click.option(
    "--memory",
    default=DEFAULT_MEMORY,
    show_default=True,
    help="Memory request passed to --mem (e.g. 20G).",
)
@click.option(
    "-c",
    "--cores",
    type=int,
    default=DEFAULT_CORES,
    show_default=True,
    help="CPU cores per task.",
)
@click.option(
    "-n",
    "--tasks",
    "task_count",
    type=int,
    default=DEFAULT_TASK_COUNT,
    show_default=True,
    help="Number of array tasks (1 = plain job).",
)
@click.option(
    "--create-logdir",
    is_flag=True,
    help="Write logs into the log directory and create it.",
)
@click.option(
    "--create-shell",
    is_flag=True,
    help="Write the script to NAME.sh.",
)
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory for NAME.sh when --create-shell is given.",
)
@click.option(
    "--command",
    "commands",
    multiple=True,
    help="Command line for the job body. Repeat for several lines.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="TOML file with [cluster] defaults (partition, time_limit, modules, ...).",
)
@click.option(
    "--print/--no-print",
    "print_script",
    default=True,
    show_default=True,
    help="Print the script to stdout.",
)
@click.pass_context
def job_script_command(
    ctx: click.Context,
    name: str,
    memory: str,
    cores: int,
    task_count: int,
    create_logdir: bool,
    create_shell: bool,
    output_dir: Path,
    commands: tuple[str, ...],
    config_path: Optional[Path],
    print_script: bool,
) -> None:
    """Generate a SLURM job script.

    With --tasks greater than 1 the script is an array job over tasks
    1..N; each task reads ${SLURM_ARRAY_TASK_ID} to pick its unit of work
    and writes its own log file.

    Examples:
        # Print an array job with 4 tasks
        $ jobforge job-script nnSVG_array --memory 20G --tasks 4

        # Write my_job.sh and a logs/ directory, without printing
        $ jobforge job-script my_job --cores 4 --create-logdir \\
            --create-shell --no-print --command 'Rscript analysis.R'

        # Submit
        $ sbatch my_job.sh
    """
    from jobforge.jobscript import ScriptWriteError, generate

    quiet = ctx.obj.get("quiet", False)

    try:
        settings = Settings.load(config_path)
        config = JobScriptConfig(
            name=name,
            memory=memory,
            cores=cores,
            task_count=task_count,
            create_logdir=create_logdir,
            create_shell=create_shell,
        )
        result = generate(
            config,
            print_script=print_script,
            settings=settings,
            output_dir=output_dir,
            commands=list(commands),
        )
    except (ConfigError, ScriptWriteError, FileNotFoundError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        raise SystemExit(1)

    if result.path is not None and not quiet:
        console.print(f"[green]Wrote job script:[/green] {escape(str(result.path))}")
        console.print(f"  Submit with: sbatch {escape(str(result.path))}", highlight=False)


# =============================================================================
# env command
# =============================================================================


@main.command("env")
def show_env() -> None:
    """Show SLURM variables and allocated resources for this process.

    Run inside a job to check what the scheduler granted.

    Example:
        $ srun --cpus-per-task 4 jobforge env
    """
    from jobforge.parallel.slurm import detect_slurm_environment, get_slurm_resources

    environ = dict(os.environ)
    slurm_env = detect_slurm_environment(environ)

    if slurm_env is None:
        console.print("[yellow]Not running under SLURM[/yellow]")
        return

    table = Table(title="SLURM environment")
    table.add_column("Variable", style="cyan")
    table.add_column("Value")
    for key, value in slurm_env.items():
        table.add_row(key, value)

    try:
        resources = get_slurm_resources(environ)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        raise SystemExit(1)

    table.add_section()
    table.add_row("cpus", str(resources["cpus"]))
    table.add_row(
        "memory_mb",
        str(resources["memory_mb"]) if resources["memory_mb"] is not None else "-",
    )

    Console().print(table)


# =============================================================================
# square command
# =============================================================================


@main.command("square")
@click.argument("values", nargs=-1, type=float, required=True)
@click.option(
    "-c",
    "--cores",
    type=int,
    help="Worker count (defaults to the cores SLURM allocated, or 1).",
)
@click.option(
    "--backend",
    type=click.Choice(["serial", "threads", "processes"]),
    default="processes",
    show_default=True,
    help="Parallel execution backend.",
)
@click.pass_context
def square_command(
    ctx: click.Context,
    values: tuple[float, ...],
    cores: Optional[int],
    backend: str,
) -> None:
    """Square VALUES with the in-process parallel map.

    Demonstrates running work across several cores inside one job.

    Example:
        $ jobforge square 1 2 3 4 --cores 2
        1 4 9 16
    """
    from jobforge.parallel.executor import create_progress_bar
    from jobforge.parallel.slurm import requested_cores
    from jobforge.parallel.workflows import square_vector

    n_workers = cores if cores is not None else requested_cores(dict(os.environ))
    progress = create_progress_bar(console, disable=ctx.obj.get("quiet", False))

    try:
        with Timer(f"Squaring {len(values)} values", logger), progress:
            task = progress.add_task("Squaring", total=len(values))
            squares = square_vector(
                values,
                n_workers=n_workers,
                backend=backend,
                progress_callback=lambda done, total, task_id: progress.update(
                    task, completed=done
                ),
            )
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        raise SystemExit(1)

    click.echo(" ".join(_format_number(x) for x in squares))


def _format_number(value: float) -> str:
    """Drop the trailing .0 from whole numbers."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


if __name__ == "__main__":
    main()
