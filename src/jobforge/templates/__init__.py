"""Template management for jobforge.

This module provides access to the Jinja2 templates used to render
job scripts.

Available templates:
    - slurm/job.sh.j2: SBATCH script for single and array jobs

Example:
    >>> from jobforge.templates import list_templates, get_template
    >>> list_templates("slurm")
    ['slurm/job.sh.j2']
    >>> template = get_template("slurm/job.sh.j2")
"""

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template

# Template directory
TEMPLATE_DIR = Path(__file__).parent

_environment: Environment | None = None


def get_template_dir() -> Path:
    """Get the templates directory path.

    Returns:
        Path to the templates directory.
    """
    return TEMPLATE_DIR


def get_environment() -> Environment:
    """Get Jinja2 environment for template rendering.

    The environment is created once and reused. Undefined variables
    raise instead of rendering as empty strings.

    Returns:
        Configured Jinja2 Environment.
    """
    global _environment
    if _environment is None:
        _environment = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
    return _environment


def get_template(name: str) -> Template:
    """Get a template by name.

    Args:
        name: Template name relative to templates directory.
              e.g., "slurm/job.sh.j2"

    Returns:
        Jinja2 Template object.

    Raises:
        jinja2.TemplateNotFound: If template doesn't exist.
    """
    return get_environment().get_template(name)


def render_template(name: str, **kwargs: Any) -> str:
    """Render a template with given variables.

    Args:
        name: Template name relative to templates directory.
        **kwargs: Template variables.

    Returns:
        Rendered template string.
    """
    return get_template(name).render(**kwargs)


def list_templates(subdir: str | None = None) -> list[str]:
    """List available templates.

    Args:
        subdir: Optional subdirectory to list (e.g., "slurm").

    Returns:
        Sorted list of template names relative to the templates directory.
    """
    base = TEMPLATE_DIR
    if subdir:
        base = base / subdir

    templates = []
    if base.exists():
        for path in base.rglob("*.j2"):
            templates.append(path.relative_to(TEMPLATE_DIR).as_posix())

    return sorted(templates)


__all__ = [
    "get_template_dir",
    "get_environment",
    "get_template",
    "render_template",
    "list_templates",
    "TEMPLATE_DIR",
]
