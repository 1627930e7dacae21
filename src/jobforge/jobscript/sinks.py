"""Output sinks for generated job scripts.

Printing and persisting a script are two independent side effects.
Each is handled by its own sink so callers (and tests) can swap either
one out:

- ConsoleSink: writes script text to a terminal or any text stream
- FileSink: writes script text to disk atomically
- MemorySink: collects text in memory

Example:
    >>> from jobforge.jobscript.sinks import FileSink, MemorySink
    >>> sink = MemorySink()
    >>> sink.write("#!/bin/bash\\n")
    >>> sink.getvalue()
    '#!/bin/bash\\n'
    >>> FileSink().write("#!/bin/bash\\n", "jobs/demo.sh")
    PosixPath('jobs/demo.sh')
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import IO, Protocol

logger = logging.getLogger(__name__)

SCRIPT_MODE = 0o755


class ScriptWriteError(OSError):
    """Raised when a generated script cannot be written to disk.

    Attributes:
        path: The destination that could not be written.
    """

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Could not write job script {path}: {reason}")
        self.path = path


# =============================================================================
# Sink Interfaces
# =============================================================================


class TextSink(Protocol):
    """Anything that can receive the text of a script."""

    def write(self, text: str) -> None: ...


class ScriptFileSink(Protocol):
    """Anything that can persist the text of a script to a path."""

    def write(self, text: str, path: Path | str) -> Path: ...


# =============================================================================
# Text Sinks
# =============================================================================


class ConsoleSink:
    """Print scripts verbatim to a text stream.

    The text is written as-is, so tabs, carriage returns and escape
    sequences in job commands reach the terminal unchanged.
    """

    def __init__(self, file: IO[str] | None = None) -> None:
        """Initialize the sink.

        Args:
            file: Stream to write to (defaults to stdout at write time).
        """
        self.file = file

    def write(self, text: str) -> None:
        stream = self.file if self.file is not None else sys.stdout
        stream.write(text)
        stream.flush()


class MemorySink:
    """Collect written text in memory."""

    def __init__(self) -> None:
        self.writes: list[str] = []

    def write(self, text: str) -> None:
        self.writes.append(text)

    def getvalue(self) -> str:
        return "".join(self.writes)


# =============================================================================
# File Sink
# =============================================================================


class FileSink:
    """Persist scripts to disk, all or nothing.

    Text is written to a uniquely named temporary file next to the
    destination and then moved into place with ``os.replace``. A failed
    write leaves any existing file at the destination untouched and no
    partial file behind.
    """

    def __init__(self, mode: int = SCRIPT_MODE) -> None:
        """Initialize the sink.

        Args:
            mode: Permission bits for written scripts.
        """
        self.mode = mode

    def write(self, text: str, path: Path | str) -> Path:
        """Write text to path atomically.

        Args:
            text: Script content.
            path: Destination file. Parent directories are created.

        Returns:
            The destination path.

        Raises:
            ScriptWriteError: If any step of the write fails.
        """
        path = Path(path)
        tmp_name: str | None = None

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                handle.write(text)
            os.chmod(tmp_name, self.mode)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise ScriptWriteError(path, e.strerror or str(e)) from e
        finally:
            if tmp_name is not None:
                _discard(Path(tmp_name))

        logger.debug(f"Wrote {len(text)} bytes to {path}")
        return path


def _discard(path: Path) -> None:
    """Remove a leftover temporary file."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove temporary file {path}: {e}")


__all__ = [
    "ScriptWriteError",
    "TextSink",
    "ScriptFileSink",
    "ConsoleSink",
    "MemorySink",
    "FileSink",
    "SCRIPT_MODE",
]
