"""Tests for jobforge.jobscript.sinks module."""

import io
from pathlib import Path
from unittest.mock import patch

import pytest

from jobforge.config import JobScriptConfig
from jobforge.jobscript import generate
from jobforge.jobscript.sinks import (
    SCRIPT_MODE,
    ConsoleSink,
    FileSink,
    MemorySink,
    ScriptWriteError,
)

SCRIPT = '#!/bin/bash\n#SBATCH --array=1-4\necho "[task ${SLURM_ARRAY_TASK_ID}]"\n'


# =============================================================================
# Text Sink Tests
# =============================================================================


class TestConsoleSink:
    """Tests for ConsoleSink."""

    def test_writes_verbatim(self):
        """Brackets and dollar signs are not treated as markup."""
        stream = io.StringIO()
        ConsoleSink(file=stream).write(SCRIPT)
        assert stream.getvalue() == SCRIPT

    def test_long_lines_not_wrapped(self):
        stream = io.StringIO()
        line = "Rscript analysis.R " + "x" * 300 + "\n"
        ConsoleSink(file=stream).write(line)
        assert stream.getvalue() == line

    def test_control_characters_unchanged(self):
        """Tabs, carriage returns and escapes are not rendered away."""
        stream = io.StringIO()
        text = "cat <<-EOF\n\tindented\n\tEOF\necho x\r\nprintf \x1b[1mbold\x1b[0m\n"
        ConsoleSink(file=stream).write(text)
        assert stream.getvalue() == text

    def test_generated_heredoc_printed_exactly(self):
        stream = io.StringIO()
        result = generate(
            JobScriptConfig(name="job"),
            commands=["cat <<-EOF > out.txt", "\tindented", "\tEOF", "echo x\r", "echo \x1b[0m"],
            console_sink=ConsoleSink(file=stream),
        )

        assert "\tEOF\n" in result.text
        assert stream.getvalue() == result.text

    def test_defaults_to_stdout(self, capsys):
        ConsoleSink().write(SCRIPT)
        assert capsys.readouterr().out == SCRIPT


class TestMemorySink:
    """Tests for MemorySink."""

    def test_collects_writes(self):
        sink = MemorySink()
        sink.write("a\n")
        sink.write("b\n")

        assert sink.writes == ["a\n", "b\n"]
        assert sink.getvalue() == "a\nb\n"

    def test_empty(self):
        assert MemorySink().getvalue() == ""


# =============================================================================
# File Sink Tests
# =============================================================================


class TestFileSink:
    """Tests for FileSink."""

    def test_write(self, tmp_path):
        target = tmp_path / "job.sh"
        result = FileSink().write(SCRIPT, target)

        assert result == target
        assert target.read_text() == SCRIPT
        assert target.stat().st_mode & 0o777 == SCRIPT_MODE

    def test_accepts_str_path(self, tmp_path):
        result = FileSink().write(SCRIPT, str(tmp_path / "job.sh"))
        assert isinstance(result, Path)

    def test_custom_mode(self, tmp_path):
        target = FileSink(mode=0o644).write(SCRIPT, tmp_path / "job.sh")
        assert target.stat().st_mode & 0o777 == 0o644

    def test_creates_parent_dirs(self, tmp_path):
        target = tmp_path / "jobs" / "nnSVG" / "job.sh"
        FileSink().write(SCRIPT, target)
        assert target.read_text() == SCRIPT

    def test_no_temp_files_left(self, tmp_path):
        FileSink().write(SCRIPT, tmp_path / "job.sh")
        assert [p.name for p in tmp_path.iterdir()] == ["job.sh"]

    def test_replace_failure(self, tmp_path):
        """A failed write keeps the old file and cleans up the temp file."""
        target = tmp_path / "job.sh"
        target.write_text("old\n")

        with patch(
            "jobforge.jobscript.sinks.os.replace",
            side_effect=OSError(13, "Permission denied"),
        ):
            with pytest.raises(ScriptWriteError) as exc_info:
                FileSink().write(SCRIPT, target)

        assert exc_info.value.path == target
        assert "Permission denied" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, OSError)
        assert target.read_text() == "old\n"
        assert [p.name for p in tmp_path.iterdir()] == ["job.sh"]

    def test_parent_is_file(self, tmp_path):
        blocker = tmp_path / "jobs"
        blocker.write_text("")

        with pytest.raises(ScriptWriteError):
            FileSink().write(SCRIPT, blocker / "job.sh")

    def test_error_is_oserror(self, tmp_path):
        error = ScriptWriteError(tmp_path / "job.sh", "disk full")
        assert isinstance(error, OSError)
        assert str(error) == f"Could not write job script {tmp_path / 'job.sh'}: disk full"
