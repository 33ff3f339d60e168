"""Tests for the command-line interface."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from code_blackbox import __version__
from code_blackbox.cli import app
from code_blackbox.config import HIDDEN_INLINE, HIDDEN_LINE

runner = CliRunner()

SOURCE = "export function add(a: number, b: number): number {\n  const sum = a + b\n  return sum\n}\n"

REDACTED = f"export function add(a: number, b: number): number {{\n  {HIDDEN_LINE}\n\n}}\n"


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "math.ts"
    path.write_text(SOURCE, encoding="utf-8")
    return path


def wrap(text: str) -> str:
    lines = text.split("\n")[:-1]
    body = "\n".join(f"{n:05d}| {line}" for n, line in enumerate(lines, start=1))
    return f"<file>\n{body}\n</file>"


class TestRedactCommand:
    """Tests for `code-blackbox redact`."""

    def test_redact_to_stdout(self, source_file: Path):
        """Test the redacted file is printed."""
        result = runner.invoke(app, ["redact", str(source_file)])

        assert result.exit_code == 0
        assert result.stdout == REDACTED

    def test_redact_window(self, source_file: Path):
        """Test --start/--end limit the edits to a window."""
        text = "export function a() {\n  x()\n  y()\n}\nexport function b() {\n  x()\n  y()\n}\n"
        source_file.write_text(text, encoding="utf-8")

        result = runner.invoke(app, ["redact", str(source_file), "--start", "5", "--end", "8"])

        assert result.exit_code == 0
        lines = result.stdout.split("\n")
        assert lines[1] == "  x()"
        assert lines[5] == f"  {HIDDEN_LINE}"

    def test_redact_invalid_window(self, source_file: Path):
        """Test a window starting at zero is an error."""
        result = runner.invoke(app, ["redact", str(source_file), "--start", "0"])
        assert result.exit_code == 1

    def test_redact_to_file(self, source_file: Path, tmp_path: Path):
        """Test --output writes the result to a file."""
        out = tmp_path / "out" / "math.ts"
        result = runner.invoke(app, ["redact", str(source_file), "-o", str(out)])

        assert result.exit_code == 0
        assert out.read_text(encoding="utf-8") == REDACTED

    def test_placeholder_option(self, source_file: Path):
        """Test --placeholder changes the marker text."""
        source_file.write_text("export const x = 1\n", encoding="utf-8")
        result = runner.invoke(app, ["redact", str(source_file), "--placeholder", "secret"])

        assert result.exit_code == 0
        assert result.stdout == "export const x = /* secret */\n"

    def test_invalid_placeholder(self, source_file: Path):
        """Test an invalid placeholder exits with an error."""
        result = runner.invoke(app, ["redact", str(source_file), "--placeholder", "a */ b"])
        assert result.exit_code == 1

    def test_config_file_next_to_source(self, source_file: Path, tmp_path: Path):
        """Test a config file beside the source is picked up."""
        (tmp_path / "blackbox.toml").write_text('[blackbox]\nplaceholder = "from config"\n')
        source_file.write_text("export const x = 1\n", encoding="utf-8")

        result = runner.invoke(app, ["redact", str(source_file)])

        assert result.exit_code == 0
        assert result.stdout == "export const x = /* from config */\n"

    def test_missing_file(self, tmp_path: Path):
        """Test a missing file is rejected."""
        result = runner.invoke(app, ["redact", str(tmp_path / "nope.ts")])
        assert result.exit_code != 0


class TestOutputCommand:
    """Tests for `code-blackbox output`."""

    def test_output_from_input_file(self, source_file: Path, tmp_path: Path):
        """Test a read-tool output file is redacted."""
        read = tmp_path / "read.txt"
        read.write_text(wrap(SOURCE), encoding="utf-8")

        result = runner.invoke(app, ["output", str(source_file), "--input", str(read)])

        assert result.exit_code == 0
        assert f"00002|   {HIDDEN_LINE}" in result.stdout
        assert "const sum" not in result.stdout

    def test_output_from_stdin(self, source_file: Path):
        """Test the read-tool output can come from stdin."""
        result = runner.invoke(app, ["output", str(source_file)], input=wrap(SOURCE))

        assert result.exit_code == 0
        assert "00004| }" in result.stdout

    def test_abstains_without_file_section(self, source_file: Path):
        """Test unmatched output exits with status 1."""
        result = runner.invoke(app, ["output", str(source_file)], input="nothing to see")
        assert result.exit_code == 1


class TestInspectCommand:
    """Tests for `code-blackbox inspect`."""

    def test_inspect_lists_candidates(self, source_file: Path):
        """Test candidates are listed in a table."""
        source_file.write_text(SOURCE + "const hidden = 1\n", encoding="utf-8")
        result = runner.invoke(app, ["inspect", str(source_file)])

        assert result.exit_code == 0
        assert "function" in result.stdout
        assert "collapse" in result.stdout
        assert "2 candidate(s)" in result.stdout

    def test_inspect_without_candidates(self, source_file: Path):
        """Test a file without declarations reports zero candidates."""
        source_file.write_text("export type A = string\n", encoding="utf-8")
        result = runner.invoke(app, ["inspect", str(source_file)])

        assert result.exit_code == 0
        assert "0 candidate(s)" in result.stdout


class TestGlobalOptions:
    """Tests for app-level options."""

    def test_version(self):
        """Test --version prints the version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_args_shows_help(self):
        """Test running without a command shows help."""
        result = runner.invoke(app, [])
        assert "redact" in result.output

    def test_inline_marker_constant(self, source_file: Path):
        """Test the default inline marker appears for exported values."""
        source_file.write_text("export const x = 1\n", encoding="utf-8")
        result = runner.invoke(app, ["-v", "redact", str(source_file)])

        assert result.exit_code == 0
        assert HIDDEN_INLINE in result.stdout
