"""Command-line interface for code-blackbox.

Redacts TypeScript/JavaScript files into a signature-only "blackbox" form
that keeps every line number intact.

Commands:
    redact   Redact a file (optionally only a line window of it)
    output   Redact the <file> excerpt of a read-tool output
    inspect  Show which declarations would be hidden

Configuration:
    Supports config files: blackbox.toml, .blackbox.yml, etc.
    CLI flags override config file values.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import BlackboxConfig
from .config_loader import load_config, merge_cli_with_config
from .redactor import create_redactor
from .utils import read_file_safe

# Initialize CLI app
app = typer.Typer(
    name="code-blackbox",
    help="""Hide implementation details of TypeScript/JavaScript files.

Function bodies and initializers become comment markers; signatures, types
and doc comments stay, and the line count never changes.

Examples:
    code-blackbox redact src/math.ts
    code-blackbox redact src/math.ts --start 18 --end 26
    code-blackbox output src/math.ts --input read-output.txt
    code-blackbox inspect src/math.ts
""",
    add_completion=False,
    no_args_is_help=True,
)

# Redacted text goes to stdout; messages go to stderr
console = Console(stderr=True)

logger = logging.getLogger(__name__)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"code-blackbox version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=verbose)],
        force=True,
    )


@app.callback()
def main_options(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging.",
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """code-blackbox: signature-preserving redaction."""
    configure_logging(verbose)


def build_config(
    file_path: Path,
    config_file: Path | None,
    placeholder: str | None,
) -> BlackboxConfig:
    """Load the config file next to the target (or the given one) and apply CLI overrides."""
    project_config = load_config(file_path.parent, config_file)
    if project_config._config_file:
        logger.debug("Using config: %s", project_config._config_file)
    return merge_cli_with_config(project_config, placeholder=placeholder)


def read_source(file_path: Path) -> str:
    try:
        content, _ = read_file_safe(file_path)
    except OSError as e:
        console.print(f"[red]Error reading {file_path}: {e}[/red]")
        raise typer.Exit(1) from None
    return content


def write_text(text: str, output: Path | None) -> None:
    if output is None:
        sys.stdout.write(text)
        sys.stdout.flush()
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    console.print(f"[green]✓[/green] Wrote {output}")


CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to config file (blackbox.toml or .blackbox.yml).",
    exists=True,
    file_okay=True,
    dir_okay=False,
)

PLACEHOLDER_OPTION = typer.Option(
    None,
    "--placeholder",
    help="Marker text. [default: implementation hidden]",
)


@app.command()
def redact(
    file_path: Path = typer.Argument(
        ...,
        help="TypeScript/JavaScript file to redact.",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    start: int | None = typer.Option(
        None,
        "--start",
        "-s",
        help="First line of the window (1-based, inclusive).",
    ),
    end: int | None = typer.Option(
        None,
        "--end",
        "-e",
        help="Last line of the window (1-based, inclusive).",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the result here instead of stdout.",
    ),
    config_file: Path | None = CONFIG_OPTION,
    placeholder: str | None = PLACEHOLDER_OPTION,
) -> None:
    """Redact a file and print the result.

    With --start/--end only edits inside that line window are applied;
    the rest of the file is printed unchanged.

    \b
    EXAMPLES:
      code-blackbox redact src/math.ts
      code-blackbox redact src/math.ts -s 18 -e 26
      code-blackbox redact src/math.ts -o out/math.ts
    """
    try:
        config = build_config(file_path, config_file, placeholder)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    text = read_source(file_path)

    window = None
    if start is not None or end is not None:
        line_count = len(text.split("\n"))
        window = (start if start is not None else 1, end if end is not None else line_count)

    try:
        redacted = create_redactor(config=config).redact_file(file_path, text, window)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    write_text(redacted, output)


@app.command()
def output(
    file_path: Path = typer.Argument(
        ...,
        help="File the excerpt was read from.",
    ),
    input_file: Path | None = typer.Option(
        None,
        "--input",
        "-i",
        help="Read-tool output to redact. [default: stdin]",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    config_file: Path | None = CONFIG_OPTION,
    placeholder: str | None = PLACEHOLDER_OPTION,
) -> None:
    """Redact the numbered <file> excerpt of a read-tool output.

    Exits with status 1 and prints nothing when the output cannot be
    matched to the file (missing tags, no numbered lines, unreadable or
    changed file).

    \b
    EXAMPLES:
      code-blackbox output src/math.ts --input read.txt
      cat read.txt | code-blackbox output src/math.ts
    """
    try:
        config = build_config(file_path, config_file, placeholder)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    wrapped = read_source(input_file) if input_file is not None else sys.stdin.read()

    updated = create_redactor(config=config).redact_output(file_path, wrapped)
    if updated is None:
        console.print("[yellow]Output left unchanged: excerpt does not match the file.[/yellow]")
        raise typer.Exit(1)

    write_text(updated, None)


@app.command()
def inspect(
    file_path: Path = typer.Argument(
        ...,
        help="TypeScript/JavaScript file to inspect.",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
) -> None:
    """List the declarations that redaction would hide.

    \b
    EXAMPLES:
      code-blackbox inspect src/math.ts
    """
    text = read_source(file_path)
    redactor = create_redactor()
    candidates = redactor.candidates(file_path, text)

    out = Console()
    table = Table(title=str(file_path), box=box.SIMPLE)
    table.add_column("Kind", style="cyan")
    table.add_column("Lines", justify="right")
    table.add_column("Priority", justify="right")
    table.add_column("Node")

    for candidate in candidates:
        table.add_row(
            candidate.kind.value,
            f"{candidate.start.line}-{candidate.end.line}",
            str(candidate.priority),
            candidate.node.type,
        )

    out.print(table)
    out.print(f"{len(candidates)} candidate(s)")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
