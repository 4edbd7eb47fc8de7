"""
CLI interface for pirs.

Records shell commands and reports where their output tokens go.
"""

import logging
import shlex
import subprocess
import sys
import uuid
from dataclasses import dataclass
from typing import List, Optional

import typer
from rich.console import Console

from pirs.config.loader import TrackerConfig, default_config, load_tracker_config
from pirs.core.classifier import CommandClassifier
from pirs.core.report import NO_DATA_MESSAGE, ReportMode, render_report, render_status_line
from pirs.sdk.tracker import CommandTracker
from pirs.storage.export import export_records
from pirs.storage.repository import get_repository, initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


@dataclass
class CliState:
    """Options shared by all commands."""
    config: TrackerConfig
    db_path: str


def _open_tracker(state: CliState) -> CommandTracker:
    """Create a tracker restored from the session log."""
    initialize_schema(state.db_path)
    tracker = CommandTracker(repository=get_repository(state.db_path))
    tracker.restore()
    return tracker


def _classifier(state: CliState) -> CommandClassifier:
    return state.config.build_classifier()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML configuration file"
    ),
    db: Optional[str] = typer.Option(
        None,
        "--db",
        help="Override the session log database path"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging"
    )
):
    """pirs - bash command token usage tracker."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        tracker_config = load_tracker_config(config) if config else default_config()
    except Exception as e:
        console.print(f"[red]Error loading config:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    ctx.obj = CliState(config=tracker_config, db_path=db or tracker_config.storage.db_path)

    if ctx.invoked_subcommand is None:
        console.print("pirs - Use --help to see available commands")


@app.command()
def init(ctx: typer.Context):
    """Initialize the session log database."""
    state: CliState = ctx.obj
    try:
        initialize_schema(state.db_path)
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def status(ctx: typer.Context):
    """Show the running total of recorded commands."""
    state: CliState = ctx.obj
    try:
        tracker = _open_tracker(state)
        console.print(render_status_line(tracker.store.snapshot()))
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def stats(
    ctx: typer.Context,
    mode: str = typer.Argument(
        "summary",
        help="Report view: summary, groups, all or top"
    )
):
    """
    Show token usage statistics for recorded commands.

    summary groups commands by category, groups adds example commands,
    all lists every command and top shows the 10 largest outputs.
    """
    state: CliState = ctx.obj
    try:
        tracker = _open_tracker(state)
        report = render_report(
            tracker.store.snapshot(),
            ReportMode.parse(mode),
            classifier=_classifier(state)
        )
        if report is None:
            console.print(NO_DATA_MESSAGE)
            sys.exit(EXIT_CODE_PASS)

        console.print(report)
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def record(
    ctx: typer.Context,
    command: str = typer.Argument(..., help="Command text as it was executed"),
    chars: int = typer.Option(
        ...,
        "--chars",
        min=0,
        help="Number of output characters the command produced"
    ),
    truncated: bool = typer.Option(False, "--truncated", help="Output was truncated"),
    error: bool = typer.Option(False, "--error", help="Command failed")
):
    """Record a command execution without running it."""
    state: CliState = ctx.obj
    try:
        tracker = _open_tracker(state)
        call_id = uuid.uuid4().hex
        tracker.on_command_started(call_id, command)
        entry = tracker.on_command_completed(
            call_id,
            output_chars=chars,
            truncated=truncated,
            is_error=error
        )
        console.print(f"[green]✓[/] Recorded ~{entry.estimated_tokens} tokens")
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def run(
    ctx: typer.Context,
    command: List[str] = typer.Argument(..., help="Shell command to run and record")
):
    """
    Run a shell command and record its output size.

    Use "--" before the command if it has options of its own, e.g.
    pirs run -- pytest -q
    """
    state: CliState = ctx.obj
    command_text = command[0] if len(command) == 1 else shlex.join(command)
    try:
        tracker = _open_tracker(state)
        call_id = uuid.uuid4().hex
        tracker.on_command_started(call_id, command_text)

        # stderr is merged into stdout so both stay interleaved on the terminal
        output_chars = 0
        with subprocess.Popen(
            command_text,
            shell=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace"
        ) as proc:
            for chunk in iter(proc.stdout.readline, ""):
                sys.stdout.write(chunk)
                sys.stdout.flush()
                output_chars += len(chunk)
            returncode = proc.wait()

        tracker.on_command_completed(
            call_id,
            output_chars=output_chars,
            is_error=returncode != 0
        )
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    sys.exit(returncode)


@app.command()
def reset(ctx: typer.Context):
    """Clear all recorded commands."""
    state: CliState = ctx.obj
    try:
        tracker = _open_tracker(state)
        count = tracker.reset()
        console.print(f"Cleared {count} bash records.")
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def export(
    ctx: typer.Context,
    directory: Optional[str] = typer.Option(
        None,
        "--dir",
        "-d",
        help="Directory to write the export file to"
    )
):
    """Export recorded commands to a JSON file."""
    state: CliState = ctx.obj
    try:
        tracker = _open_tracker(state)
        records = tracker.store.snapshot()
        if not records:
            console.print("No data to export.")
            sys.exit(EXIT_CODE_PASS)

        path = export_records(records, directory or state.config.export.directory)
        console.print(f"Exported {len(records)} records to {path}")
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


if __name__ == "__main__":
    app()
