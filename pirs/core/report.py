"""
Report formatting.

Renders aggregation results as a single block of rich markup per report.
"""

from enum import Enum
from typing import List, Optional, Sequence

from rich.markup import escape

from .aggregation import (
    ReportStatus,
    build_summary,
    list_chronological,
    top_records,
    total_chars,
    total_tokens,
    truncate_command,
)
from .classifier import CommandClassifier
from pirs.storage.models import BashRecord

NO_DATA_MESSAGE = "No bash commands recorded yet."

ALL_COMMAND_WIDTH = 80
TOP_COMMAND_WIDTH = 70


class ReportMode(Enum):
    """Available report views."""
    SUMMARY = "summary"
    GROUPS = "groups"
    ALL = "all"
    TOP = "top"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ReportMode":
        """Parse a mode name; blank or unknown names fall back to SUMMARY."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.SUMMARY


def format_number(n: int) -> str:
    """Compact number: 950, 1.2k, 3.4M."""
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.1f}k"
    return str(n)


def format_bytes(chars: int) -> str:
    """Compact byte size with 1024 base: 512B, 1.5KB, 2.0MB."""
    if chars >= 1_048_576:
        return f"{chars / 1_048_576:.1f}MB"
    if chars >= 1_024:
        return f"{chars / 1_024:.1f}KB"
    return f"{chars}B"


def _title(text: str) -> str:
    return f"[bold cyan]═══ {text} ═══[/]"


def _total_line(records: Sequence[BashRecord]) -> str:
    return (
        f"[bold white]Total:[/] [cyan]{len(records)}[/] commands | "
        f"~[yellow]{format_number(total_tokens(records))}[/] tokens"
    )


def render_status_line(records: Sequence[BashRecord]) -> str:
    """One-line running total, or the no-data message."""
    if not records:
        return NO_DATA_MESSAGE
    return (
        f"[bold white]Bash:[/] [cyan]{len(records)}[/] calls | "
        f"~[yellow]{format_number(total_tokens(records))}[/] tokens | "
        f"[green]{format_bytes(total_chars(records))}[/] output"
    )


def render_summary(
    records: Sequence[BashRecord],
    show_commands: bool = False,
    classifier: Optional[CommandClassifier] = None
) -> Optional[str]:
    """Grouped report; returns None when there is no data."""
    summary = build_summary(records, include_examples=show_commands, classifier=classifier)
    if summary.status == ReportStatus.NO_DATA:
        return None

    title = "Bash Token Usage by Group" if show_commands else "Bash Token Usage"
    lines: List[str] = [_title(title), ""]
    for stats in summary.groups:
        lines.append(
            f"[bold magenta]▸ {escape(stats.group)}:[/] "
            f"~[yellow]{format_number(stats.total_tokens)}[/] tokens "
            f"[grey50]({stats.percent_of_total:.1f}%)[/] — "
            f"[cyan]{stats.count}[/] calls, [green]{format_bytes(stats.total_chars)}[/]"
        )
        if show_commands:
            for cmd in stats.examples:
                lines.append(f"    [green]$[/] [white]{escape(cmd)}[/]")
            lines.append("")

    if not show_commands:
        lines.append("")
    lines.append(_total_line(records))
    return "\n".join(lines)


def render_all(records: Sequence[BashRecord]) -> Optional[str]:
    """Every record in arrival order with flags; None when empty."""
    if not records:
        return None

    lines: List[str] = [_title("Bash Token Usage (All Commands)"), ""]
    for r in list_chronological(records):
        time = r.timestamp.astimezone().strftime("%H:%M:%S")
        cmd = truncate_command(r.command, ALL_COMMAND_WIDTH)
        flags = " ".join(
            flag for flag, on in (("[red]TRUNCATED[/]", r.truncated), ("[red]ERROR[/]", r.is_error)) if on
        )
        lines.append(
            f"[grey50]\\[{time}][/] ~[yellow]{format_number(r.estimated_tokens)}[/] tokens "
            f"[grey50]({format_bytes(r.output_chars)})[/] {flags}".rstrip()
        )
        lines.append(f"  [green]$[/] [white]{escape(cmd)}[/]")
        lines.append("")

    lines.append(_total_line(records))
    return "\n".join(lines)


def render_top(records: Sequence[BashRecord]) -> Optional[str]:
    """Top 10 records by token estimate; None when empty."""
    if not records:
        return None

    lines: List[str] = [_title("Top 10 Bash Commands by Token Output"), ""]
    for i, r in enumerate(top_records(records), start=1):
        cmd = truncate_command(r.command, TOP_COMMAND_WIDTH)
        lines.append(
            f"[bold white]{i}.[/] ~[yellow]{format_number(r.estimated_tokens)}[/] tokens — "
            f"[green]$[/] [white]{escape(cmd)}[/]"
        )
    return "\n".join(lines)


def render_report(
    records: Sequence[BashRecord],
    mode: ReportMode = ReportMode.SUMMARY,
    classifier: Optional[CommandClassifier] = None
) -> Optional[str]:
    """Render the report for a mode; None signals "no data"."""
    if mode == ReportMode.ALL:
        return render_all(records)
    if mode == ReportMode.TOP:
        return render_top(records)
    return render_summary(records, show_commands=mode == ReportMode.GROUPS, classifier=classifier)
