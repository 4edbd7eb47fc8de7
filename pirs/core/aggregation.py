"""
Usage aggregation over command records.

All functions here are read-only transformations over a record
sequence; none of them mutate or filter the store they are given.

Views:
1. Grouped summary - per category totals, ranked by tokens
2. Chronological listing - records in arrival order
3. Top-N - largest individual outputs
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .classifier import CommandClassifier, classify_command
from pirs.storage.models import BashRecord

MAX_EXAMPLES_PER_GROUP = 3
EXAMPLE_COMMAND_WIDTH = 60
TOP_N_LIMIT = 10


class ReportStatus(Enum):
    """Outcome of building a report."""
    OK = "ok"
    NO_DATA = "no_data"


@dataclass
class GroupStats:
    """Running totals for one command category."""
    group: str
    count: int = 0
    total_tokens: int = 0
    total_chars: int = 0
    examples: List[str] = field(default_factory=list)
    percent_of_total: float = 0.0


@dataclass
class UsageSummary:
    """Grouped summary with grand totals."""
    status: ReportStatus
    groups: List[GroupStats] = field(default_factory=list)
    total_commands: int = 0
    total_tokens: int = 0
    total_chars: int = 0


def truncate_command(command: str, width: int) -> str:
    """Shorten a command for display, marking the cut with '...'."""
    if len(command) > width:
        return command[:width - 3] + "..."
    return command


def total_tokens(records: Sequence[BashRecord]) -> int:
    """Sum of estimated tokens across records."""
    return sum(r.estimated_tokens for r in records)


def total_chars(records: Sequence[BashRecord]) -> int:
    """Sum of output characters across records."""
    return sum(r.output_chars for r in records)


def percentage(part: int, whole: int) -> float:
    """Share of part in whole, in percent; 0.0 when whole is zero."""
    if whole == 0:
        return 0.0
    return part / whole * 100


def summarize_by_group(
    records: Sequence[BashRecord],
    include_examples: bool = False,
    classifier: Optional[CommandClassifier] = None
) -> List[GroupStats]:
    """Group records by category and rank groups by total tokens.

    Args:
        records: Records in arrival order
        include_examples: Collect up to three first-seen commands per group
        classifier: Rule table to use (default table if None)

    Returns:
        GroupStats sorted by total_tokens descending. The sort is stable,
        so groups with equal totals keep first-encountered order.
    """
    groups: Dict[str, GroupStats] = {}
    for record in records:
        name = classify_command(record.command, classifier)
        stats = groups.get(name)
        if stats is None:
            stats = groups[name] = GroupStats(group=name)
        stats.count += 1
        stats.total_tokens += record.estimated_tokens
        stats.total_chars += record.output_chars
        if include_examples and len(stats.examples) < MAX_EXAMPLES_PER_GROUP:
            stats.examples.append(truncate_command(record.command, EXAMPLE_COMMAND_WIDTH))

    return sorted(groups.values(), key=lambda s: s.total_tokens, reverse=True)


def list_chronological(records: Sequence[BashRecord]) -> List[BashRecord]:
    """All records in original arrival order."""
    return list(records)


def top_records(records: Sequence[BashRecord], limit: int = TOP_N_LIMIT) -> List[BashRecord]:
    """Records with the largest token estimates, ties in arrival order.

    Args:
        records: Records in arrival order
        limit: Maximum number of records to return (capped at 10)
    """
    limit = max(0, min(limit, TOP_N_LIMIT))
    return sorted(records, key=lambda r: r.estimated_tokens, reverse=True)[:limit]


def build_summary(
    records: Sequence[BashRecord],
    include_examples: bool = False,
    classifier: Optional[CommandClassifier] = None
) -> UsageSummary:
    """Build the grouped summary with per-group share of total tokens.

    Returns a NO_DATA summary, without grouping anything, when there are
    no records or the grand token total is zero.
    """
    grand_tokens = total_tokens(records)
    if not records or grand_tokens == 0:
        return UsageSummary(
            status=ReportStatus.NO_DATA,
            total_commands=len(records),
            total_chars=total_chars(records)
        )

    groups = summarize_by_group(records, include_examples, classifier)
    for stats in groups:
        stats.percent_of_total = round(percentage(stats.total_tokens, grand_tokens), 1)

    return UsageSummary(
        status=ReportStatus.OK,
        groups=groups,
        total_commands=len(records),
        total_tokens=grand_tokens,
        total_chars=total_chars(records)
    )
