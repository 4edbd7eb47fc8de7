"""
Command execution tracker.

Pairs "call started" and "call completed" events into records and keeps
the session log up to date without knowing anything about the host that
delivers the events.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from ..storage.models import BashRecord
from ..storage.repository import RecordStore, SnapshotRepository

logger = logging.getLogger(__name__)

UNKNOWN_COMMAND = "<unknown>"

OutputSegment = Union[str, Mapping[str, Any]]


@dataclass(frozen=True)
class CommandStarted:
    """A command was submitted for execution."""
    call_id: str
    command: str


@dataclass(frozen=True)
class CommandCompleted:
    """A command finished; carries its output segments and flags."""
    call_id: str
    output: Tuple[OutputSegment, ...] = field(default_factory=tuple)
    truncated: bool = False
    is_error: bool = False
    command: Optional[str] = None


def count_output_chars(segments: Iterable[OutputSegment]) -> int:
    """Total length of all textual output segments.

    Plain strings count as text. Mapping segments count only when their
    type is "text"; images, other content and anything that is neither
    a string nor a mapping are ignored.
    """
    total = 0
    for part in segments:
        if isinstance(part, str):
            total += len(part)
        elif isinstance(part, Mapping) and part.get("type") == "text":
            total += len(part.get("text") or "")
    return total


class CommandTracker:
    """Event subscriber that turns command executions into records.

    The host calls on_command_started / on_command_completed (or feeds
    tagged events to handle_event) one event at a time. Every completed
    call appends one record and saves a full snapshot of the sequence.
    """

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        repository: Optional[SnapshotRepository] = None
    ):
        """Initialize the tracker.

        Args:
            store: Record sequence to append to (a new empty one if None)
            repository: Session log for snapshots; nothing is persisted if None
        """
        self.store = store if store is not None else RecordStore()
        self.repository = repository
        self._pending: Dict[str, str] = {}

    @property
    def pending_calls(self) -> Dict[str, str]:
        """Copy of call ids still waiting for a completion."""
        return dict(self._pending)

    def restore(self) -> int:
        """Replace the records with the last saved snapshot.

        Returns:
            Number of restored records
        """
        records = self.repository.load_latest_snapshot() if self.repository else []
        self.store.replace(records)
        self._pending.clear()
        return len(records)

    def on_command_started(self, call_id: str, command: str) -> None:
        """Remember the command text for a call id."""
        self._pending[call_id] = command

    def on_command_completed(
        self,
        call_id: str,
        output: Iterable[OutputSegment] = (),
        truncated: bool = False,
        is_error: bool = False,
        command: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        output_chars: Optional[int] = None
    ) -> BashRecord:
        """Build, append and persist the record for a finished call.

        If no start event was seen for call_id (e.g. after a restart),
        the command carried by the completion is used, or "<unknown>".
        A known output size can be passed as output_chars instead of the
        segments themselves.

        Returns:
            The appended record
        """
        pending = self._pending.pop(call_id, None)
        if pending is None:
            logger.warning("Completion for unknown call %s", call_id)
            pending = command if command is not None else UNKNOWN_COMMAND

        record = BashRecord(
            timestamp=timestamp or datetime.now(timezone.utc),
            command=pending,
            output_chars=output_chars if output_chars is not None else count_output_chars(output),
            truncated=bool(truncated),
            is_error=bool(is_error)
        )
        snapshot = self.store.append(record)
        logger.debug("Recorded %r (%d chars)", record.command, record.output_chars)

        if self.repository is not None:
            self.repository.save_snapshot(snapshot)
        return record

    def handle_event(self, event: Union[CommandStarted, CommandCompleted]) -> Optional[BashRecord]:
        """Dispatch a tagged event to the matching callback."""
        if isinstance(event, CommandStarted):
            self.on_command_started(event.call_id, event.command)
            return None
        if isinstance(event, CommandCompleted):
            return self.on_command_completed(
                event.call_id,
                event.output,
                truncated=event.truncated,
                is_error=event.is_error,
                command=event.command
            )
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def reset(self) -> int:
        """Clear all records and persist the empty sequence.

        Returns:
            Number of records that were cleared
        """
        count = self.store.clear()
        if self.repository is not None:
            self.repository.save_snapshot(())
        logger.debug("Cleared %d records", count)
        return count
