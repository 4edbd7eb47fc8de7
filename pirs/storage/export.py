"""
JSON export of recorded commands.

Produces a standalone snapshot file with summary totals and the full
record sequence.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from pirs.core.aggregation import total_chars, total_tokens
from .models import BashRecord

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_DIR = ".pi"


def build_export_payload(
    records: Sequence[BashRecord],
    exported_at: Optional[datetime] = None
) -> Dict[str, Any]:
    """Build the serializable export snapshot.

    Args:
        records: Records to export, in arrival order
        exported_at: Export time (defaults to now, UTC)

    Returns:
        Dictionary with export timestamp, summary totals and records
    """
    exported_at = exported_at or datetime.now(timezone.utc)
    return {
        "exported": exported_at.isoformat(),
        "summary": {
            "totalCommands": len(records),
            "totalTokens": total_tokens(records),
            "totalChars": total_chars(records),
        },
        "records": [r.to_dict() for r in records],
    }


def export_records(
    records: Sequence[BashRecord],
    directory: str = DEFAULT_EXPORT_DIR,
    exported_at: Optional[datetime] = None
) -> Path:
    """Write records to <directory>/pirs-<epoch-ms>.json.

    Args:
        records: Records to export
        directory: Target directory, created if missing
        exported_at: Export time (defaults to now, UTC)

    Returns:
        Path of the written file
    """
    exported_at = exported_at or datetime.now(timezone.utc)
    payload = build_export_payload(records, exported_at)

    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"pirs-{int(exported_at.timestamp() * 1000)}.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.debug("Exported %d records to %s", len(records), path)
    return path
