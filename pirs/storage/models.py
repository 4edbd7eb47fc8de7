"""
Data models for storage layer.

Defines the command record and its serialized form.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

from pirs.core.token_counter import estimate_tokens


@dataclass(frozen=True)
class BashRecord:
    """Immutable record of one completed command execution.

    Records are created once per completed call and never modified.
    The token estimate is derived from output_chars on every access.
    """
    timestamp: datetime
    command: str
    output_chars: int
    truncated: bool = False
    is_error: bool = False

    def __post_init__(self):
        """Validate output size."""
        if self.output_chars < 0:
            raise ValueError("output_chars cannot be negative")

    @property
    def estimated_tokens(self) -> int:
        """Approximate token count of the command output."""
        return estimate_tokens(self.output_chars)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the session log / export format."""
        return {
            "timestamp": int(self.timestamp.timestamp() * 1000),
            "command": self.command,
            "outputChars": self.output_chars,
            "estimatedTokens": self.estimated_tokens,
            "truncated": self.truncated,
            "isError": self.is_error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BashRecord":
        """Rebuild a record from its serialized form.

        A stored estimatedTokens value is ignored and recomputed.

        Raises:
            ValueError: If required fields are missing
        """
        for key in ("timestamp", "command", "outputChars"):
            if key not in data:
                raise ValueError(f"Record missing required field '{key}'")
        return cls(
            timestamp=datetime.fromtimestamp(data["timestamp"] / 1000, tz=timezone.utc),
            command=data["command"],
            output_chars=int(data["outputChars"]),
            truncated=bool(data.get("truncated", False)),
            is_error=bool(data.get("isError", False)),
        )
