"""Data models for commands and bulks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

BULK_PREFIX = "bulk: "


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Command:
    """A single line of input together with the moment it was read.

    Commands are immutable; the engine and every sink hold their own
    references to the same values.
    """

    text: str
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def now(cls, text: str) -> Command:
        """Create a command stamped with the current UTC time."""
        return cls(text=text, timestamp=_utcnow())

    @property
    def unix_seconds(self) -> int:
        """Whole seconds since the epoch of the arrival timestamp."""
        return int(self.timestamp.timestamp())

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Command:
        """Deserialize from dictionary."""
        return cls(
            text=data["text"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


# Immutable snapshot of a pending bulk, in arrival order.
Batch = tuple[Command, ...]


def join_commands(batch: Iterable[Command]) -> str:
    """Join command texts with ``", "``."""
    return ", ".join(command.text for command in batch)


def format_bulk(batch: Iterable[Command]) -> str:
    """Render a bulk as a single ``bulk: a, b, c`` line (no newline)."""
    return BULK_PREFIX + join_commands(batch)
