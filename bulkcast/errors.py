"""Exception hierarchy for bulkcast."""

from __future__ import annotations


class BulkcastError(Exception):
    """Base class for all bulkcast errors."""


class ConfigError(BulkcastError):
    """Invalid configuration, raised before the engine starts."""


class UnbalancedBlockError(BulkcastError):
    """A close marker arrived with no open block.

    Only raised when the gate runs with ``UnmatchedClosePolicy.ERROR``.
    """

    def __init__(self, text: str) -> None:
        super().__init__(f"Unmatched block close marker: {text!r}")
        self.text = text


class EngineClosedError(BulkcastError):
    """A command was sent to an engine that has already been torn down."""
