"""Batching engine that groups commands into bulks and fans them out to sinks.

The engine owns the pending bulk and the list of subscribed sinks. Every
change to the pending bulk is pushed to each sink as an immutable snapshot
(``update``); when a bulk closes, each sink is asked to ``render`` what it
last received. Sinks are notified sequentially in registration order.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from .errors import ConfigError, EngineClosedError

if TYPE_CHECKING:
    from .models import Batch, Command
    from .protocol import Sink

logger = logging.getLogger(__name__)


class UnterminatedBlockPolicy(Enum):
    """What teardown does with commands from a block that never closed."""

    DROP = "drop"
    FLUSH = "flush"


def validate_bulk_size(bulk_size: object) -> int:
    """Return ``bulk_size`` if it is a positive integer.

    Raises:
        ConfigError: If the value is not an int or is not positive.
    """
    if isinstance(bulk_size, bool) or not isinstance(bulk_size, int):
        raise ConfigError(f"Bulk size must be an integer, got {bulk_size!r}")
    if bulk_size <= 0:
        raise ConfigError(f"Bulk size must be positive, got {bulk_size}")
    return bulk_size


class BatchingEngine:
    """Accumulates commands and closes bulks by size or by block boundaries.

    A bulk closes when the pending bulk reaches ``bulk_size`` (unless a
    block is open), when a block starts, when a block finishes, and once
    more at teardown. Empty bulks are never rendered.

    Example:
        with BatchingEngine(3) as engine:
            engine.subscribe(console_sink)
            engine.subscribe(file_sink)
            engine.process_command(Command.now("cmd1"))
    """

    def __init__(
        self,
        bulk_size: int,
        *,
        unterminated_block: UnterminatedBlockPolicy = UnterminatedBlockPolicy.DROP,
    ) -> None:
        """Initialize the engine.

        Args:
            bulk_size: Number of commands that closes a bulk outside a block.
            unterminated_block: Teardown policy for a block left open.

        Raises:
            ConfigError: If bulk_size is not a positive integer.
        """
        self._bulk_size = validate_bulk_size(bulk_size)
        self._unterminated_block = unterminated_block
        self._commands: list[Command] = []
        self._subscribers: list[Sink] = []
        self._block_forced = False
        self._closed = False
        self._bulks_closed = 0
        self._sink_failures = 0

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def bulk_size(self) -> int:
        return self._bulk_size

    @property
    def block_forced(self) -> bool:
        """True while a block suppresses size-triggered closure."""
        return self._block_forced

    @property
    def pending(self) -> Batch:
        """Snapshot of the commands accumulated so far."""
        return tuple(self._commands)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def bulks_closed(self) -> int:
        """Number of non-empty bulks handed to sinks for rendering."""
        return self._bulks_closed

    @property
    def sink_failures(self) -> int:
        """Number of sink exceptions that were isolated and logged."""
        return self._sink_failures

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, sink: Sink | None) -> None:
        """Subscribe a sink to receive snapshots and render calls.

        ``None`` is ignored. The same sink may be subscribed more than once;
        each entry is notified independently.
        """
        if sink is None:
            return
        self._subscribers.append(sink)
        logger.debug(
            "sink_subscribed",
            extra={
                "sink_type": type(sink).__name__,
                "total_subscribers": len(self._subscribers),
            },
        )

    def unsubscribe(self, sink: Sink | None) -> None:
        """Remove every entry for ``sink``. Unknown sinks are ignored."""
        if sink is None:
            return
        remaining = [s for s in self._subscribers if s is not sink]
        if len(remaining) == len(self._subscribers):
            return
        self._subscribers = remaining
        logger.debug(
            "sink_unsubscribed",
            extra={
                "sink_type": type(sink).__name__,
                "total_subscribers": len(self._subscribers),
            },
        )

    def notify(self) -> None:
        """Push a snapshot of the pending bulk to every subscriber."""
        snapshot = tuple(self._commands)
        for sink in list(self._subscribers):
            try:
                sink.update(snapshot)
            except Exception:
                self._sink_failures += 1
                logger.exception(
                    "sink_update_failed",
                    extra={
                        "sink_type": type(sink).__name__,
                        "batch_size": len(snapshot),
                    },
                )

    # ------------------------------------------------------------------
    # Command processing
    # ------------------------------------------------------------------

    def process_command(self, command: Command) -> None:
        """Append a command and close the bulk if it reached the size limit.

        Raises:
            EngineClosedError: If the engine has already been closed.
        """
        self._check_open()
        self._commands.append(command)
        self.notify()

        if not self._block_forced and len(self._commands) >= self._bulk_size:
            self._dump_batch(reason="size")

    def start_block(self) -> None:
        """Flush what came before the block and suppress size closure."""
        self._check_open()
        self._block_forced = True
        self._dump_batch(reason="block_start")

    def finish_block(self) -> None:
        """Flush everything accumulated inside the block."""
        self._check_open()
        self._block_forced = False
        self._dump_batch(reason="block_finish")

    def close(self) -> None:
        """Flush the trailing bulk and unsubscribe every sink.

        A trailing bulk accumulated inside an unterminated block is
        dropped or flushed according to the engine's policy. Calling
        close() again does nothing.
        """
        if self._closed:
            return

        if not self._block_forced:
            self._dump_batch(reason="teardown")
        elif self._unterminated_block is UnterminatedBlockPolicy.FLUSH:
            self._dump_batch(reason="unterminated_block")
        else:
            if self._commands:
                logger.warning(
                    "unterminated_block_dropped",
                    extra={"dropped_commands": len(self._commands)},
                )
            self._commands.clear()

        for sink in list(self._subscribers):
            self.unsubscribe(sink)
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise EngineClosedError("Engine is closed")

    def __enter__(self) -> BatchingEngine:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Closure
    # ------------------------------------------------------------------

    def _dump_batch(self, reason: str) -> None:
        # Empty closures are suppressed entirely.
        if not self._commands:
            return

        self._bulks_closed += 1
        logger.debug(
            "bulk_closed",
            extra={
                "reason": reason,
                "batch_size": len(self._commands),
                "subscriber_count": len(self._subscribers),
            },
        )
        for sink in list(self._subscribers):
            self._render(sink)
        self._clear_batch()

    def _clear_batch(self) -> None:
        self._commands.clear()
        self.notify()

    def _render(self, sink: Sink) -> None:
        try:
            sink.render()
        except Exception:
            self._sink_failures += 1
            logger.exception(
                "sink_render_failed",
                extra={"sink_type": type(sink).__name__},
            )
