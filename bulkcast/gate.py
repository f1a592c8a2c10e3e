"""Block-depth gate: turns block markers into engine block signals.

Nested blocks collapse into one logical block spanning the outermost pair
of markers. Only the 0 -> 1 transition starts a block and only 1 -> 0
finishes it. Markers are consumed here and never reach the engine as
commands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable

from .errors import ConfigError, UnbalancedBlockError

if TYPE_CHECKING:
    from .engine import BatchingEngine
    from .models import Command

logger = logging.getLogger(__name__)


class UnmatchedClosePolicy(Enum):
    """How the gate treats a close marker with no open block."""

    IGNORE = "ignore"
    ERROR = "error"
    LITERAL = "literal"


@dataclass(frozen=True)
class BlockMarkers:
    """The literal texts that open and close a block."""

    open: str = "{"
    close: str = "}"

    def __post_init__(self) -> None:
        if not self.open or not self.close:
            raise ConfigError("Block markers must be non-empty")
        if self.open == self.close:
            raise ConfigError(
                f"Block open and close markers must differ, both are {self.open!r}"
            )


DEFAULT_MARKERS = BlockMarkers()


class BlockDepthGate:
    """Stateful filter in front of a BatchingEngine.

    Args:
        engine: The engine that receives commands and block signals.
        markers: Marker texts; defaults to ``{`` and ``}``.
        unmatched_close: Policy for a close marker at depth zero.
    """

    def __init__(
        self,
        engine: BatchingEngine,
        *,
        markers: BlockMarkers = DEFAULT_MARKERS,
        unmatched_close: UnmatchedClosePolicy = UnmatchedClosePolicy.IGNORE,
    ) -> None:
        self._engine = engine
        self._markers = markers
        self._unmatched_close = unmatched_close
        self._depth = 0

    @property
    def engine(self) -> BatchingEngine:
        return self._engine

    @property
    def markers(self) -> BlockMarkers:
        return self._markers

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def in_block(self) -> bool:
        return self._depth > 0

    def handle(self, command: Command) -> None:
        """Route one command: block marker or ordinary command.

        Raises:
            UnbalancedBlockError: On an unmatched close marker under the
                ERROR policy.
        """
        if command.text == self._markers.open:
            self._depth += 1
            if self._depth == 1:
                self._engine.start_block()
        elif command.text == self._markers.close:
            self._handle_close(command)
        else:
            self._engine.process_command(command)

    def feed(self, commands: Iterable[Command]) -> None:
        """Handle every command of ``commands`` in order."""
        for command in commands:
            self.handle(command)

    def close(self) -> None:
        """Tear down the engine behind the gate."""
        if self._depth > 0:
            logger.warning(
                "block_unterminated_at_close",
                extra={"depth": self._depth},
            )
        self._engine.close()

    def __enter__(self) -> BlockDepthGate:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _handle_close(self, command: Command) -> None:
        if self._depth == 0:
            if self._unmatched_close is UnmatchedClosePolicy.ERROR:
                raise UnbalancedBlockError(command.text)
            if self._unmatched_close is UnmatchedClosePolicy.LITERAL:
                self._engine.process_command(command)
                return
            logger.warning(
                "unmatched_block_close_ignored",
                extra={"marker": command.text},
            )
            return

        self._depth -= 1
        if self._depth == 0:
            self._engine.finish_block()
