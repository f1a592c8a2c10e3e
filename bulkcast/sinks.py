"""Reference sinks: console line, per-bulk log file, and in-memory recorder."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from .models import Batch, format_bulk

if TYPE_CHECKING:
    from .engine import BatchingEngine

logger = logging.getLogger(__name__)


def filename_for(batch: Batch) -> str:
    """Return ``bulk<unix-seconds>.log`` for the first command of ``batch``.

    Raises:
        ValueError: If batch is empty.
    """
    if not batch:
        raise ValueError("Cannot derive a file name from an empty bulk")
    return f"bulk{batch[0].unix_seconds}.log"


class _SnapshotSink:
    """Keeps a private copy of the latest snapshot pushed by the engine."""

    def __init__(self, engine: BatchingEngine | None = None) -> None:
        self._batch: Batch = ()
        if engine is not None:
            engine.subscribe(self)

    @property
    def batch(self) -> Batch:
        return self._batch

    def update(self, batch: Batch) -> None:
        self._batch = tuple(batch)


class ConsoleSink(_SnapshotSink):
    """Prints each bulk as ``bulk: a, b, c`` on its own line.

    Args:
        stream: Text stream to write to. Defaults to ``sys.stdout`` looked
            up at render time.
        engine: Optional engine to subscribe to immediately.
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        *,
        engine: BatchingEngine | None = None,
    ) -> None:
        self._stream = stream
        super().__init__(engine)

    def render(self) -> None:
        if not self._batch:
            return
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(format_bulk(self._batch) + "\n")
        stream.flush()


class FileSink(_SnapshotSink):
    """Writes each bulk to ``<directory>/bulk<unix-seconds>.log``.

    The seconds value comes from the first command in the bulk. A file
    with the same name is overwritten.
    """

    def __init__(
        self,
        directory: Path | str = ".",
        *,
        engine: BatchingEngine | None = None,
    ) -> None:
        self._directory = Path(directory)
        self._written: list[Path] = []
        super().__init__(engine)

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def written(self) -> list[Path]:
        """Paths written so far, in render order."""
        return list(self._written)

    def render(self) -> None:
        if not self._batch:
            return
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._directory / filename_for(self._batch)
        if path.exists():
            logger.warning("bulk_file_overwritten", extra={"path": str(path)})
        path.write_text(format_bulk(self._batch), encoding="utf-8")
        self._written.append(path)
        logger.debug(
            "bulk_file_written",
            extra={"path": str(path), "batch_size": len(self._batch)},
        )


class RecordingSink(_SnapshotSink):
    """Keeps every rendered bulk in memory."""

    def __init__(self, *, engine: BatchingEngine | None = None) -> None:
        self.bulks: list[Batch] = []
        self.updates: list[Batch] = []
        super().__init__(engine)

    def update(self, batch: Batch) -> None:
        super().update(batch)
        self.updates.append(self._batch)

    def render(self) -> None:
        if self._batch:
            self.bulks.append(self._batch)

    def texts(self) -> list[list[str]]:
        """Rendered bulks as lists of command texts."""
        return [[command.text for command in bulk] for bulk in self.bulks]
