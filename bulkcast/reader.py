"""Line-oriented input: turn a text stream into timestamped commands."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator, TextIO

from .models import Command

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_clock() -> datetime:
    return datetime.now(timezone.utc)


def _strip_terminator(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


def read_commands(stream: TextIO, *, clock: Clock | None = None) -> Iterator[Command]:
    """Yield one Command per line of ``stream``.

    Exactly one line terminator (LF or CRLF) is stripped; everything
    else, including surrounding whitespace and stray carriage returns, is
    kept. Each command is stamped when its line is read, so the generator
    must be consumed lazily for the timestamps to reflect arrival time.

    Args:
        stream: Text stream to read from.
        clock: Timestamp source; defaults to the current UTC time.
    """
    now = clock or _utc_clock
    count = 0
    for line in stream:
        count += 1
        yield Command(text=_strip_terminator(line), timestamp=now())
    logger.debug("input_exhausted", extra={"line_count": count})


def read_file(path: Path | str, *, clock: Clock | None = None) -> Iterator[Command]:
    """Yield commands from a UTF-8 text file."""
    with open(path, encoding="utf-8") as f:
        yield from read_commands(f, clock=clock)
