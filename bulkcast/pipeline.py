"""Wire a gate, an engine and the configured sinks together."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, TextIO

from .engine import BatchingEngine
from .gate import BlockDepthGate
from .reader import read_commands
from .sinks import ConsoleSink, FileSink

if TYPE_CHECKING:
    from .config import BulkConfig
    from .models import Command

logger = logging.getLogger(__name__)


def build_pipeline(config: BulkConfig, *, stdout: TextIO | None = None) -> BlockDepthGate:
    """Build a gate in front of an engine with the sinks from ``config``.

    Args:
        config: Validated run configuration.
        stdout: Stream for the console sink (default: sys.stdout).

    Returns:
        The gate; close it to flush and tear down the engine.
    """
    config.validate()
    engine = BatchingEngine(
        config.bulk_size,
        unterminated_block=config.unterminated_block,
    )
    if config.console:
        ConsoleSink(stdout, engine=engine)
    if config.log_dir is not None:
        FileSink(config.log_dir, engine=engine)

    logger.debug(
        "pipeline_built",
        extra={
            "bulk_size": config.bulk_size,
            "subscriber_count": engine.subscriber_count,
        },
    )
    return BlockDepthGate(
        engine,
        markers=config.markers(),
        unmatched_close=config.unmatched_close,
    )


def run_commands(gate: BlockDepthGate, commands: Iterable[Command]) -> int:
    """Feed ``commands`` through ``gate`` and close it.

    The gate is closed even if feeding fails, so the engine always tears
    down. Returns the number of bulks delivered.
    """
    try:
        gate.feed(commands)
    finally:
        gate.close()
    return gate.engine.bulks_closed


def run(config: BulkConfig, stream: TextIO, *, stdout: TextIO | None = None) -> int:
    """Batch every line of ``stream`` and deliver the bulks.

    Returns:
        Number of bulks delivered.
    """
    gate = build_pipeline(config, stdout=stdout)
    bulks = run_commands(gate, read_commands(stream))
    logger.info(
        "run_completed",
        extra={
            "bulks_delivered": bulks,
            "sink_failures": gate.engine.sink_failures,
        },
    )
    return bulks
