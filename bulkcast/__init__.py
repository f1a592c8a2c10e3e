"""bulkcast: group a stream of commands into bulks and fan them out to sinks."""

from bulkcast.config import BulkConfig, load_config, parse_bulk_size
from bulkcast.engine import BatchingEngine, UnterminatedBlockPolicy
from bulkcast.errors import (
    BulkcastError,
    ConfigError,
    EngineClosedError,
    UnbalancedBlockError,
)
from bulkcast.gate import BlockDepthGate, BlockMarkers, UnmatchedClosePolicy
from bulkcast.models import Batch, Command, format_bulk, join_commands
from bulkcast.pipeline import build_pipeline, run, run_commands
from bulkcast.protocol import Sink
from bulkcast.reader import read_commands, read_file
from bulkcast.sinks import ConsoleSink, FileSink, RecordingSink, filename_for

__version__ = "0.1.0"

__all__ = [
    # Models module
    "Command",
    "Batch",
    "join_commands",
    "format_bulk",
    # Protocol module
    "Sink",
    # Engine module
    "BatchingEngine",
    "UnterminatedBlockPolicy",
    # Gate module
    "BlockDepthGate",
    "BlockMarkers",
    "UnmatchedClosePolicy",
    # Sinks module
    "ConsoleSink",
    "FileSink",
    "RecordingSink",
    "filename_for",
    # Reader module
    "read_commands",
    "read_file",
    # Config module
    "BulkConfig",
    "load_config",
    "parse_bulk_size",
    # Pipeline module
    "build_pipeline",
    "run",
    "run_commands",
    # Errors module
    "BulkcastError",
    "ConfigError",
    "EngineClosedError",
    "UnbalancedBlockError",
]
