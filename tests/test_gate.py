"""Tests for the BlockDepthGate class."""

from __future__ import annotations

import logging

import pytest

from bulkcast.engine import BatchingEngine
from bulkcast.errors import ConfigError, UnbalancedBlockError
from bulkcast.gate import BlockDepthGate, BlockMarkers, UnmatchedClosePolicy
from bulkcast.models import Command
from bulkcast.sinks import RecordingSink


class SpyEngine:
    """Records the calls the gate makes on its engine."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str | None]] = []
        self.closed = False

    def process_command(self, command: Command) -> None:
        self.calls.append(("process_command", command.text))

    def start_block(self) -> None:
        self.calls.append(("start_block", None))

    def finish_block(self) -> None:
        self.calls.append(("finish_block", None))

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def spy() -> SpyEngine:
    return SpyEngine()


# ---------------------------------------------------------------------------
# Depth transitions
# ---------------------------------------------------------------------------


class TestDepthTransitions:
    """Only outermost transitions reach the engine."""

    def test_ordinary_commands_forwarded_unchanged(self, spy: SpyEngine, make_commands) -> None:
        gate = BlockDepthGate(spy)  # type: ignore[arg-type]
        (command,) = make_commands("cmd1")

        gate.handle(command)

        assert spy.calls == [("process_command", "cmd1")]

    def test_single_block(self, spy: SpyEngine, make_commands) -> None:
        gate = BlockDepthGate(spy)  # type: ignore[arg-type]

        gate.feed(make_commands("{", "a", "}"))

        assert spy.calls == [
            ("start_block", None),
            ("process_command", "a"),
            ("finish_block", None),
        ]
        assert gate.depth == 0

    def test_nested_blocks_are_silent(self, spy: SpyEngine, make_commands) -> None:
        gate = BlockDepthGate(spy)  # type: ignore[arg-type]

        gate.feed(make_commands("{", "{", "{", "a", "}", "b", "}", "}"))

        assert spy.calls == [
            ("start_block", None),
            ("process_command", "a"),
            ("process_command", "b"),
            ("finish_block", None),
        ]

    def test_depth_tracking(self, spy: SpyEngine, make_commands) -> None:
        gate = BlockDepthGate(spy)  # type: ignore[arg-type]
        open_, inner, close = make_commands("{", "{", "}")

        gate.handle(open_)
        assert gate.depth == 1
        assert gate.in_block is True
        gate.handle(inner)
        assert gate.depth == 2
        gate.handle(close)
        assert gate.depth == 1

    def test_markers_not_forwarded(self, spy: SpyEngine, make_commands) -> None:
        gate = BlockDepthGate(spy)  # type: ignore[arg-type]

        gate.feed(make_commands("{", "}", "{", "}"))

        assert all(name != "process_command" for name, _ in spy.calls)

    def test_marker_match_is_exact(self, spy: SpyEngine, make_commands) -> None:
        """Text that merely contains a marker is an ordinary command."""
        gate = BlockDepthGate(spy)  # type: ignore[arg-type]

        gate.feed(make_commands(" {", "{}", "} "))

        assert spy.calls == [
            ("process_command", " {"),
            ("process_command", "{}"),
            ("process_command", "} "),
        ]


# ---------------------------------------------------------------------------
# Unmatched close marker
# ---------------------------------------------------------------------------


class TestUnmatchedClose:
    """Close marker with no open block."""

    def test_ignore_clamps_depth(self, spy: SpyEngine, make_commands, caplog) -> None:
        gate = BlockDepthGate(spy)  # type: ignore[arg-type]

        with caplog.at_level(logging.WARNING, logger="bulkcast.gate"):
            gate.feed(make_commands("}", "}", "{", "a", "}"))

        assert gate.depth == 0
        assert spy.calls == [
            ("start_block", None),
            ("process_command", "a"),
            ("finish_block", None),
        ]
        assert "unmatched_block_close_ignored" in caplog.text

    def test_error_policy_raises(self, spy: SpyEngine, make_commands) -> None:
        gate = BlockDepthGate(
            spy,  # type: ignore[arg-type]
            unmatched_close=UnmatchedClosePolicy.ERROR,
        )

        with pytest.raises(UnbalancedBlockError) as exc_info:
            gate.handle(make_commands("}")[0])

        assert exc_info.value.text == "}"
        assert gate.depth == 0

    def test_literal_policy_forwards_marker(self, spy: SpyEngine, make_commands) -> None:
        gate = BlockDepthGate(
            spy,  # type: ignore[arg-type]
            unmatched_close=UnmatchedClosePolicy.LITERAL,
        )

        gate.feed(make_commands("}", "{", "}"))

        assert spy.calls == [
            ("process_command", "}"),
            ("start_block", None),
            ("finish_block", None),
        ]

    def test_block_reopens_after_unmatched_close(self, make_commands) -> None:
        engine = BatchingEngine(2)
        sink = RecordingSink(engine=engine)
        gate = BlockDepthGate(engine)

        gate.feed(make_commands("}", "a", "b", "{", "c", "d", "e", "}"))

        assert sink.texts() == [["a", "b"], ["c", "d", "e"]]


# ---------------------------------------------------------------------------
# Custom markers
# ---------------------------------------------------------------------------


class TestBlockMarkers:
    """Tests for pluggable markers."""

    def test_custom_markers(self, spy: SpyEngine, make_commands) -> None:
        gate = BlockDepthGate(
            spy,  # type: ignore[arg-type]
            markers=BlockMarkers(open="BEGIN", close="END"),
        )

        gate.feed(make_commands("BEGIN", "{", "END"))

        assert spy.calls == [
            ("start_block", None),
            ("process_command", "{"),
            ("finish_block", None),
        ]

    def test_empty_marker_rejected(self) -> None:
        with pytest.raises(ConfigError):
            BlockMarkers(open="", close="}")

    def test_identical_markers_rejected(self) -> None:
        with pytest.raises(ConfigError):
            BlockMarkers(open="|", close="|")


# ---------------------------------------------------------------------------
# Teardown
# ---------------------------------------------------------------------------


class TestClose:
    """Tests for close() and the context manager."""

    def test_close_closes_engine(self, spy: SpyEngine) -> None:
        gate = BlockDepthGate(spy)  # type: ignore[arg-type]

        gate.close()

        assert spy.closed is True

    def test_close_warns_about_open_block(self, spy: SpyEngine, make_commands, caplog) -> None:
        gate = BlockDepthGate(spy)  # type: ignore[arg-type]
        gate.handle(make_commands("{")[0])

        with caplog.at_level(logging.WARNING, logger="bulkcast.gate"):
            gate.close()

        assert "block_unterminated_at_close" in caplog.text

    def test_context_manager(self, make_commands) -> None:
        engine = BatchingEngine(5)
        sink = RecordingSink(engine=engine)

        with BlockDepthGate(engine) as gate:
            gate.feed(make_commands("a", "b"))

        assert engine.closed is True
        assert sink.texts() == [["a", "b"]]
