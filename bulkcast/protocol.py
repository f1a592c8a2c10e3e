"""Sink protocol for bulk delivery.

This module defines the Sink protocol that every bulk consumer implements.
Delivery is two-phase: the engine pushes each live snapshot through
``update()`` and asks for output through ``render()`` when a bulk closes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import Batch


@runtime_checkable
class Sink(Protocol):
    """Protocol for bulk sinks.

    Sinks are responsible for:
    1. Keeping their own copy of the latest snapshot via update()
    2. Producing external output from that copy via render()
    """

    def update(self, batch: Batch) -> None:
        """Receive the latest snapshot of the pending bulk.

        Called after every change to the pending bulk, including the
        clear that follows a closure (an empty batch). Implementations
        must return quickly and must not mutate ``batch``.

        Args:
            batch: Immutable snapshot of the pending bulk.
        """
        ...

    def render(self) -> None:
        """Produce output for the most recently received snapshot.

        Called once per closed, non-empty bulk. Implementations must
        tolerate being called for content they have already rendered.
        """
        ...
