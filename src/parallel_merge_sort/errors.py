"""
Failure kinds raised by the parallel sort engine.

Any of these is terminal for the sort call that raised it. The engine never
retries and never returns a partial result.
"""

from __future__ import annotations

from typing import Optional


class ParallelSortError(RuntimeError):
    """Base class for execution-unit failures."""

    def __init__(
        self,
        message: str,
        *,
        segment_id: Optional[int] = None,
        unit_count: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.segment_id = segment_id
        self.unit_count = unit_count


class UnitSpawnError(ParallelSortError):
    """An execution unit could not be started."""


class UnitRuntimeError(ParallelSortError):
    """An execution unit reported an explicit error."""

    def __init__(self, message: str, *, remote: Optional[str] = None, **context) -> None:
        super().__init__(message, **context)
        self.remote = remote


class UnitAbnormalExit(ParallelSortError):
    """An execution unit ended without sending a response."""

    def __init__(self, message: str, *, exitcode: Optional[int] = None, **context) -> None:
        super().__init__(message, **context)
        self.exitcode = exitcode


class ProtocolMismatch(ParallelSortError):
    """A response did not match any outstanding request."""
