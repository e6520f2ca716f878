"""
Process-per-segment dispatcher.

Every segment gets a freshly started process (an execution unit) and one
duplex pipe. The orchestrator sends a single sort request down the pipe and
waits for a single response. Units share no memory with the orchestrator or
with each other, so sorting needs no locks.

The blocking half of each exchange runs in a per-call thread pool and waits
on both the pipe and the process sentinel, so it wakes up whether the unit
answers or dies. The coroutine that owns the call only suspends itself.

On the first failure every other live unit is terminated before the error
propagates (cancel-all). Nothing from a failed call is ever returned.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import multiprocessing as mp
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from multiprocessing.connection import Connection, wait
from typing import Any, Dict, List, Optional, Sequence

from .config import DEFAULT_JOIN_TIMEOUT, DEFAULT_UNITS
from .errors import ParallelSortError, UnitAbnormalExit, UnitSpawnError
from .protocol import SortFn, build_request, check_response, error_response, handle_request
from .segmenter import Segment
from .sequential_merge import merge_sort

logger = logging.getLogger(__name__)


class UnitState(enum.Enum):
    CREATED = "created"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"
    FAILED = "failed"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class SortedSegment:
    segment_id: int
    values: List[float]


def _unit_main(conn: Connection, sort_fn: SortFn) -> None:
    """Unit process entry point: answer exactly one request, then exit."""
    request = None
    try:
        request = conn.recv()
        response = handle_request(request, sort_fn)
    except Exception as exc:
        response = error_response(request, exc)
    conn.send(response)
    conn.close()


class ExecutionUnit:
    """One worker process bound to one segment for the duration of one call."""

    def __init__(self, segment: Segment, ctx, sort_fn: SortFn) -> None:
        self.segment = segment
        self.request = build_request(segment)
        self.state = UnitState.CREATED
        self.outcome: Optional[UnitState] = None  # COMPLETED or FAILED once known

        self._conn, child_conn = ctx.Pipe(duplex=True)
        self._child_conn = child_conn
        self._started = False
        self.process = ctx.Process(
            target=_unit_main,
            args=(child_conn, sort_fn),
            name=f"sort-unit-{segment.segment_id}",
            daemon=True,
        )

    @property
    def segment_id(self) -> int:
        return self.segment.segment_id

    @property
    def exitcode(self) -> Optional[int]:
        return self.process.exitcode if self._started else None

    def start(self) -> None:
        try:
            self.process.start()
        except Exception as exc:
            self.finish(UnitState.FAILED)
            raise UnitSpawnError(
                f"could not start unit for segment {self.segment_id}: {exc}",
                segment_id=self.segment_id,
            ) from exc
        finally:
            # the child holds its own end now
            self._child_conn.close()
        self._started = True
        self.state = UnitState.DISPATCHED
        logger.debug("unit %s started (pid %s, %d values)", self.segment_id, self.process.pid, len(self.segment))

    def exchange(self) -> Any:
        """
        Send the request and block until a response arrives or the process ends.

        Runs in a worker thread. Returns the response, or ``None`` when the
        unit went away without answering.
        """
        try:
            self._conn.send(self.request)
            ready = wait([self._conn, self.process.sentinel])
            if self._conn in ready:
                return self._conn.recv()
        except (EOFError, OSError, ValueError):
            # pipe or process handle closed by teardown
            pass
        return None

    def finish(self, outcome: UnitState) -> None:
        if self.outcome is None:
            self.outcome = outcome

    def teardown(self, timeout: float = DEFAULT_JOIN_TIMEOUT) -> None:
        """Release the process and the pipe. Safe to call more than once."""
        if self.state is UnitState.TERMINATED:
            return
        if self._started:
            grace = timeout if self.outcome is UnitState.COMPLETED else 0
            self.process.join(grace)
            if self.process.is_alive():
                logger.warning("terminating unit %s", self.segment_id)
                self.process.terminate()
                self.process.join(timeout)
            if self.process.is_alive():
                self.process.kill()
                self.process.join()
            self.process.close()
        self._conn.close()
        self.finish(UnitState.FAILED)
        self.state = UnitState.TERMINATED


class Dispatcher:
    """Sorts segments concurrently, one fresh execution unit per segment."""

    def __init__(
        self,
        units: int = DEFAULT_UNITS,
        sort_fn: SortFn = merge_sort,
        mp_context=None,
        join_timeout: float = DEFAULT_JOIN_TIMEOUT,
    ) -> None:
        if units < 1:
            raise ValueError(f"units must be >= 1, got {units}")
        if mp_context is None or isinstance(mp_context, str):
            mp_context = mp.get_context(mp_context)
        self.units = units
        self.sort_fn = sort_fn
        self.join_timeout = join_timeout
        self._ctx = mp_context

    async def run(self, segments: Sequence[Segment]) -> List[SortedSegment]:
        """
        Sort every segment in its own unit and return the results in segment order.

        Raises a ``ParallelSortError`` subclass on the first unit failure.
        """
        if len(segments) > self.units:
            raise ValueError(f"{len(segments)} segments exceed the configured {self.units} units")
        if not segments:
            return []

        logger.debug("dispatching %d segments to %d units", len(segments), self.units)
        loop = asyncio.get_running_loop()
        # one thread per pending exchange plus one per teardown
        executor = ThreadPoolExecutor(max_workers=2 * len(segments), thread_name_prefix="sort-unit")
        units: List[ExecutionUnit] = []
        closing: Dict[int, asyncio.Future] = {}
        try:
            for segment in segments:
                unit = ExecutionUnit(segment, self._ctx, self.sort_fn)
                units.append(unit)
                unit.start()
            completed = await self._collect(loop, executor, units, closing)
            return [completed[s.segment_id] for s in segments]
        except ParallelSortError as exc:
            exc.unit_count = len(units)
            logger.warning("parallel sort failed: %s", exc)
            raise
        finally:
            for unit in units:
                if unit.segment_id not in closing:
                    closing[unit.segment_id] = loop.run_in_executor(executor, unit.teardown, self.join_timeout)
            for result in await asyncio.gather(*closing.values(), return_exceptions=True):
                if isinstance(result, Exception):
                    logger.warning("unit teardown failed: %s", result)
            executor.shutdown(wait=False)

    async def _collect(
        self,
        loop: asyncio.AbstractEventLoop,
        executor: ThreadPoolExecutor,
        units: Sequence[ExecutionUnit],
        closing: Dict[int, asyncio.Future],
    ) -> Dict[int, SortedSegment]:
        # only touched from the event loop thread
        completed: Dict[int, SortedSegment] = {}
        waiting = {loop.run_in_executor(executor, unit.exchange): unit for unit in units}

        while waiting:
            done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)
            for fut in done:
                unit = waiting.pop(fut)
                response = fut.result()
                if response is None:
                    # let the exit code settle without holding up the loop
                    await loop.run_in_executor(executor, unit.process.join, self.join_timeout)
                try:
                    payload = self._resolve(unit, response, completed)
                except ParallelSortError:
                    unit.finish(UnitState.FAILED)
                    raise
                unit.finish(UnitState.COMPLETED)
                completed[unit.segment_id] = SortedSegment(unit.segment_id, payload)
                # collected by run() once every unit has answered or one failed
                closing[unit.segment_id] = loop.run_in_executor(executor, unit.teardown, self.join_timeout)
        return completed

    def _resolve(self, unit: ExecutionUnit, response: Any, completed: Dict[int, SortedSegment]) -> List[float]:
        if response is None:
            raise UnitAbnormalExit(
                f"unit for segment {unit.segment_id} exited with code {unit.exitcode} without responding",
                exitcode=unit.exitcode,
                segment_id=unit.segment_id,
            )
        return check_response(unit.request, response, completed)
