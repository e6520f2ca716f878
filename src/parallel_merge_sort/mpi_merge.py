"""
MPI-based merge sort using mpi4py, with each rank acting as one execution unit.

Run with something like:
    mpiexec -n 4 python -m parallel_merge_sort.mpi_merge --n 100000 --verify
"""

from __future__ import annotations

import argparse
import logging
import time
from typing import Any, List, Optional, Sequence

from mpi4py import MPI

from .benchmark import generate_random_array
from .errors import ParallelSortError, ProtocolMismatch
from .merge_reducer import merge_all
from .protocol import Message, SortFn, build_request, check_response, error_response, handle_request
from .segmenter import split
from .sequential_merge import merge_sort
from .sorter import validate_values

logger = logging.getLogger(__name__)


def _answer(request: Optional[Message], sort_fn: SortFn) -> Optional[Message]:
    if request is None:
        return None  # idle rank
    try:
        return handle_request(request, sort_fn)
    except Exception as exc:
        return error_response(request, exc)


def _collect(requests: Sequence[Optional[Message]], responses: Sequence[Any]) -> List[List[float]]:
    completed: dict = {}
    for rank, (request, response) in enumerate(zip(requests, responses)):
        if request is None:
            if response is not None:
                raise ProtocolMismatch(f"rank {rank} answered without a request")
            continue
        completed[request["segmentId"]] = check_response(request, response, completed)
    return list(completed.values())

def mpi_merge_sort(
    data: Optional[Sequence[float]],
    comm: MPI.Comm = MPI.COMM_WORLD,
    sort_fn: SortFn = merge_sort,
) -> Optional[List[float]]:
    """
    Distributed merge sort: scatter requests → local sort → gather, check and merge on rank 0.

    Root validates and splits the input before anything is scattered. If that
    fails, every rank learns it through a broadcast flag, the other ranks
    return ``None`` and root re-raises.
    """
    rank = comm.Get_rank()
    size = comm.Get_size()

    requests: Optional[List[Optional[Message]]] = None
    failure: Optional[Exception] = None
    if rank == 0:
        try:
            segments = split(validate_values(data or []), size)
        except (TypeError, ValueError) as exc:
            failure = exc
        else:
            requests = [build_request(s) for s in segments]
            requests += [None] * (size - len(requests))
            logger.debug("scattering %d segments over %d ranks", len(segments), size)

    if comm.bcast(failure is not None, root=0):
        if failure is not None:
            raise failure
        return None

    request: Optional[Message] = comm.scatter(requests, root=0)
    gathered = comm.gather(_answer(request, sort_fn), root=0)
    if rank != 0:
        return None

    try:
        return merge_all(_collect(requests, gathered))
    except ParallelSortError as exc:
        exc.unit_count = size
        logger.warning("mpi sort failed: %s", exc)
        raise


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Merge sort with one MPI rank per segment")
    parser.add_argument("--n", type=int, default=100_000, help="Size of the random array generated on rank 0.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the generated array.")
    parser.add_argument("--verify", action="store_true", help="Compare the result with the sequential sort.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    comm = MPI.COMM_WORLD
    rank = comm.Get_rank()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format=f"[rank {rank}] %(name)s %(levelname)s: %(message)s")

    data = generate_random_array(args.n, args.seed) if rank == 0 else None

    comm.barrier()
    started = time.perf_counter()
    result = mpi_merge_sort(data, comm=comm)
    if rank != 0:
        return 0

    elapsed = time.perf_counter() - started
    print(f"{args.n:,} values over {comm.Get_size()} ranks: {elapsed:.3f} s")
    if args.verify:
        correct = result == merge_sort(data)
        print(f"Correctness check: {'PASS' if correct else 'FAIL'}")
        return 0 if correct else 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
