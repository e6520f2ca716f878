"""
Messages exchanged between the orchestrator and an execution unit.

The field names are part of the wire contract shared by process units and
MPI ranks:

    request   {"command": "sort", "payload": [...], "segmentId": id}
    success   {"status": "sorted", "payload": [...], "segmentId": id}
    failure   {"status": "error", "error": "...", "segmentId": id}
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .errors import ProtocolMismatch, UnitRuntimeError
from .segmenter import Segment

COMMAND_SORT = "sort"
STATUS_SORTED = "sorted"
STATUS_ERROR = "error"

Message = Dict[str, Any]
SortFn = Callable[[Iterable[float]], List[float]]


def build_request(segment: Segment) -> Message:
    return {"command": COMMAND_SORT, "payload": list(segment.values), "segmentId": segment.segment_id}


def handle_request(request: Mapping[str, Any], sort_fn: SortFn) -> Message:
    """Unit side: run *sort_fn* on the request payload and build the reply."""
    if request.get("command") != COMMAND_SORT:
        raise ValueError(f"unknown command {request.get('command')!r}")
    return {
        "status": STATUS_SORTED,
        "payload": list(sort_fn(request["payload"])),
        "segmentId": request["segmentId"],
    }


def error_response(request: Optional[Mapping[str, Any]], exc: BaseException) -> Message:
    segment_id = request.get("segmentId") if isinstance(request, Mapping) else None
    return {"status": STATUS_ERROR, "error": f"{type(exc).__name__}: {exc}", "segmentId": segment_id}


def check_response(
    request: Mapping[str, Any],
    response: Any,
    completed: Mapping[int, Any],
) -> List[float]:
    """
    Orchestrator side: validate *response* against *request* and return its payload.

    *completed* holds the segment ids already answered in this call; an
    answer for one of them is a duplicate.
    """
    expected = request["segmentId"]
    if not isinstance(response, Mapping):
        raise ProtocolMismatch(f"segment {expected}: malformed response {response!r}", segment_id=expected)

    status = response.get("status")
    if status == STATUS_ERROR:
        remote = response.get("error")
        raise UnitRuntimeError(f"segment {expected}: unit failed: {remote}", remote=remote, segment_id=expected)
    if status != STATUS_SORTED:
        raise ProtocolMismatch(f"segment {expected}: unexpected status {status!r}", segment_id=expected)

    got = response.get("segmentId")
    if got != expected:
        raise ProtocolMismatch(f"response for segment {got!r} does not match request {expected}", segment_id=expected)
    if got in completed:
        raise ProtocolMismatch(f"duplicate response for segment {got}", segment_id=expected)

    payload = response.get("payload")
    if not isinstance(payload, list) or len(payload) != len(request["payload"]):
        raise ProtocolMismatch(f"segment {expected}: payload does not match request size", segment_id=expected)
    return payload
