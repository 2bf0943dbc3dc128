"""Client for scheduling calls on the leaf and timing them."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from hfloadgen.collector import CallResult, StatusCode

logger = logging.getLogger(__name__)

_TRAILERS = {
    "call_queued_timestamp": "callQueuedTimestamp",
    "got_response_timestamp": "gotResponseTimestamp",
    "instance_id": "instanceId",
    "leaf_got_request_timestamp": "leafGotRequestTimestamp",
    "leaf_scheduled_call_timestamp": "leafScheduledCallTimestamp",
    "function_processing_time": "functionProcessingTime",
}


@dataclass
class ScheduleCallRequest:
    """A request to run a function once with the given payload."""

    function_id: str
    data: bytes = b""


class CallError(Exception):
    """A failed call; ``result`` holds the recorded outcome when known."""

    def __init__(self, message: str, status: StatusCode = StatusCode.UNKNOWN,
                 result: CallResult | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.result = result


def _text(value: Any) -> str:
    return value.decode("utf-8", errors="replace") if isinstance(value, bytes) else str(value)


def get_trailer_value(metadata: Any, key: str) -> str:
    """Return the first value for ``key`` (case-insensitive), or ``""`` if absent."""
    items = metadata.items() if isinstance(metadata, Mapping) else metadata
    for name, value in items:
        if name.lower() == key.lower():
            if isinstance(value, (str, bytes)):
                return _text(value)
            for first in value:
                return _text(first)
    logger.info("No trailer value found for key: %s", key)
    return ""


class LeafClient:
    """Schedules calls through ``call``, which returns the response data and trailers.

    ``call`` signals failure by raising; a ``CallError`` carries its status code,
    any other exception is reported as ``StatusCode.UNKNOWN``.
    """

    def __init__(self, call: Callable[[ScheduleCallRequest], tuple[bytes, Any]]) -> None:
        self._call = call

    def schedule_call(self, request: ScheduleCallRequest) -> CallResult:
        """Run one call and return its timed result; raise CallError on failure."""
        timestamp = datetime.now().astimezone()
        started = time.perf_counter()
        try:
            data, trailers = self._call(request)
        except Exception as exc:
            status = exc.status if isinstance(exc, CallError) else StatusCode.UNKNOWN
            result = CallResult(timestamp, request.function_id,
                                timedelta(seconds=time.perf_counter() - started),
                                status=status, error=str(exc))
            raise CallError(str(exc), status, result) from exc
        return CallResult(
            timestamp,
            request.function_id,
            timedelta(seconds=time.perf_counter() - started),
            response_size=len(data),
            **{name: get_trailer_value(trailers, key) for name, key in _TRAILERS.items()},
        )