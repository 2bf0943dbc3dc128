"""Thread-safe CSV recording of call results."""

from __future__ import annotations

import csv
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum
from pathlib import Path

CSV_HEADERS = (
    "timestamp", "function_id", "latency_ms", "status", "error",
    "request_size_bytes", "response_size_bytes", "call_queued_timestamp",
    "got_response_timestamp", "instance_id", "leaf_got_request_timestamp",
    "leaf_scheduled_call_timestamp", "function_processing_time_ns",
)


class StatusCode(IntEnum):
    """gRPC status codes."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16

    @property
    def label(self) -> str:
        """The conventional CamelCase name of the code."""
        if self is StatusCode.OK:
            return "OK"
        if self is StatusCode.CANCELLED:
            return "Canceled"
        return "".join(part.capitalize() for part in self.name.split("_"))

    def __str__(self) -> str:
        return self.label


@dataclass
class CallResult:
    """Outcome and timing of one scheduled call."""

    timestamp: datetime
    function_id: str
    latency: timedelta
    status: StatusCode = StatusCode.OK
    error: str = ""
    request_size: int = 0
    response_size: int = 0
    call_queued_timestamp: str = ""
    got_response_timestamp: str = ""
    instance_id: str = ""
    leaf_got_request_timestamp: str = ""
    leaf_scheduled_call_timestamp: str = ""
    function_processing_time: str = ""


def _rfc3339(moment: datetime) -> str:
    moment = moment if moment.tzinfo else moment.astimezone()
    text = moment.replace(microsecond=0).isoformat()
    return text[:-6] + "Z" if moment.utcoffset() == timedelta(0) else text


class Collector:
    """Writes call results as CSV rows; safe to use from many threads."""

    def __init__(self, path: str | Path = "results.csv") -> None:
        self._file = open(path, "w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._file, lineterminator="\n")
        self._lock = threading.Lock()
        self._writer.writerow(CSV_HEADERS)
        self._file.flush()

    def collect(self, result: CallResult) -> None:
        """Append one result row."""
        row = [
            _rfc3339(result.timestamp),
            result.function_id,
            (result.latency // timedelta(microseconds=1)) * 1000,
            str(result.status),
            result.error,
            result.request_size,
            result.response_size,
            result.call_queued_timestamp,
            result.got_response_timestamp,
            result.instance_id,
            result.leaf_got_request_timestamp,
            result.leaf_scheduled_call_timestamp,
            result.function_processing_time,
        ]
        with self._lock:
            self._writer.writerow(row)

    def flush(self) -> None:
        """Push buffered rows to the file."""
        with self._lock:
            if not self._file.closed:
                self._file.flush()

    def run_flusher(self, stop: threading.Event, interval: float = 1.0) -> None:
        """Flush every ``interval`` seconds until ``stop`` is set."""
        while not stop.wait(interval):
            self.flush()

    def close(self) -> None:
        """Flush remaining rows and close the file."""
        with self._lock:
            self._file.close()

    def __enter__(self) -> Collector:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()