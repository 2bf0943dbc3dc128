import logging
import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from hfloadgen.client import CallError
from hfloadgen.collector import CallResult, StatusCode
from hfloadgen.data import DataProvider
from hfloadgen.executor import ConstantExecutor, RampingExecutor
from hfloadgen.models import TestPhase

TICK = 0.02


class FixedData(DataProvider):
    def get_data(self):
        return b"payload"


class FakeClient:
    def __init__(self, fail=False):
        self.fail = fail
        self.requests = []
        self._lock = threading.Lock()

    def schedule_call(self, request):
        with self._lock:
            self.requests.append(request)
        result = CallResult(
            timestamp=datetime.now(timezone.utc),
            function_id=request.function_id,
            latency=timedelta(0),
        )
        if self.fail:
            result.status = StatusCode.UNAVAILABLE
            result.error = "down"
            raise CallError("down", StatusCode.UNAVAILABLE, result)
        return result


class ListCollector:
    def __init__(self):
        self.results = []
        self._lock = threading.Lock()

    def collect(self, result):
        with self._lock:
            self.results.append(result)


def make_phase(kind, duration, start_rps, end_rps=0, step=0):
    return TestPhase(
        name="p",
        type=kind,
        duration=timedelta(seconds=duration),
        start_rps=start_rps,
        end_rps=end_rps,
        step=step,
        function_id="fn-1",
    )


def test_constant_executor_fires_rps_per_tick():
    client, collector = FakeClient(), ListCollector()
    executor = ConstantExecutor(client, collector, FixedData(), tick=TICK)

    executor.execute(make_phase("constant", 0.15, 3))

    assert len(client.requests) > 0
    assert len(client.requests) % 3 == 0
    assert len(collector.results) == len(client.requests)
    assert all(r.function_id == "fn-1" and r.data == b"payload" for r in client.requests)


def test_constant_executor_collects_failed_calls():
    client, collector = FakeClient(fail=True), ListCollector()
    executor = ConstantExecutor(client, collector, FixedData(), tick=TICK)

    executor.execute(make_phase("constant", 0.1, 2))

    assert len(collector.results) == len(client.requests) > 0
    assert all(r.status is StatusCode.UNAVAILABLE and r.error == "down" for r in collector.results)


def test_constant_executor_stopped_before_start():
    client, collector = FakeClient(), ListCollector()
    stop = threading.Event()
    stop.set()

    ConstantExecutor(client, collector, FixedData(), tick=TICK).execute(make_phase("constant", 5, 3), stop)

    assert client.requests == []
    assert collector.results == []


def test_constant_executor_returns_when_stopped():
    client, collector = FakeClient(), ListCollector()
    stop = threading.Event()
    threading.Timer(0.1, stop.set).start()

    began = time.monotonic()
    ConstantExecutor(client, collector, FixedData(), tick=TICK).execute(make_phase("constant", 30, 1), stop)

    assert time.monotonic() - began < 10
    assert len(collector.results) == len(client.requests)


def test_ramping_executor_ramps_up_to_end():
    client, collector = FakeClient(), ListCollector()
    executor = RampingExecutor(client, collector, FixedData(), tick=TICK)

    executor.execute(make_phase("variable", 0.17, 1, end_rps=5, step=2))

    # per tick: 1, 3, 5, 5, ...
    assert len(client.requests) in {1, 4, 9, 14, 19, 24, 29, 34, 39}
    assert len(collector.results) == len(client.requests)


def test_ramping_executor_zero_start_becomes_one(caplog):
    client, collector = FakeClient(), ListCollector()
    executor = RampingExecutor(client, collector, FixedData(), logging.getLogger("ramp-test"), TICK)

    with caplog.at_level(logging.WARNING, logger="ramp-test"):
        executor.execute(make_phase("variable", 0.1, 0, end_rps=1, step=1))

    assert "Start RPS is 0, setting to 1" in caplog.text
    assert len(client.requests) >= 1


def test_ramping_executor_negative_start_never_calls():
    client, collector = FakeClient(), ListCollector()
    executor = RampingExecutor(client, collector, FixedData(), tick=TICK)

    executor.execute(make_phase("variable", 0.1, -2, end_rps=5, step=1))

    assert client.requests == []
    assert collector.results == []


def test_ramping_executor_stopped_before_start():
    client, collector = FakeClient(), ListCollector()
    stop = threading.Event()
    stop.set()

    RampingExecutor(client, collector, FixedData(), tick=TICK).execute(
        make_phase("variable", 5, 1, end_rps=10, step=1), stop
    )

    assert client.requests == []


def test_executor_requires_data_provider():
    with pytest.raises(ValueError, match="data provider"):
        ConstantExecutor(FakeClient(), ListCollector(), None)


def test_executor_requires_positive_tick():
    with pytest.raises(ValueError, match="tick"):
        RampingExecutor(FakeClient(), ListCollector(), FixedData(), tick=0)