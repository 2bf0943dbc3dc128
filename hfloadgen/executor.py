"""Executors that issue calls at a constant or ramping rate for one phase."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from typing import Any

from hfloadgen.client import CallError, ScheduleCallRequest
from hfloadgen.data import DataProvider
from hfloadgen.models import TestPhase


class _Executor:
    def __init__(self, client: Any, collector: Any, data_provider: DataProvider,
                 logger: logging.Logger | None = None, tick: float = 1.0) -> None:
        if data_provider is None:
            raise ValueError("a data provider is required")
        if tick <= 0:
            raise ValueError("tick must be positive")
        self.client = client
        self.collector = collector
        self.data_provider = data_provider
        self.logger = logger or logging.getLogger(__name__)
        self.tick = tick
        self._threads: list[threading.Thread] = []

    def _ticks(self, phase: TestPhase, stop: threading.Event) -> Iterator[None]:
        """Yield once per tick until the phase's duration ends or ``stop`` is set."""
        deadline = time.monotonic() + phase.duration.total_seconds()
        next_tick = time.monotonic() + self.tick
        while True:
            if stop.wait(max(min(next_tick, deadline) - time.monotonic(), 0.0)):
                return
            now = time.monotonic()
            if now >= deadline:
                return
            if now < next_tick:
                continue
            next_tick += self.tick
            if next_tick <= now:
                next_tick = now + self.tick
            yield

    def _fire(self, function_id: str, count: int) -> None:
        self._threads = [thread for thread in self._threads if thread.is_alive()]
        for _ in range(count):
            thread = threading.Thread(target=self._call, args=(function_id,), daemon=True)
            thread.start()
            self._threads.append(thread)

    def _call(self, function_id: str) -> None:
        request = ScheduleCallRequest(function_id, self.data_provider.get_data())
        try:
            result = self.client.schedule_call(request)
        except CallError as exc:
            result = exc.result
        if result is not None:
            self.collector.collect(result)

    def _wait_for_calls(self) -> None:
        for thread in self._threads:
            thread.join()
        self._threads = []


class ConstantExecutor(_Executor):
    """Issues ``start_rps`` calls on every tick for the phase's duration."""

    def __init__(self, client: Any, collector: Any, data_provider: DataProvider,
                 logger: logging.Logger | None = None, tick: float = 1.0) -> None:
        super().__init__(client, collector, data_provider, logger, tick)
        self.rps = 0

    def execute(self, phase: TestPhase, stop: threading.Event | None = None) -> None:
        """Run the phase until it ends or ``stop`` is set, then wait for in-flight calls."""
        self.rps = phase.start_rps
        try:
            for _ in self._ticks(phase, stop or threading.Event()):
                self.logger.debug("Constant executor: current RPS %d", self.rps)
                self._fire(phase.function_id, self.rps)
        finally:
            self._wait_for_calls()


class RampingExecutor(_Executor):
    """Starts at ``start_rps`` and moves by ``step`` each tick until ``end_rps`` is reached."""

    def __init__(self, client: Any, collector: Any, data_provider: DataProvider,
                 logger: logging.Logger | None = None, tick: float = 1.0) -> None:
        super().__init__(client, collector, data_provider, logger, tick)
        self.start_rps = self.end_rps = self.step = 0

    def execute(self, phase: TestPhase, stop: threading.Event | None = None) -> None:
        """Run the phase until it ends or ``stop`` is set, then wait for in-flight calls."""
        self.start_rps, self.end_rps, self.step = phase.start_rps, phase.end_rps, phase.step
        incrementing = self.step > 0
        current = self.start_rps
        if current == 0:
            self.logger.warning("Start RPS is 0, setting to 1")
            current = 1
        first = True
        try:
            for _ in self._ticks(phase, stop or threading.Event()):
                self.logger.debug("Ramping executor: current RPS %d", current)
                short = current < self.end_rps if incrementing else current > self.end_rps
                if not first and short:
                    current += self.step
                if current <= 0:
                    continue
                first = False
                self._fire(phase.function_id, current)
        finally:
            self._wait_for_calls()