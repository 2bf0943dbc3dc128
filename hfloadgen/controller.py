"""Orchestration of a workload: function creation, phase scheduling and result collection."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable, Mapping
from datetime import timedelta
from typing import Any

from hfloadgen.data import (
    BFSJSONDataProvider,
    DataProvider,
    EchoDataProvider,
    ThumbnailerJSONDataProvider,
    fetch_image,
)
from hfloadgen.executor import ConstantExecutor, RampingExecutor
from hfloadgen.function import FunctionManager
from hfloadgen.models import PHASE_CONSTANT, PHASE_VARIABLE, Config, ConfigError, TestPhase
from hfloadgen.workload_generator import WorkloadGenerator

ECHO_IMAGE = "hyperfaas-echo:latest"
BFS_JSON_IMAGE = "hyperfaas-bfs-json:latest"
THUMBNAILER_JSON_IMAGE = "hyperfaas-thumbnailer-json:latest"


def distinct_image_tags(phases: Iterable[TestPhase]) -> list[str]:
    """Return each image tag used by ``phases`` once, in order of first appearance."""
    return list(dict.fromkeys(phase.image_tag for phase in phases))


def build_data_providers(image_tags: Iterable[str], thumbnail_url: str | None = None) -> dict[str, DataProvider]:
    """Create the payload provider for every known image tag; unknown tags are skipped."""
    providers: dict[str, DataProvider] = {}
    for tag in image_tags:
        if tag == ECHO_IMAGE:
            providers[tag] = EchoDataProvider(256, 1024)
        elif tag == BFS_JSON_IMAGE:
            providers[tag] = BFSJSONDataProvider(100, 250)
        elif tag == THUMBNAILER_JSON_IMAGE:
            if not thumbnail_url:
                raise ValueError(f"an image URL is required for {tag}")
            providers[tag] = ThumbnailerJSONDataProvider(fetch_image(thumbnail_url))
    return providers


class Controller:
    """Runs every phase of the configured workload against the leaf."""

    def __init__(self, config: Config, client: Any, function_manager: FunctionManager, collector: Any,
                 data_providers: Mapping[str, DataProvider] | None = None,
                 logger: logging.Logger | None = None) -> None:
        self.config = config
        self.client = client
        self.function_manager = function_manager
        self.collector = collector
        self.logger = logger or logging.getLogger(__name__)
        self.tick = 1.0

        if config.generate_workload:
            if config.patterns is None:
                raise ConfigError("Generate workload is true, but no patterns are provided")
            config.workload = WorkloadGenerator(
                config.seed, config.max_duration, config.leaf_address, config.timeout, config.patterns
            ).generate_workload()
        if config.workload is None:
            raise ConfigError("No workload is configured and generation is disabled")
        if data_providers is None:
            data_providers = build_data_providers(distinct_image_tags(config.workload.phases))
        self.data_providers: dict[str, DataProvider] = dict(data_providers)

    def create_functions(self) -> None:
        """Create one function per distinct image tag and assign its id to the matching phases."""
        workload = self.config.workload
        for tag in distinct_image_tags(workload.phases):
            function = self.function_manager.create_function(
                tag, workload.timeout, self.config.function_config.get(tag)
            )
            for phase in workload.phases:
                if phase.image_tag == tag:
                    phase.function_id = function.id

    def get_data_provider(self, image_tag: str) -> DataProvider | None:
        """Return the payload provider for ``image_tag``, or None if there is none."""
        return self.data_providers.get(image_tag)

    def run(self) -> None:
        """Create the functions, run all phases concurrently within the maximum duration, then close the collector."""
        workload = self.config.workload
        missing = sorted({p.image_tag for p in workload.phases} - self.data_providers.keys())
        if missing:
            raise ValueError(f"no data provider for image tags: {', '.join(missing)}")

        print("Creating functions")
        self.create_functions()

        print("Starting workload, max duration:", self.config.max_duration)
        stop = threading.Event()
        timer = threading.Timer(self.config.max_duration.total_seconds(), stop.set)
        timer.daemon = True
        started = time.monotonic()
        errors: list[BaseException] = []

        def run_phase(phase: TestPhase) -> None:
            try:
                self._run_phase(phase, stop)
            except BaseException as exc:  # re-raised once all phases finish
                errors.append(exc)

        threads = [threading.Thread(target=run_phase, args=(p,), daemon=True) for p in workload.phases]
        timer.start()
        try:
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
        finally:
            timer.cancel()

        self.logger.info("Workload completed in %s", timedelta(seconds=time.monotonic() - started))
        self.collector.close()
        if errors:
            raise errors[0]

    def _run_phase(self, phase: TestPhase, stop: threading.Event) -> None:
        if stop.wait(max(phase.start_time.total_seconds(), 0.0)):
            return
        self.logger.info(
            "Starting phase %s: type=%s start_rps=%d end_rps=%d step=%d duration=%s",
            phase.name, phase.type, phase.start_rps, phase.end_rps, phase.step, phase.duration,
        )
        executors = {PHASE_CONSTANT: ConstantExecutor, PHASE_VARIABLE: RampingExecutor}
        executor_type = executors.get(phase.type)
        if executor_type is not None:
            provider = self.get_data_provider(phase.image_tag)
            executor_type(self.client, self.collector, provider, self.logger, self.tick).execute(phase, stop)