"""Random generation of workloads from phase patterns."""

from __future__ import annotations

import random
from collections.abc import Mapping
from datetime import timedelta

from hfloadgen.models import PHASE_CONSTANT, PHASE_VARIABLE, PhasePattern, TestPhase, Workload


class WorkloadGenerator:
    """Builds a workload whose phases per image tag fill the maximum duration."""

    def __init__(self, seed: int, max_duration: timedelta, leaf_address: str, timeout: int,
                 patterns: Mapping[str, PhasePattern]) -> None:
        self.seed = seed
        self.max_duration = max_duration
        self.leaf_address = leaf_address
        self.timeout = timeout
        self.patterns = patterns
        self._random = random.Random(seed)

    def generate_workload(self) -> Workload:
        """Generate phases for every pattern; phases of different image tags overlap."""
        workload = Workload(self.leaf_address, self.max_duration, self.timeout, [])
        elapsed = {pattern.image_tag: timedelta(0) for pattern in self.patterns.values()}
        draw = self._random.randint

        for pattern in self.patterns.values():
            phase_count = draw(pattern.phase_count.min, pattern.phase_count.max)
            phase_duration = self.max_duration // phase_count
            params = pattern.parameters
            for _ in range(phase_count):
                start_time = elapsed[pattern.image_tag]
                elapsed[pattern.image_tag] += phase_duration
                constant = self._random.random() < pattern.constant_likelihood
                workload.phases.append(TestPhase(
                    image_tag=pattern.image_tag,
                    type=PHASE_CONSTANT if constant else PHASE_VARIABLE,
                    start_time=start_time,
                    duration=phase_duration,
                    start_rps=draw(params.start_rps.min, params.start_rps.max),
                    end_rps=draw(params.end_rps.min, params.end_rps.max),
                    step=draw(params.step.min, params.step.max),
                ))
        return workload