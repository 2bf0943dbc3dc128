from datetime import timedelta

import pytest

from hfloadgen.models import IntRange, PhaseParameters, PhasePattern
from hfloadgen.workload_generator import WorkloadGenerator


def _pattern(tag, count, constant, ramping, start, end, step):
    return PhasePattern(
        image_tag=tag,
        phase_count=IntRange(*count),
        constant_likelihood=constant,
        ramping_likelihood=ramping,
        parameters=PhaseParameters(
            start_rps=IntRange(*start),
            end_rps=IntRange(*end),
            step=IntRange(*step),
        ),
    )


def _generate(seed, seconds, patterns):
    generator = WorkloadGenerator(seed, timedelta(seconds=seconds), "localhost:50050", 10, patterns)
    return generator.generate_workload()


def _assert_parameter_ranges(phase, params):
    assert params.start_rps.min <= phase.start_rps <= params.start_rps.max
    assert params.end_rps.min <= phase.end_rps <= params.end_rps.max
    assert params.step.min <= phase.step <= params.step.max


def test_single_pattern_single_phase_constant_only():
    patterns = {
        "hyperfaas-echo:latest": _pattern(
            "hyperfaas-echo:latest", (1, 1), 1.0, 0.0, (10, 20), (30, 40), (1, 5)
        )
    }
    workload = _generate(1, 10, patterns)
    assert len(workload.phases) == 1
    phase = workload.phases[0]
    pattern = patterns["hyperfaas-echo:latest"]
    assert phase.image_tag == pattern.image_tag
    assert phase.type == "constant"
    assert phase.start_time == timedelta(0)
    assert phase.duration == timedelta(seconds=10)
    _assert_parameter_ranges(phase, pattern.parameters)


def test_single_pattern_multiple_phases_mixed_types():
    pattern = _pattern("test-function:v1", (3, 5), 0.6, 0.4, (5, 15), (20, 50), (2, 8))
    workload = _generate(42, 30, {"test-function:v1": pattern})
    count = len(workload.phases)
    assert pattern.phase_count.min <= count <= pattern.phase_count.max
    expected_duration = timedelta(seconds=30) // count
    for i, phase in enumerate(workload.phases):
        assert phase.image_tag == pattern.image_tag
        assert phase.type in ("constant", "variable")
        assert phase.start_time == expected_duration * i
        assert phase.duration == expected_duration
        _assert_parameter_ranges(phase, pattern.parameters)


def test_multiple_patterns_overlapping_phases():
    patterns = {
        "function-a:latest": _pattern("function-a:latest", (2, 3), 0.8, 0.2, (1, 10), (11, 25), (1, 3)),
        "function-b:v2": _pattern("function-b:v2", (1, 2), 0.3, 0.7, (50, 100), (100, 200), (5, 15)),
    }
    workload = _generate(123, 60, patterns)

    for tag, pattern in patterns.items():
        phases = [p for p in workload.phases if p.image_tag == tag]
        assert pattern.phase_count.min <= len(phases) <= pattern.phase_count.max
        expected_duration = timedelta(seconds=60) // len(phases)
        for i, phase in enumerate(phases):
            assert phase.start_time == expected_duration * i

    for phase in workload.phases:
        assert phase.image_tag in patterns
        assert phase.type in ("constant", "variable")
        _assert_parameter_ranges(phase, patterns[phase.image_tag].parameters)


def test_edge_case_ramping_only():
    pattern = _pattern("ramping-only:test", (2, 2), 0.0, 1.0, (1, 1), (100, 100), (10, 10))
    workload = _generate(999, 5, {"ramping-only:test": pattern})
    assert len(workload.phases) == 2
    for phase in workload.phases:
        assert phase.type == "variable"
        _assert_parameter_ranges(phase, pattern.parameters)


def test_edge_case_single_value_ranges():
    pattern = _pattern("single-values:test", (3, 3), 0.5, 0.5, (25, 25), (75, 75), (2, 2))
    workload = _generate(777, 15, {"single-values:test": pattern})
    assert len(workload.phases) == 3
    for phase in workload.phases:
        assert phase.start_rps == 25
        assert phase.end_rps == 75
        assert phase.step == 2


def test_workload_carries_settings():
    pattern = _pattern("x:1", (1, 1), 1.0, 0.0, (1, 1), (2, 2), (1, 1))
    workload = _generate(5, 10, {"x:1": pattern})
    assert workload.leaf_address == "localhost:50050"
    assert workload.timeout == 10
    assert workload.max_duration == timedelta(seconds=10)


def test_same_seed_same_workload():
    pattern = _pattern("test-function:v1", (3, 5), 0.6, 0.4, (5, 15), (20, 50), (2, 8))
    first = _generate(42, 30, {"t": pattern})
    second = _generate(42, 30, {"t": pattern})
    assert first == second


def test_inverted_range_raises():
    pattern = _pattern("bad:1", (3, 1), 0.5, 0.5, (1, 1), (1, 1), (1, 1))
    with pytest.raises(ValueError):
        _generate(1, 10, {"bad:1": pattern})