"""Configuration and workload data model, with loading and validation of config files."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

PHASE_CONSTANT = "constant"
PHASE_VARIABLE = "variable"

_UNIT_NS = {
    "ns": 1, "us": 10**3, "µs": 10**3, "μs": 10**3,
    "ms": 10**6, "s": 10**9, "m": 60 * 10**9, "h": 3600 * 10**9,
}
_PART = r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)"
_DURATION = re.compile(rf"([+-]?)((?:{_PART})+|0)")


class ConfigError(Exception):
    """Raised when a configuration cannot be read, parsed or validated."""


@dataclass
class IntRange:
    """An inclusive range of integers."""

    min: int = 0
    max: int = 0


@dataclass
class PhaseParameters:
    """Ranges from which a generated phase draws its rates."""

    start_rps: IntRange = field(default_factory=IntRange)
    end_rps: IntRange = field(default_factory=IntRange)
    step: IntRange = field(default_factory=IntRange)


@dataclass
class PhasePattern:
    """How phases for one function image are generated."""

    image_tag: str = ""
    phase_count: IntRange = field(default_factory=IntRange)
    constant_likelihood: float = 0.0
    ramping_likelihood: float = 0.0
    parameters: PhaseParameters = field(default_factory=PhaseParameters)


@dataclass
class TestPhase:
    """One phase of load against a single function."""

    __test__ = False

    name: str = ""
    type: str = ""
    start_time: timedelta = timedelta(0)
    duration: timedelta = timedelta(0)
    start_rps: int = 0
    end_rps: int = 0
    step: int = 0
    image_tag: str = ""
    function_id: str = ""


@dataclass
class Workload:
    """A set of phases, ordered by start time."""

    leaf_address: str = ""
    max_duration: timedelta = timedelta(0)
    timeout: int = 0
    phases: list[TestPhase] = field(default_factory=list)


@dataclass
class Config:
    """Top-level load generator configuration."""

    leaf_address: str = ""
    generate_workload: bool = False
    seed: int = 0
    max_duration: timedelta = timedelta(0)
    timeout: int = 0
    patterns: dict[str, PhasePattern] | None = None
    workload: Workload | None = None
    function_config: dict[str, dict[str, Any]] = field(default_factory=dict)


def parse_duration(text: str | int | timedelta) -> timedelta:
    """Parse a duration such as ``"1m30s"``; integers are nanoseconds."""
    if isinstance(text, timedelta):
        return text
    if isinstance(text, int) and not isinstance(text, bool):
        nanoseconds = text
    else:
        match = _DURATION.fullmatch(text) if isinstance(text, str) else None
        if match is None:
            raise ConfigError(f"invalid duration: {text!r}")
        total = int(sum((Decimal(n) * _UNIT_NS[u] for n, u in re.findall(_PART, match.group(2))), Decimal(0)))
        nanoseconds = -total if match.group(1) == "-" else total
    magnitude = timedelta(microseconds=abs(nanoseconds) // 1000)
    return -magnitude if nanoseconds < 0 else magnitude


def _get(data: dict, key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if kind is str and not isinstance(value, (dict, list)):
        return str(value)
    accepted = (int, float) if kind is float else kind
    if kind is str or isinstance(value, bool) != (kind is bool) or not isinstance(value, accepted):
        raise ConfigError(f"{key} has an invalid value: {value!r}")
    return float(value) if kind is float else value


def _mapping(value: Any, key: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be a mapping")
    return value


def _duration(data: dict, key: str) -> timedelta:
    value = data.get(key)
    return timedelta(0) if value is None else parse_duration(value)


def _int_range(data: dict, key: str) -> IntRange:
    body = _mapping(data.get(key), key)
    return IntRange(_get(body, "min", int, 0), _get(body, "max", int, 0))


def _pattern(value: Any, key: str) -> PhasePattern:
    data = _mapping(value, key)
    params = _mapping(data.get("parameters"), f"{key}.parameters")
    return PhasePattern(
        image_tag=_get(data, "image_tag", str, ""),
        phase_count=_int_range(data, "phase_count"),
        constant_likelihood=_get(data, "constant_likelihood", float, 0.0),
        ramping_likelihood=_get(data, "ramping_likelihood", float, 0.0),
        parameters=PhaseParameters(*(_int_range(params, n) for n in ("start_rps", "end_rps", "step"))),
    )


def _phase(value: Any) -> TestPhase:
    data = _mapping(value, "phase")
    return TestPhase(
        start_time=_duration(data, "start_time"),
        duration=_duration(data, "duration"),
        **{n: _get(data, n, str, "") for n in ("name", "type", "image_tag", "function_id")},
        **{n: _get(data, n, int, 0) for n in ("start_rps", "end_rps", "step")},
    )


def validate_config(config: Config) -> None:
    """Raise ConfigError if the configuration is incomplete or inconsistent."""
    if not config.leaf_address:
        raise ConfigError("Leaf address is required")
    if config.generate_workload and config.patterns is None:
        raise ConfigError("Generate workload is true, but no patterns are provided")
    if config.max_duration == timedelta(0):
        raise ConfigError("Max duration is required")
    if config.timeout == 0:
        raise ConfigError("Timeout is required")
    for phase in config.workload.phases if config.workload else []:
        if phase.type not in (PHASE_CONSTANT, PHASE_VARIABLE):
            raise ConfigError("Phase type must be either constant or variable")
        if phase.type == PHASE_VARIABLE and (phase.end_rps == 0 or phase.step == 0):
            raise ConfigError("Step and end RPS are required for variable phases")
        if phase.type == PHASE_CONSTANT and (phase.start_rps == 0 or phase.end_rps or phase.step):
            raise ConfigError("Start RPS is required for constant phases")


def parse_config(text: str) -> Config:
    """Parse and validate a YAML configuration document."""
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse config file: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Failed to parse config file: top level must be a mapping")
    raw_patterns = data.get("patterns")
    raw_workload = data.get("workload")
    workload = None
    if raw_workload is not None:
        body = _mapping(raw_workload, "workload")
        workload = Workload(
            leaf_address=_get(body, "leaf_address", str, ""),
            max_duration=_duration(body, "max_duration"),
            timeout=_get(body, "timeout", int, 0),
            phases=[_phase(item) for item in _get(body, "phases", list, [])],
        )
    config = Config(
        leaf_address=_get(data, "leaf_address", str, ""),
        generate_workload=_get(data, "generate_workload", bool, False),
        seed=_get(data, "seed", int, 0),
        max_duration=_duration(data, "max_duration"),
        timeout=_get(data, "timeout", int, 0),
        patterns=None if raw_patterns is None else {
            str(name): _pattern(body, f"patterns.{name}")
            for name, body in _mapping(raw_patterns, "patterns").items()
        },
        workload=workload,
        function_config={
            str(tag): dict(_mapping(body, f"function_config.{tag}"))
            for tag, body in _mapping(data.get("function_config"), "function_config").items()
        },
    )
    validate_config(config)
    return config


def load_config(path: str | Path) -> Config:
    """Read, parse and validate the configuration file at ``path``."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file: {exc}") from exc
    return parse_config(text)