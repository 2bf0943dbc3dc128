"""Creation of functions on the leaf, with their resource configuration."""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

_MIB = 1024 * 1024
_GIB = 1024 * _MIB
_MIN_MEMORY = 6 * _MIB
_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

CreateCall = Callable[[str, int, Any], str]


@dataclass
class FunctionConfig:
    """Resources requested for a function, as written in the configuration."""

    memory: str = ""
    cpu: Any = None


@dataclass
class Function:
    """A function that exists on the leaf."""

    id: str
    image_tag: str
    timeout: int
    memory: int
    cpu: Any = None


def convert_memory(memory: str) -> int:
    """Convert a size such as ``"256MB"`` or ``"1.5GB"`` to bytes (at least 6 MB)."""
    text = memory.strip().upper()
    if text.endswith("GB"):
        multiplier = _GIB
    elif text.endswith("MB"):
        multiplier = _MIB
    else:
        raise ValueError(f"unsupported memory format: {text} (expected format like '256MB' or '1GB')")

    number = text[:-2]
    if not _NUMBER.fullmatch(number):
        raise ValueError(f"invalid memory value: {text}")
    value = float(number) * multiplier
    if not math.isfinite(value):
        raise ValueError(f"invalid memory value: {text}")

    total = int(value)
    if total < _MIN_MEMORY:
        raise ValueError(f"memory must be at least 6MB, got {text}")
    return total


def _as_function_config(config: FunctionConfig | Mapping[str, Any] | None, image_tag: str) -> FunctionConfig:
    if config is None:
        raise ValueError(f"no function config for {image_tag}")
    if isinstance(config, FunctionConfig):
        return config
    if isinstance(config, Mapping):
        memory = config.get("memory")
        return FunctionConfig(memory="" if memory is None else str(memory), cpu=config.get("cpu"))
    raise TypeError(f"unsupported function config for {image_tag}: {config!r}")


class FunctionManager:
    """Creates functions through a leaf call and remembers them by id.

    ``create_call(image_tag, memory_bytes, cpu)`` performs the remote creation
    and returns the new function's id.
    """

    def __init__(self, create_call: CreateCall) -> None:
        self._create_call = create_call
        self.functions: dict[str, Function] = {}

    def create_function(
        self,
        image_tag: str,
        timeout: int,
        function_config: FunctionConfig | Mapping[str, Any] | None,
    ) -> Function:
        """Create a function for ``image_tag`` with the given resources."""
        config = _as_function_config(function_config, image_tag)
        memory = convert_memory(config.memory)
        function_id = self._create_call(image_tag, memory, config.cpu)
        function = Function(
            id=function_id,
            image_tag=image_tag,
            timeout=timeout,
            memory=memory,
            cpu=config.cpu,
        )
        self.functions[function_id] = function
        return function