"""Request payload providers for the benchmarked functions."""

from __future__ import annotations

import base64
import random
import urllib.request
from abc import ABC, abstractmethod

_POOL_SIZE = 1024


class DataProvider(ABC):
    """Produces the payload for each call."""

    @abstractmethod
    def get_data(self) -> bytes:
        """Return the payload for one call."""


class EchoDataProvider(DataProvider):
    """Random byte payloads cut from a pre-generated pool."""

    def __init__(self, min_size: int, max_size: int) -> None:
        self.min_size = min_size
        self.max_size = max_size
        self._pool = random.randbytes(_POOL_SIZE)

    def get_data(self) -> bytes:
        """Return a random slice whose length is a multiple of 8 and at least 8."""
        low = max(self.min_size, 8)
        high = max(self.max_size, low)
        size = random.randint(low, high) & ~7
        size = max(size, 8)
        if size > len(self._pool):
            raise ValueError(f"payload size {size} exceeds pool size {len(self._pool)}")
        max_offset = max(len(self._pool) - size, 1)
        offset = random.randrange(max_offset)
        return self._pool[offset:offset + size]


class BFSJSONDataProvider(DataProvider):
    """JSON payloads of the form ``{"Size":<n>}``."""

    def __init__(self, min_size: int, max_size: int) -> None:
        self.min_size = min_size
        self.max_size = max_size

    def get_data(self) -> bytes:
        size = random.randint(self.min_size, self.max_size)
        return b'{"Size":%d}' % size


class ThumbnailerJSONDataProvider(DataProvider):
    """JSON payloads carrying a base64 image and a random target size."""

    def __init__(self, image: bytes) -> None:
        self.image = image
        self._encoded = base64.b64encode(image)

    def get_data(self) -> bytes:
        width = random.randint(1, 1440)
        height = random.randint(1, 900)
        return b'{"image":"' + self._encoded + b'","width":%d,"height":%d}' % (width, height)


def fetch_image(url: str) -> bytes:
    """Download and return the body at ``url``."""
    with urllib.request.urlopen(url) as response:
        return response.read()