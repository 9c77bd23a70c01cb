"""Memoization of recently filtered frames."""

import logging
import zlib
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 4


def fingerprint(buffer: bytes | memoryview | np.ndarray) -> int:
    """Fast non-cryptographic 32-bit digest of a frame's raw bytes.

    Used only as a pre-filter; equal fingerprints are always confirmed by a
    byte comparison.
    """
    if isinstance(buffer, np.ndarray):
        buffer = np.ascontiguousarray(buffer).data
    return zlib.crc32(buffer) & 0xFFFFFFFF


@dataclass
class CacheEntry:
    """One remembered (input, output) pair."""

    fingerprint: int
    frame: np.ndarray
    output: np.ndarray


class FrameCache:
    """Fixed-capacity ring of the last N filtered frames.

    New entries overwrite the oldest slot. Only the sequential per-frame loop
    touches the cache, so it carries no locking.

    Example:
        cache = FrameCache(4)
        output = cache.get_or_compute(frame, lambda f: convert_frame(f, ctx))
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_SIZE):
        """Create an empty cache.

        Args:
            capacity: Number of slots; 0 disables caching.

        Raises:
            ValueError: If capacity is negative.
        """
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        self.capacity = capacity
        self._entries: list[CacheEntry | None] = [None] * capacity
        self._cursor = 0
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return sum(entry is not None for entry in self._entries)

    def lookup(self, frame: np.ndarray, key: int | None = None) -> np.ndarray | None:
        """Return a copy of the stored output for ``frame``, or None.

        Args:
            frame: Input frame.
            key: Precomputed fingerprint of ``frame`` (computed if omitted).

        Returns:
            Output frame copy on a hit, None on a miss.
        """
        if self.capacity == 0:
            return None
        if key is None:
            key = fingerprint(frame)
        for entry in self._entries:
            if (
                entry is not None
                and entry.fingerprint == key
                and entry.frame.shape == frame.shape
                and np.array_equal(entry.frame, frame)
            ):
                return entry.output.copy()
        return None

    def store(
        self, frame: np.ndarray, output: np.ndarray, key: int | None = None
    ) -> None:
        """Remember ``output`` for ``frame`` in the next ring slot.

        Args:
            frame: Input frame (copied).
            output: Output frame (copied).
            key: Precomputed fingerprint of ``frame`` (computed if omitted).
        """
        if self.capacity == 0:
            return
        if key is None:
            key = fingerprint(frame)
        self._entries[self._cursor] = CacheEntry(key, frame.copy(), output.copy())
        self._cursor = (self._cursor + 1) % self.capacity

    def get_or_compute(
        self, frame: np.ndarray, compute: Callable[[np.ndarray], np.ndarray]
    ) -> np.ndarray:
        """Return the cached output for ``frame`` or compute and store it.

        Args:
            frame: Input frame.
            compute: Function producing the output frame for a miss.

        Returns:
            Output frame.
        """
        if self.capacity == 0:
            self.misses += 1
            return compute(frame)

        key = fingerprint(frame)
        cached = self.lookup(frame, key)
        if cached is not None:
            self.hits += 1
            logger.debug("Cache hit (fingerprint %08x)", key)
            return cached

        self.misses += 1
        output = compute(frame)
        self.store(frame, output, key)
        return output

    def clear(self) -> None:
        """Forget every entry and reset the counters."""
        self._entries = [None] * self.capacity
        self._cursor = 0
        self.hits = 0
        self.misses = 0
