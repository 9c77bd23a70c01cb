"""Tests for the recent-frame cache."""

import numpy as np
import pytest

from crtfilter.cache import FrameCache, fingerprint


def _frame(value: int) -> np.ndarray:
    return np.full((4, 5), value, dtype=np.uint32)


def test_fingerprint_matches_raw_bytes():
    """Arrays and their raw bytes share a fingerprint."""
    frame = np.arange(20, dtype=np.uint32).reshape(4, 5)
    assert fingerprint(frame) == fingerprint(frame.tobytes())


def test_fingerprint_differs():
    """Different frames (almost always) have different fingerprints."""
    assert fingerprint(_frame(1)) != fingerprint(_frame(2))


def test_negative_capacity():
    """Negative capacity is rejected."""
    with pytest.raises(ValueError, match="non-negative"):
        FrameCache(-1)


class TestFrameCache:
    """Tests for FrameCache."""

    def test_store_and_lookup(self):
        """A stored frame is found again."""
        cache = FrameCache(2)
        cache.store(_frame(1), _frame(10))
        result = cache.lookup(_frame(1))
        np.testing.assert_array_equal(result, _frame(10))
        assert cache.lookup(_frame(2)) is None

    def test_lookup_returns_copy(self):
        """Mutating a returned output does not corrupt the cache."""
        cache = FrameCache(2)
        cache.store(_frame(1), _frame(10))
        cache.lookup(_frame(1))[:] = 0
        np.testing.assert_array_equal(cache.lookup(_frame(1)), _frame(10))

    def test_store_copies_input(self):
        """Later changes to the caller's frame do not affect the entry."""
        cache = FrameCache(2)
        frame = _frame(1)
        cache.store(frame, _frame(10))
        frame[:] = 2
        assert cache.lookup(frame) is None
        assert cache.lookup(_frame(1)) is not None

    def test_ring_eviction(self):
        """The oldest entry is overwritten when the ring is full."""
        cache = FrameCache(2)
        for value in (1, 2, 3):
            cache.store(_frame(value), _frame(value * 10))
        assert len(cache) == 2
        assert cache.lookup(_frame(1)) is None
        assert cache.lookup(_frame(2)) is not None
        assert cache.lookup(_frame(3)) is not None

    def test_shape_mismatch_is_a_miss(self):
        """Same bytes with a different shape do not match."""
        cache = FrameCache(2)
        frame = np.zeros((4, 5), dtype=np.uint32)
        cache.store(frame, _frame(10))
        assert cache.lookup(frame.reshape(5, 4)) is None

    def test_get_or_compute_counts(self):
        """Hits skip the computation and are counted."""
        cache = FrameCache(4)
        calls = []

        def compute(frame):
            calls.append(frame)
            return frame * 2

        for value in (1, 1, 2, 1):
            cache.get_or_compute(_frame(value), compute)

        assert len(calls) == 2
        assert cache.hits == 2
        assert cache.misses == 2

    def test_disabled(self):
        """Capacity 0 always recomputes and never stores."""
        cache = FrameCache(0)
        calls = []

        def compute(frame):
            calls.append(frame)
            return frame

        cache.get_or_compute(_frame(1), compute)
        cache.get_or_compute(_frame(1), compute)
        assert len(calls) == 2
        assert len(cache) == 0
        assert cache.hits == 0

    def test_clear(self):
        """clear() forgets entries and counters."""
        cache = FrameCache(2)
        cache.get_or_compute(_frame(1), lambda f: f)
        cache.get_or_compute(_frame(1), lambda f: f)
        cache.clear()
        assert len(cache) == 0
        assert cache.hits == 0
        assert cache.misses == 0
