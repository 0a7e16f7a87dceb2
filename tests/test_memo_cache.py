import gc
import threading
import time

import pytest
from memo import MemoCache, EvictionMode, NIL_KEY, memoize


class Thing:
    """Weak-referenceable object used as key or value."""

    def __init__(self, name):
        self.name = name


class TestMemoization:
    """Compute-once semantics"""

    def test_repeated_key_computes_once(self, counted, call_log):
        cache = MemoCache(counted)
        assert cache.get(3) == 9
        assert cache.get(3) == 9
        assert call_log == [3], f"Expected a single computation, got {call_log}"

    def test_distinct_keys_compute_independently(self, counted, call_log):
        cache = MemoCache(counted)
        assert cache.get(2) == 4
        assert cache.get(5) == 25
        assert cache.get(2) == 4
        assert cache.get(5) == 25
        assert call_log == [2, 5]

    def test_callable_like_function(self, counted, call_log):
        cache = MemoCache(counted)
        assert cache(4) == 16
        assert cache(4) == 16
        assert call_log == [4]

    def test_cached_none_value_is_not_recomputed(self, call_log):
        def returns_none(x):
            call_log.append(x)
            return None

        cache = MemoCache(returns_none)
        assert cache.get("a") is None
        assert cache.get("a") is None
        assert call_log == ["a"]
        assert "a" in cache

    def test_unhashable_key_raises(self, counted):
        cache = MemoCache(counted)
        with pytest.raises(TypeError):
            cache.get([1, 2])

    def test_requires_callable(self):
        with pytest.raises(TypeError):
            MemoCache(42)


class TestNilKey:
    """The nil slot is separate from the keyed store"""

    def test_nil_key_computed_once(self, call_log):
        def compute(x):
            call_log.append(x)
            return "default"

        cache = MemoCache(compute)
        results = [cache.get() for _ in range(5)] + [cache.get(NIL_KEY)]
        assert results == ["default"] * 6
        assert call_log == [None], f"Nil slot recomputed: {call_log}"

    def test_nil_slot_not_counted_as_entry(self, counted):
        cache = MemoCache(counted)
        cache.get()
        assert cache.nil_slot_populated
        assert NIL_KEY in cache
        assert len(cache) == 0

    def test_nil_slot_survives_weak_mode(self, call_log):
        def compute(x):
            call_log.append(x)
            return Thing("nil")

        cache = MemoCache(compute, EvictionMode.WEAK_VALUES)
        cache.get()
        gc.collect()
        cache.get()
        assert call_log == [None]

    def test_clear_resets_nil_slot(self, counted, call_log):
        cache = MemoCache(counted)
        cache.get()
        cache.get(2)
        cache.clear()
        assert not cache.nil_slot_populated
        assert len(cache) == 0
        cache.get()
        cache.get(2)
        assert call_log == [None, 2, None, 2]


class TestFailures:
    """compute_fn errors propagate and are not cached"""

    def test_failure_is_retried(self, call_log):
        def flaky(x):
            call_log.append(x)
            if len(call_log) == 1:
                raise RuntimeError("boom")
            return x + 1

        cache = MemoCache(flaky)
        with pytest.raises(RuntimeError, match="boom"):
            cache.get(1)
        assert 1 not in cache, "Failed computation must not leave an entry"
        assert cache.get(1) == 2
        assert call_log == [1, 1]
        assert cache.stats()["failures"] == 1

    def test_nil_failure_is_retried(self, call_log):
        def flaky(x):
            call_log.append(x)
            if len(call_log) == 1:
                raise ValueError("no default yet")
            return "ok"

        cache = MemoCache(flaky)
        with pytest.raises(ValueError):
            cache.get()
        assert not cache.nil_slot_populated
        assert cache.get() == "ok"
        assert call_log == [None, None]


class TestEviction:
    """Weak modes let the store drop entries"""

    def test_parse_short_modes(self):
        assert EvictionMode.parse(None) is EvictionMode.STRONG
        assert EvictionMode.parse("k") is EvictionMode.WEAK_KEYS
        assert EvictionMode.parse("v") is EvictionMode.WEAK_VALUES
        assert EvictionMode.parse("kv") is EvictionMode.WEAK_BOTH
        assert EvictionMode.parse("weak_values") is EvictionMode.WEAK_VALUES
        with pytest.raises(ValueError):
            EvictionMode.parse("sometimes")

    def test_strong_keeps_entries(self, call_log):
        def compute(k):
            call_log.append(k)
            return Thing(k)

        cache = MemoCache(compute)
        cache.get("a")
        gc.collect()
        cache.get("a")
        assert call_log == ["a"]

    def test_weak_values_recompute_after_collection(self, call_log):
        def compute(k):
            call_log.append(k)
            return Thing(k)

        cache = MemoCache(compute, EvictionMode.WEAK_VALUES)
        value = cache.get("a")
        assert cache.get("a") is value
        assert call_log == ["a"]

        del value
        gc.collect()
        assert "a" not in cache
        cache.get("a")
        assert call_log == ["a", "a"]

    def test_weak_keys_drop_entry_with_key(self):
        cache = MemoCache(lambda k: k.name.upper(), EvictionMode.WEAK_KEYS)
        key = Thing("x")
        assert cache.get(key) == "X"
        assert len(cache) == 1

        del key
        gc.collect()
        assert len(cache) == 0

    def test_weak_both_drops_on_value_collection(self, call_log):
        def compute(k):
            call_log.append(k.name)
            return Thing(k.name)

        cache = MemoCache(compute, EvictionMode.WEAK_BOTH)
        key = Thing("x")
        value = cache.get(key)
        assert len(cache) == 1

        del value
        gc.collect()
        assert key not in cache
        cache.get(key)
        assert call_log == ["x", "x"]

    def test_non_weakrefable_entries_held_strongly(self, counted, call_log):
        cache = MemoCache(counted, EvictionMode.WEAK_BOTH)
        cache.get(7)
        gc.collect()
        cache.get(7)
        assert call_log == [7]
        assert len(cache) == 1


class TestStatsAndDecorator:

    def test_stats_counts_hits_and_misses(self, counted):
        cache = MemoCache(counted)
        cache.get(1)
        cache.get(1)
        cache.get(2)
        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 2
        assert stats["computations"] == 2
        assert stats["entries"] == 2
        assert stats["hit_rate"] == pytest.approx(1 / 3)
        assert stats["eviction_mode"] == "strong"

    def test_memoize_bare_and_with_options(self, call_log):
        @memoize
        def double(x):
            """Double x."""
            call_log.append(x)
            return x * 2

        @memoize(mode="v")
        def wrap(x):
            return Thing(x)

        assert double(3) == 6
        assert double(3) == 6
        assert call_log == [3]
        assert double.__doc__ == "Double x."
        assert isinstance(wrap, MemoCache)
        assert wrap.eviction_mode is EvictionMode.WEAK_VALUES

    def test_recursive_memoization(self):
        calls = []

        def fib(n):
            calls.append(n)
            return n if n < 2 else cache.get(n - 1) + cache.get(n - 2)

        cache = MemoCache(fib, thread_safe=True)
        assert cache.get(30) == 832040
        assert sorted(calls) == list(range(31)), "Each n should be computed exactly once"


class TestConcurrency:

    def test_thread_safe_computes_once(self):
        calls = []

        def slow(x):
            calls.append(x)
            time.sleep(0.05)
            return x * 10

        cache = MemoCache(slow, thread_safe=True)
        results = []
        threads = [threading.Thread(target=lambda: results.append(cache.get(4))) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == [40] * 8
        assert calls == [4], f"Expected one computation across threads, got {len(calls)}"
