"""
Memoizing cache for one-argument functions.

Values are computed lazily on first lookup and kept in an associative store
whose eviction behaviour follows an EvictionMode. The "no argument" call has
its own slot that lives outside the store.
"""

import logging
import threading
import weakref
from contextlib import nullcontext
from enum import Enum
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

# Key addressed by get() with no argument.
NIL_KEY = None

_MISSING = object()


class EvictionMode(str, Enum):
    """How the store may drop entries on its own"""
    STRONG = "strong"
    WEAK_KEYS = "weak_keys"
    WEAK_VALUES = "weak_values"
    WEAK_BOTH = "weak_both"

    @property
    def weak_keys(self) -> bool:
        return self in (EvictionMode.WEAK_KEYS, EvictionMode.WEAK_BOTH)

    @property
    def weak_values(self) -> bool:
        return self in (EvictionMode.WEAK_VALUES, EvictionMode.WEAK_BOTH)

    @classmethod
    def parse(cls, mode) -> "EvictionMode":
        """Accept an EvictionMode, its value, or a weak-table mode string ('k', 'v', 'kv')"""
        if mode is None:
            return cls.STRONG
        if isinstance(mode, cls):
            return mode
        short = {"": cls.STRONG, "k": cls.WEAK_KEYS, "v": cls.WEAK_VALUES,
                 "kv": cls.WEAK_BOTH, "vk": cls.WEAK_BOTH}
        if mode in short:
            return short[mode]
        return cls(mode)


def _weakrefable(obj) -> bool:
    try:
        weakref.ref(obj)
    except TypeError:
        return False
    return True


class _StrongRef:
    """Holds a value strongly behind the same call interface as weakref.ref"""
    __slots__ = ("value",)

    def __init__(self, value):
        self.value = value

    def __call__(self):
        return self.value


class _EntryStore:
    """
    Key/value store for MemoCache.

    Entries whose key (or value) supports weak references are placed in weak
    tables according to the mode. Everything else, ints and strings included,
    is held strongly, so such entries are never evicted.
    """

    def __init__(self, mode: EvictionMode):
        self.mode = mode
        self._strong: Dict[Any, Any] = {}
        self._weak_values = weakref.WeakValueDictionary()
        # key -> weakref.ref(value) or _StrongRef(value)
        self._weak_keys = weakref.WeakKeyDictionary()

    def lookup(self, key):
        if key in self._strong:
            return self._strong[key]
        if self.mode.weak_values:
            value = self._weak_values.get(key, _MISSING)
            if value is not _MISSING:
                return value
        if self.mode.weak_keys and _weakrefable(key):
            holder = self._weak_keys.get(key)
            if holder is None:
                return _MISSING
            value = holder()
            if value is None and isinstance(holder, weakref.ref):
                # value collected, key still alive
                self._weak_keys.pop(key, None)
                return _MISSING
            return value
        return _MISSING

    def store(self, key, value):
        weak_key = self.mode.weak_keys and _weakrefable(key)
        weak_value = self.mode.weak_values and _weakrefable(value)
        if weak_key:
            holder = weakref.ref(value) if weak_value else _StrongRef(value)
            self._weak_keys[key] = holder
        elif weak_value:
            self._weak_values[key] = value
        else:
            self._strong[key] = value

    def _live_weak_keys(self) -> int:
        count = 0
        for holder in list(self._weak_keys.values()):
            if isinstance(holder, _StrongRef) or holder() is not None:
                count += 1
        return count

    def __len__(self):
        return len(self._strong) + len(self._weak_values) + self._live_weak_keys()

    def clear(self):
        self._strong.clear()
        self._weak_values.clear()
        self._weak_keys.clear()


class MemoCache:
    """
    Cache the result of a one-argument function per argument value.

    The first get(key) calls compute_fn(key) and stores the result; later calls
    return the stored value until the store evicts it. get() with no argument
    (or None) uses a separate nil slot that is computed at most once and is
    never evicted. A failing compute_fn stores nothing, so the next call retries.

    Set thread_safe=True when the cache is shared between threads: lookups and
    population then run under a re-entrant lock, so compute_fn may itself go
    through the cache (recursive memoization).
    """

    def __init__(self, compute_fn: Callable[[Any], Any],
                 eviction_mode=EvictionMode.STRONG, thread_safe: bool = False):
        if not callable(compute_fn):
            raise TypeError("MemoCache requires a callable compute_fn")
        self.compute_fn = compute_fn
        self.eviction_mode = EvictionMode.parse(eviction_mode)
        self._store = _EntryStore(self.eviction_mode)
        self._nil_value = None
        self._nil_populated = False
        self._lock = threading.RLock() if thread_safe else None
        self._stats = {"hits": 0, "misses": 0, "failures": 0}

    # --------- lookup ----------
    def get(self, key=NIL_KEY):
        with self._guard():
            if key is NIL_KEY:
                return self._get_nil()

            value = self._store.lookup(key)
            if value is not _MISSING:
                self._stats["hits"] += 1
                return value

            self._stats["misses"] += 1
            value = self._compute(key)
            self._store.store(key, value)
            return value

    __call__ = get

    def _get_nil(self):
        if self._nil_populated:
            self._stats["hits"] += 1
            return self._nil_value
        self._stats["misses"] += 1
        self._nil_value = self._compute(NIL_KEY)
        self._nil_populated = True
        return self._nil_value

    def _compute(self, key):
        logger.debug(f"Computing memoized value for {key!r}")
        try:
            return self.compute_fn(key)
        except Exception as e:
            self._stats["failures"] += 1
            logger.debug(f"compute_fn failed for {key!r}: {e}")
            raise

    def _guard(self):
        return self._lock if self._lock is not None else nullcontext()

    # --------- introspection ----------
    @property
    def nil_slot_populated(self) -> bool:
        return self._nil_populated

    def __contains__(self, key) -> bool:
        with self._guard():
            if key is NIL_KEY:
                return self._nil_populated
            return self._store.lookup(key) is not _MISSING

    def __len__(self) -> int:
        with self._guard():
            return len(self._store)

    def stats(self) -> Dict[str, Any]:
        """Return hit/miss counters and current size"""
        with self._guard():
            lookups = self._stats["hits"] + self._stats["misses"]
            return {
                "hits": self._stats["hits"],
                "misses": self._stats["misses"],
                "failures": self._stats["failures"],
                "computations": self._stats["misses"],
                "hit_rate": self._stats["hits"] / lookups if lookups else 0.0,
                "entries": len(self._store),
                "nil_slot_populated": self._nil_populated,
                "eviction_mode": self.eviction_mode.value,
            }

    def clear(self):
        """Drop every cached entry, the nil slot included"""
        with self._guard():
            self._store.clear()
            self._nil_value = None
            self._nil_populated = False
        logger.debug(f"Cleared memo cache for {getattr(self.compute_fn, '__name__', self.compute_fn)!r}")

    def __repr__(self):
        name = getattr(self.compute_fn, "__name__", repr(self.compute_fn))
        return f"MemoCache({name}, mode={self.eviction_mode.value})"


def memoize(func: Optional[Callable] = None, *, mode=EvictionMode.STRONG,
            thread_safe: bool = False):
    """
    Wrap a one-argument function in a MemoCache.

    Works bare (@memoize) or with options (@memoize(mode="kv")).
    """
    def wrap(f):
        cache = MemoCache(f, mode, thread_safe=thread_safe)
        cache.__doc__ = f.__doc__
        return cache

    if func is None:
        return wrap
    return wrap(func)
