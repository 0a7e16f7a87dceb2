"""Small function combinators used alongside the lazy sequences."""

import functools
import logging
from typing import Any, Callable, Iterable, Mapping, Sequence

logger = logging.getLogger(__name__)


def combine_lexical_compare(comparators: Sequence[Callable[[Any, Any], int]]):
    """
    Combine three-way comparators into one lexical comparator.

    Each comparator returns <0, 0 or >0. The first non-zero result decides;
    when every comparator ties the result is 0.
    """
    tests = tuple(comparators)

    def compare(a, b):
        for fn in tests:
            check = fn(a, b)
            if check != 0:
                return check
        return 0

    return compare


def cmp_key(comparators: Sequence[Callable[[Any, Any], int]]):
    """Key function for sorted() built from lexical comparators"""
    return functools.cmp_to_key(combine_lexical_compare(comparators))


def every(filters: Iterable[Callable[[Any], Any]]):
    """Logical AND of predicates; returns the deciding result (None if no filters)"""
    filters = tuple(filters or ())

    def check(a):
        r = None
        for f in filters:
            r = f(a)
            if not r:
                return r
        return r

    return check


def any_of(filters: Iterable[Callable[[Any], Any]]):
    """Logical OR of predicates; returns the deciding result (None if no filters)"""
    filters = tuple(filters or ())

    def check(a):
        r = None
        for f in filters:
            r = f(a)
            if r:
                return r
        return r

    return check


def map_values(fn, items):
    """Apply fn to every value, keeping keys (mappings) or positions (sequences)"""
    if isinstance(items, Mapping):
        return {k: fn(v) for k, v in items.items()}
    return [fn(v) for v in items]


def _render(buf, x):
    if not isinstance(x, Mapping):
        buf.append(str(x))
        return
    buf.append("{")
    for n, (k, v) in enumerate(x.items()):
        if n:
            buf.append(", ")
        _render(buf, k)
        buf.append(" = ")
        _render(buf, v)
    buf.append("}")


def to_display_string(x) -> str:
    """str() that also renders nested mappings as {k = v, ...}"""
    buf = []
    _render(buf, x)
    return "".join(buf)


def trace(*objs):
    """Log objects at debug level, rendered with to_display_string"""
    logger.debug(" ".join(to_display_string(o) for o in objs))
