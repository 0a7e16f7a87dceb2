"""
Utility functions for the lazy-memo service.

Named sources, predicates, transforms and memoized functions, pipeline
evaluation, performance tracking and log formatting.
"""

import logging
import math
import time
from itertools import islice
from typing import Any, Callable, Dict, List, Optional

from lazy import LazySequence, count_down, indexed, items_of, lazy_filter, lazy_transform
from memo import EvictionMode, MemoCache

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Upper bound on pairs returned by a single evaluation
MAX_SEQUENCE_ITEMS = 10_000

# Largest argument accepted by the iterative memo functions
MAX_MEMO_ARGUMENT = 10_000

DEFAULT_EVICTION_MODE = EvictionMode.STRONG

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class UnknownOperationError(LookupError):
    """Raised when a source, predicate, transform or memo function name is not registered."""
    pass


class PipelineError(Exception):
    """Raised when evaluating a sequence pipeline fails."""
    pass


# --------- log formatting ----------
SEVERITY_NAMES = {
    TRACE: "Trace",
    logging.DEBUG: "Debug",
    logging.INFO: "Info",
    logging.WARNING: "Warning",
    logging.ERROR: "Error",
    logging.CRITICAL: "Fatal",
}


class SeverityFormatter(logging.Formatter):
    """Formats records as '<Severity padded to 9> <message>'."""

    def format(self, record):
        severity = SEVERITY_NAMES.get(record.levelno, record.levelname.title())
        line = f"{severity:<9} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: int = logging.INFO, handler: Optional[logging.Handler] = None) -> logging.Handler:
    """Attach a SeverityFormatter handler to the root logger"""
    handler = handler or logging.StreamHandler()
    handler.setFormatter(SeverityFormatter())
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level)
    return handler


# --------- registries ----------
def _arg(arg, default):
    return default if arg is None else arg


PREDICATES: Dict[str, Callable[[Any], Callable[[Any], bool]]] = {
    "even": lambda arg: lambda x: x % 2 == 0,
    "odd": lambda arg: lambda x: x % 2 == 1,
    "positive": lambda arg: lambda x: x > 0,
    "nonzero": lambda arg: lambda x: x != 0,
    "truthy": lambda arg: lambda x: bool(x),
    "greater_than": lambda arg: lambda x: x > _arg(arg, 0),
    "less_than": lambda arg: lambda x: x < _arg(arg, 0),
    "divisible_by": lambda arg: lambda x: x % _arg(arg, 1) == 0,
}

TRANSFORMS: Dict[str, Callable[[Any], Callable[[Any], Any]]] = {
    "add": lambda arg: lambda x: x + _arg(arg, 1),
    "multiply": lambda arg: lambda x: x * _arg(arg, 2),
    "square": lambda arg: lambda x: x * x,
    "negate": lambda arg: lambda x: -x,
    "upper": lambda arg: lambda x: str(x).upper(),
    "to_string": lambda arg: lambda x: str(x),
}

SOURCE_KINDS = ("count_down", "indexed", "items")


def _square(n):
    n = _arg(n, 0)
    return n * n


def _check_bound(name, n):
    if n > MAX_MEMO_ARGUMENT:
        raise ValueError(f"{name} argument {n} exceeds the maximum of {MAX_MEMO_ARGUMENT}")


def _factorial(n):
    n = _arg(n, 0)
    if n < 0:
        raise ValueError(f"factorial is undefined for negative values: {n}")
    _check_bound("factorial", n)
    return math.factorial(n)


def _fibonacci(n):
    n = _arg(n, 0)
    if n < 0:
        raise ValueError(f"fibonacci is undefined for negative values: {n}")
    _check_bound("fibonacci", n)
    a, b = 0, 1
    for _ in range(n):
        a, b = b, a + b
    return a


def _word_length(word):
    return len(_arg(word, ""))


MEMO_FUNCTIONS: Dict[str, Callable[[Any], Any]] = {
    "square": _square,
    "factorial": _factorial,
    "fibonacci": _fibonacci,
    "word_length": _word_length,
}

_memo_caches: Dict[str, MemoCache] = {}


def get_memo_cache(name: str) -> MemoCache:
    """Return the shared MemoCache for a registered function, creating it on first use"""
    if name not in MEMO_FUNCTIONS:
        raise UnknownOperationError(f"Unknown memo function: {name}")
    cache = _memo_caches.get(name)
    if cache is None:
        cache = MemoCache(MEMO_FUNCTIONS[name], DEFAULT_EVICTION_MODE, thread_safe=True)
        _memo_caches[name] = cache
        logger.info(f"Created memo cache for {name} (mode={cache.eviction_mode.value})")
    return cache


def lookup_memoized(name: str, key: Any = None) -> Dict[str, Any]:
    """Look key up in a named memo cache, reporting whether it was a hit"""
    cache = get_memo_cache(name)
    start_time = time.perf_counter()
    success = False
    try:
        hit = key in cache
        value = cache.get(key)
        success = True
    finally:
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        _record_metric("memo_lookup", execution_time_ms, success)
    return {
        "function_name": name,
        "key": key,
        "value": value,
        "cache_hit": hit,
        "stats": cache.stats(),
        "execution_time_ms": execution_time_ms,
    }


def clear_memo_cache(name: str) -> Dict[str, Any]:
    cache = get_memo_cache(name)
    removed = len(cache)
    cache.clear()
    return {"function_name": name, "entries_removed": removed}


def get_catalog() -> Dict[str, List[str]]:
    return {
        "sources": list(SOURCE_KINDS),
        "predicates": sorted(PREDICATES),
        "transforms": sorted(TRANSFORMS),
        "memo_functions": sorted(MEMO_FUNCTIONS),
    }


# --------- pipelines ----------
def build_source(kind: str, value: Any = None, count: Optional[int] = None,
                 items: Any = None) -> LazySequence:
    """Create the producer a pipeline starts from"""
    if kind == "count_down":
        return count_down(value, count)
    if kind == "indexed":
        return indexed(list(items or []))
    if kind == "items":
        return items_of(dict(items or {}))
    raise UnknownOperationError(f"Unknown source: {kind}")


def build_pipeline(seq: LazySequence, operations: List[Dict[str, Any]]) -> LazySequence:
    """Wrap seq in filter/transform adapters, in order"""
    for op in operations:
        op_type = op.get("type")
        name = op.get("name")
        arg = op.get("arg")

        if op_type == "filter":
            if name not in PREDICATES:
                raise UnknownOperationError(f"Unknown predicate: {name}")
            seq = lazy_filter(PREDICATES[name](arg), seq)

        elif op_type == "transform":
            if name not in TRANSFORMS:
                raise UnknownOperationError(f"Unknown transform: {name}")
            seq = lazy_transform(TRANSFORMS[name](arg), seq)

        else:
            raise UnknownOperationError(f"Unknown operation type: {op_type}")
    return seq


def evaluate_sequence(source: Dict[str, Any], operations: List[Dict[str, Any]],
                      limit: Optional[int] = None) -> Dict[str, Any]:
    """Build and run a pipeline, pulling at most limit pairs"""
    limit = min(limit or MAX_SEQUENCE_ITEMS, MAX_SEQUENCE_ITEMS)
    seq = build_pipeline(build_source(**source), operations)

    start_time = time.perf_counter()
    try:
        pulled = list(islice(seq, limit + 1))
    except Exception as e:
        _record_metric("evaluate_sequence", (time.perf_counter() - start_time) * 1000, False)
        logger.warning(f"Pipeline evaluation failed: {e}")
        raise PipelineError(str(e)) from e
    processing_time_ms = (time.perf_counter() - start_time) * 1000
    _record_metric("evaluate_sequence", processing_time_ms, True)

    truncated = len(pulled) > limit
    pairs = pulled[:limit]
    return {
        "pairs": [[cursor, value] for cursor, value in pairs],
        "values": [value for _, value in pairs],
        "count": len(pairs),
        "truncated": truncated,
        "operations_applied": [op.get("type") for op in operations],
        "performance": {
            "processing_time_ms": processing_time_ms,
            "output_size": len(pairs),
            "operation": "lazy_pipeline",
        },
    }


# --------- performance tracking ----------
_performance_metrics = {
    "operations": [],
    "total_time_ms": 0.0,
    "operation_count": 0,
    "failure_count": 0,
}


def _record_metric(operation_name: str, execution_time_ms: float, success: bool):
    _performance_metrics["operations"].append({
        "operation": operation_name,
        "execution_time_ms": execution_time_ms,
        "success": success,
        "timestamp": time.time(),
    })
    _performance_metrics["total_time_ms"] += execution_time_ms
    _performance_metrics["operation_count"] += 1
    if not success:
        _performance_metrics["failure_count"] += 1


def get_performance_summary() -> Dict[str, Any]:
    """Get summary of all performance metrics"""
    count = _performance_metrics["operation_count"]
    return {
        "total_operations": count,
        "failed_operations": _performance_metrics["failure_count"],
        "total_time_ms": _performance_metrics["total_time_ms"],
        "avg_time_ms": _performance_metrics["total_time_ms"] / count if count else 0.0,
    }


def clear_performance_metrics():
    """Clear all performance metrics"""
    global _performance_metrics
    _performance_metrics = {
        "operations": [],
        "total_time_ms": 0.0,
        "operation_count": 0,
        "failure_count": 0,
    }


def get_cache_health() -> Dict[str, Any]:
    return {name: cache.stats() for name, cache in _memo_caches.items()}
