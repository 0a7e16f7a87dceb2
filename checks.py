"""
Assertion helpers.

check_* functions raise AssertionFailure with a formatted message; halt()
logs a fatal message and terminates through an exit primitive.
"""

import logging
import sys
from typing import Any, Callable, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


class AssertionFailure(AssertionError):
    """Raised when a check does not hold."""

    def __init__(self, message, expected=None, actual=None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


def fail(msg: str = "Assertion failed"):
    """Unconditionally fail"""
    raise AssertionFailure(msg)


def check(condition, msg: str = "Assertion failed"):
    """Check a boolean condition; returns it when truthy"""
    if not condition:
        raise AssertionFailure(msg)
    return condition


def check_eq(expected, actual, msg: Optional[str] = None):
    if expected != actual:
        raise AssertionFailure(
            f"{msg or 'Assertion failed'}: expected {str(expected)!r}, got {str(actual)!r}",
            expected=expected,
            actual=actual,
        )


def _is_sequence(x) -> bool:
    return isinstance(x, Sequence) and not isinstance(x, (str, bytes))


def check_equal(expected, actual, msg: Optional[str] = None):
    """Deep equality: mappings and sequences are compared element by element"""
    if expected == actual:
        return
    if isinstance(expected, Mapping) and isinstance(actual, Mapping):
        check_eq(len(expected), len(actual), msg)
        for k, v in expected.items():
            check_equal(v, actual.get(k), msg)
    elif _is_sequence(expected) and _is_sequence(actual):
        check_eq(len(expected), len(actual), msg)
        for e, a in zip(expected, actual):
            check_equal(e, a, msg)
    else:
        check_eq(expected, actual, msg)


def check_fun(fn: Callable, inputs: Sequence, expected: Sequence):
    """Check fn(inputs[i]) == expected[i]; failures are labelled with i"""
    for i, v in enumerate(inputs):
        check_equal(expected[i], fn(v), str(i))


def halt(msg: Optional[str] = None, return_code: int = -1,
         exit_fn: Callable[[int], Any] = sys.exit):
    """Log msg at critical level and terminate via exit_fn"""
    logger.critical(msg or "--- HALT ---")
    return exit_fn(return_code)
