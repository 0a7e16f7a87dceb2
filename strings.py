"""String helpers."""

from typing import Optional


def begins(s: str, prefix: str) -> bool:
    """Check whether s begins with prefix"""
    return len(s) >= len(prefix) and s[:len(prefix)] == prefix


def ends(s: str, suffix: str) -> bool:
    """Check whether s ends with suffix"""
    return len(s) >= len(suffix) and s[len(s) - len(suffix):] == suffix


def with_suffix(s: str, suffix: str) -> str:
    """Append suffix unless s already ends with it"""
    return s if ends(s, suffix) else s + suffix


def is_empty(s: Optional[str]) -> bool:
    return s is None or len(s) == 0


def if_empty(s: Optional[str], default):
    """Return s, or default when s is None or empty"""
    return default if is_empty(s) else s


def dquote(s: str) -> str:
    return '"' + s + '"'


def trim(s: Optional[str], chars: Optional[str] = None) -> str:
    """Strip chars (whitespace by default) from both ends; None becomes ''"""
    if s is None:
        return ""
    return s.strip(chars)
