"""
Pytest configuration file.

This file ensures that the project root is in the Python path
so that test files can import lazy, memo, utils, models and app.
"""

import sys
from pathlib import Path

import pytest

# Add the parent directory to the Python path
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))


@pytest.fixture
def call_log():
    """Records every argument a compute function was called with."""
    return []


@pytest.fixture
def counted(call_log):
    """A compute function that squares its argument and logs each call."""
    def compute(x):
        call_log.append(x)
        return None if x is None else x * x
    return compute


@pytest.fixture(autouse=True)
def reset_service_state():
    """Clear shared memo caches and metrics between tests."""
    import utils
    utils._memo_caches.clear()
    utils.clear_performance_metrics()
    yield
    utils._memo_caches.clear()
