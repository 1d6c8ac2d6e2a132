r"""
Common set-up for all tests.

Defines fixtures that generate random cost matrices.
"""

from __future__ import annotations

import numpy as np
import pytest

from linassign import debug


@pytest.fixture()
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


@pytest.fixture()
def debug_enabled(monkeypatch):
    """
    Enable the verification of every solution for the duration of a test.
    """
    monkeypatch.setenv("LINASSIGN_DEBUG", "1")
    debug.check_debug_enabled.cache_clear()
    yield
    debug.check_debug_enabled.cache_clear()
