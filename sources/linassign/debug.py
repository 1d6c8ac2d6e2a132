"""
Simple switch to enable diagnostic output of the solvers via the environment.
"""

from __future__ import annotations

import functools

__all__ = ["check_debug_enabled"]


@functools.cache
def check_debug_enabled():
    """
    Check whether debugging is enabled by reading the environment
    variable ``LINASSIGN_DEBUG``.

    When enabled, :func:`linassign.solve` verifies the optimality certificate of
    every result and logs the transforms it applied.
    """
    from unipercept.config.env import get_env

    return get_env(bool, "LINASSIGN_DEBUG", default=False)
