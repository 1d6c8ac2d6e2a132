"""
Exceptions raised while solving an assignment problem.
"""

from __future__ import annotations

__all__ = ["AssignmentError", "InvalidInputError", "InfeasibleError"]


class AssignmentError(Exception):
    """
    Base class of all errors raised by this package.
    """


class InvalidInputError(AssignmentError, ValueError):
    """
    The cost matrix does not meet the preconditions of the requested solver,
    e.g. it has the wrong shape or numeric kind, contains NaN, or has negative
    costs while validation is enabled.
    """


class InfeasibleError(AssignmentError, RuntimeError):
    """
    No matching exists that assigns every row of the (normalized) problem.
    """
