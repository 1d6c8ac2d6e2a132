r"""
Various utilities for checking solutions of assignment problems.
"""

from __future__ import annotations

import numpy as np
import numpy.typing as NP

from ._assignment import Assignment
from .matching import CostMatrix
from .sparse import SparseCostMatrix, absent_sentinel

__all__ = [
    "total_cost",
    "check_assignment_consistent",
    "check_dual_feasible",
    "check_complementary_slackness",
]


def _edges(
    cost: CostMatrix, maximize: bool
) -> tuple[NP.NDArray[np.int64], NP.NDArray[np.int64], NP.NDArray[np.float64]]:
    if isinstance(cost, SparseCostMatrix):
        matrix = cost
    else:
        dense = np.asarray(cost)
        matrix = SparseCostMatrix.from_dense(
            dense, absent_sentinel(dense.dtype, maximize)
        )
    return matrix.row_indices(), matrix.col_index, matrix.values.astype(np.float64)


def total_cost(cost: CostMatrix, assignment: Assignment) -> float:
    """
    Sum of the costs of all matched pairs.

    Parameters
    ----------
    cost
        The cost matrix (N x M).
    assignment
        A solution for the cost matrix.

    Returns
    -------
        The total cost of the assignment.
    """
    matches = assignment.matches
    if isinstance(cost, SparseCostMatrix):
        dense = cost.to_dense()
    else:
        dense = np.asarray(cost)
    return float(dense[matches[:, 0], matches[:, 1]].astype(np.float64).sum())


def check_assignment_consistent(assignment: Assignment) -> bool:
    """
    Whether the row and column assignments are mutual inverses on all matched
    indices.
    """
    x, y = assignment.column_assignment, assignment.row_assignment
    rows = np.flatnonzero(x >= 0)
    cols = np.flatnonzero(y >= 0)
    if len(rows) != len(cols):
        return False
    return bool(np.all(y[x[rows]] == rows) and np.all(x[y[cols]] == cols))


def check_dual_feasible(
    cost: CostMatrix, assignment: Assignment, maximize: bool = False, tol: float = 1e-9
) -> bool:
    """
    Whether ``u[i] + v[j] <= cost[i, j]`` holds on every present edge, or
    ``u[i] + v[j] >= cost[i, j]`` when the problem was maximized.
    """
    rows, cols, values = _edges(cost, maximize)
    slack = values - assignment.u[rows] - assignment.v[cols]
    if maximize:
        slack = -slack
    return bool(np.all(slack >= -tol))


def check_complementary_slackness(
    cost: CostMatrix, assignment: Assignment, maximize: bool = False, tol: float = 1e-9
) -> bool:
    """
    Whether ``u[i] + v[j] == cost[i, j]`` holds on every matched pair.
    """
    rows, cols, values = _edges(cost, maximize)
    matched = assignment.column_assignment[rows] == cols
    slack = values[matched] - assignment.u[rows[matched]] - assignment.v[cols[matched]]
    return bool(np.all(np.abs(slack) <= tol))
