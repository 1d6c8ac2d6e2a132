r"""
Primal-dual shortest augmenting path solver for rectangular assignment problems.

The method follows the pseudo-code of

    DF Crouse. On implementing 2D rectangular assignment algorithms.
    IEEE Transactions on Aerospace and Electronic Systems
    52(4):1679-1696, August 2016

which in turn is based on Section 4.4 of Burkard, Dell'Amico and Martello,
*Assignment Problems*, SIAM 2012. It is the same algorithm as used by
:func:`scipy.optimize.linear_sum_assignment`, here operating on the present
edges of a CSR matrix so that dense and sparse problems share one code path.
"""

from __future__ import annotations

import logging
import typing as T

import numpy as np
import numpy.typing as NP
import typing_extensions as TX

from .._assignment import Assignment
from ..errors import InfeasibleError, InvalidInputError
from ..sparse import SparseCostMatrix
from ._base import CostMatrix, Matcher

__all__ = ["ShortestPathMatcher", "shortest_path_assignment"]

_logger = logging.getLogger(__name__)


class ShortestPathMatcher(Matcher):
    """
    Finds a matching one row at a time by augmenting along shortest paths in the
    reduced costs. Supports real and integer costs and at most as many rows as
    columns. Every row is matched.
    """

    name: T.ClassVar[str] = "shortest_path"

    validate: bool

    def __init__(self, validate: bool = True):
        """
        Parameters
        ----------
        validate, optional
            Whether to reject negative costs. The dual updates keep all reduced
            costs non-negative only when the search starts from non-negative
            costs; :func:`linassign.solve` shifts costs accordingly.
        """
        self.validate = validate

    @TX.override
    def check(self, matrix: SparseCostMatrix) -> None:
        super().check(matrix)

        if matrix.num_rows > matrix.num_columns:
            raise InvalidInputError(
                f"Cost can not have more rows than columns, got shape {matrix.shape}!"
            )
        if self.validate and matrix.nnz > 0 and matrix.values.min() < 0:
            raise InvalidInputError("All costs must be non-negative!")

    @TX.override
    def _match(self, matrix: SparseCostMatrix) -> Assignment:
        return _shortest_augmenting_paths(matrix)


def shortest_path_assignment(cost: CostMatrix, validate: bool = True) -> Assignment:
    """
    See :class:`ShortestPathMatcher`.
    """
    return ShortestPathMatcher(validate=validate).solve(cost)


class _Search(T.NamedTuple):
    sink: int
    min_val: float
    scanned_rows: NP.NDArray[np.bool_]
    scanned_cols: NP.NDArray[np.bool_]


def _shortest_augmenting_paths(matrix: SparseCostMatrix) -> Assignment:
    nr, nc = matrix.shape
    values = matrix.values.astype(np.float64)

    u = np.zeros(nr, dtype=np.float64)
    v = np.zeros(nc, dtype=np.float64)
    shortest_path_costs = np.empty(nc, dtype=np.float64)
    path = np.full(nc, -1, dtype=np.int64)
    x = np.full(nr, -1, dtype=np.int64)
    y = np.full(nc, -1, dtype=np.int64)

    # Find a matching one row at a time
    for cur_row in range(nr):
        search = _find_augmenting_path(
            matrix, values, cur_row, u, v, y, path, shortest_path_costs
        )

        # Update dual variables
        u[cur_row] += search.min_val
        others = search.scanned_rows.copy()
        others[cur_row] = False
        u[others] += search.min_val - shortest_path_costs[x[others]]
        scanned = search.scanned_cols
        v[scanned] -= search.min_val - shortest_path_costs[scanned]

        # Augment previous solution
        j = search.sink
        while True:
            i = path[j]
            y[j] = i
            j_next = x[i]
            x[i] = j
            j = j_next
            if i == cur_row:
                break

    _logger.debug("Matched %d rows to %d columns with %d edges", nr, nc, matrix.nnz)

    return Assignment(x, y, u, v)


def _find_augmenting_path(
    matrix: SparseCostMatrix,
    values: NP.NDArray[np.float64],
    cur_row: int,
    u: NP.NDArray[np.float64],
    v: NP.NDArray[np.float64],
    y: NP.NDArray[np.int64],
    path: NP.NDArray[np.int64],
    shortest_path_costs: NP.NDArray[np.float64],
) -> _Search:
    """
    Dijkstra-like search from ``cur_row`` to the nearest unmatched column. Fills
    ``path`` and ``shortest_path_costs`` for all columns that were reached.
    """
    nr, nc = matrix.shape
    row_start, col_index = matrix.row_start, matrix.col_index

    min_val = 0.0
    i = cur_row
    remaining = np.arange(nc, dtype=np.int64)
    num_remaining = nc
    shortest_path_costs.fill(np.inf)
    scanned_rows = np.zeros(nr, dtype=np.bool_)
    scanned_cols = np.zeros(nc, dtype=np.bool_)

    sink = -1
    while sink == -1:
        scanned_rows[i] = True

        # Relax the edges from the frontier row to all unscanned columns
        start, end = row_start[i], row_start[i + 1]
        cols = col_index[start:end]
        unscanned = ~scanned_cols[cols]
        cols = cols[unscanned]
        reduced = min_val + values[start:end][unscanned] - u[i] - v[cols]
        shorter = reduced < shortest_path_costs[cols]
        path[cols[shorter]] = i
        shortest_path_costs[cols[shorter]] = reduced[shorter]

        # Closest remaining column, preferring unmatched columns on ties so
        # that the search stops as early as possible
        candidates = remaining[:num_remaining]
        estimates = shortest_path_costs[candidates]
        lowest = estimates.min()
        if lowest == np.inf:
            raise InfeasibleError(
                f"No feasible solution: row {cur_row} can not reach an unmatched "
                "column!"
            )
        ties = np.flatnonzero(estimates == lowest)
        unmatched_ties = ties[y[candidates[ties]] == -1]
        index = unmatched_ties[-1] if len(unmatched_ties) > 0 else ties[0]

        min_val = float(lowest)
        j = int(candidates[index])
        scanned_cols[j] = True
        if y[j] == -1:
            sink = j
        else:
            i = int(y[j])

        # Swap-remove, which determines the order of visiting ties later on
        num_remaining -= 1
        remaining[index] = remaining[num_remaining]

    return _Search(sink, min_val, scanned_rows, scanned_cols)
