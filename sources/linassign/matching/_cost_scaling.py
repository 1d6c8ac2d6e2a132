r"""
Cost-scaling push-relabel solver for square assignment problems with integer
costs.

This is closely based on Section 4.6.4 of Burkard, Dell'Amico and Martello,
*Assignment Problems*, SIAM 2012, which in turn is based on the cost-scaling
assignment (CSA) approach of

    A.V. Goldberg and R. Kennedy.
    An efficient cost scaling algorithm for the assignment problem.
    Math. Program., 71:153-177, 1995

in which the push-relabel step is performed using the "double push" algorithm.

The potentials of the last scale are only epsilon-optimal, so exact potentials
for the final matching are recovered as shortest-path distances in its residual
graph.

Unless ``strict`` is enabled, no attempt is made to detect whether a perfect
matching exists beyond rows that run out of edges while trimming. The scaling
loop may then run forever on infeasible inputs.
"""

from __future__ import annotations

import logging
import typing as T

import numpy as np
import numpy.typing as NP
import scipy.sparse
import scipy.sparse.csgraph
import typing_extensions as TX

from .._assignment import Assignment
from ..errors import AssignmentError, InfeasibleError, InvalidInputError
from ..sparse import SparseCostMatrix
from ._base import CostMatrix, Matcher

__all__ = ["CostScalingMatcher", "cost_scaling_assignment"]

_logger = logging.getLogger(__name__)


class CostScalingMatcher(Matcher):
    """
    Solves the assignment over a square integer cost matrix by solving a
    sequence of relaxed problems with a geometrically shrinking precision
    ``epsilon``.
    """

    name: T.ClassVar[str] = "cost_scaling"
    requires_square: T.ClassVar[bool] = True
    requires_integer: T.ClassVar[bool] = True

    alpha: float
    initial_epsilon: float | None
    strict: bool
    max_iterations: int | None

    def __init__(
        self,
        alpha: float = 10.0,
        initial_epsilon: float | None = None,
        strict: bool = False,
        max_iterations: int | None = None,
    ):
        """
        Parameters
        ----------
        alpha, optional
            Factor by which ``epsilon`` is reduced at every scale.
        initial_epsilon, optional
            Estimate of the largest absolute cost, which saves a scan over all
            costs when known in advance.
        strict, optional
            Whether to verify that a perfect matching exists before scaling,
            raising an :class:`InfeasibleError` otherwise.
        max_iterations, optional
            Maximum number of double-push steps over all scales, after which an
            :class:`InfeasibleError` is raised. Unbounded by default.
        """
        if alpha <= 1:
            raise InvalidInputError(f"Scaling factor must exceed 1, got {alpha}!")
        if initial_epsilon is not None and initial_epsilon <= 0:
            raise InvalidInputError(
                f"Initial epsilon must be positive, got {initial_epsilon}!"
            )

        self.alpha = alpha
        self.initial_epsilon = initial_epsilon
        self.strict = strict
        self.max_iterations = max_iterations

    @TX.override
    def _match(self, matrix: SparseCostMatrix) -> Assignment:
        n = matrix.num_rows
        active_rows = np.ones(n, dtype=np.bool_)
        active_cols = np.ones(n, dtype=np.bool_)

        # Rows with a single incident edge are matched up front, which
        # guarantees that every row seen by the double push has two edges
        fixed = _trim(matrix, active_rows, active_cols)
        rows = np.flatnonzero(active_rows)
        cols = np.flatnonzero(active_cols)
        sub = _submatrix(matrix, active_rows, active_cols)

        if self.strict:
            _check_perfect_matching(sub)

        col = self._scale(sub)
        x = _reattach(n, fixed, rows, cols, col)

        _logger.debug(
            "Cost scaling matched %d rows, of which %d were fixed while trimming",
            n,
            len(fixed),
        )

        u, v = _exact_potentials(matrix, x)
        y = np.full(n, -1, dtype=np.int64)
        y[x] = np.arange(n, dtype=np.int64)

        return Assignment(x, y, u, v)

    def _scale(self, sub: SparseCostMatrix) -> NP.NDArray[np.int64]:
        """
        Find an optimal assignment of the trimmed submatrix. The potentials of
        the final scale are only epsilon-optimal and are discarded.
        """
        n = sub.num_rows
        values = sub.values.astype(np.float64)

        u = np.zeros(n, dtype=np.float64)
        v = np.zeros(n, dtype=np.float64)
        col = np.full(n, -1, dtype=np.int64)
        row = np.full(n, -1, dtype=np.int64)
        if n == 0:
            return col

        if self.initial_epsilon is not None:
            epsilon = float(self.initial_epsilon)
        else:
            epsilon = float(np.abs(values).max())
        # At least one scale must run to produce an assignment
        epsilon = max(epsilon, 1.0)

        row_index = sub.row_indices()
        iterations = 0
        scales = 0
        while epsilon >= 1.0 / n:
            epsilon /= self.alpha
            scales += 1
            col.fill(-1)
            row.fill(-1)
            unassigned = list(range(n - 1, 0, -1))

            # Lower the row potentials until no reduced cost is negative
            reduced_min = np.full(n, np.inf)
            np.minimum.at(reduced_min, row_index, values - v[sub.col_index])
            np.minimum(u, reduced_min, out=u)

            k = 0
            while k >= 0:
                iterations += 1
                if self.max_iterations is not None and iterations > self.max_iterations:
                    raise InfeasibleError(
                        f"No assignment found within {self.max_iterations} "
                        "double-push steps; the problem is likely infeasible!"
                    )
                k = _double_push(sub, values, k, epsilon, u, v, col, row, unassigned)

        _logger.debug("Cost scaling took %d scales and %d steps", scales, iterations)

        return col


def cost_scaling_assignment(
    cost: CostMatrix,
    alpha: float = 10.0,
    initial_epsilon: float | None = None,
    strict: bool = False,
) -> Assignment:
    """
    See :class:`CostScalingMatcher`.
    """
    matcher = CostScalingMatcher(
        alpha=alpha, initial_epsilon=initial_epsilon, strict=strict
    )
    return matcher.solve(cost)


def _double_push(
    sub: SparseCostMatrix,
    values: NP.NDArray[np.float64],
    k: int,
    epsilon: float,
    u: NP.NDArray[np.float64],
    v: NP.NDArray[np.float64],
    col: NP.NDArray[np.int64],
    row: NP.NDArray[np.int64],
    unassigned: list[int],
) -> int:
    """
    Assign row ``k`` to its cheapest column, evicting the previous holder of that
    column if any. Returns the next row to process, or ``-1`` when all rows are
    assigned.
    """
    start, end = sub.row_start[k], sub.row_start[k + 1]
    cols = sub.col_index[start:end]
    costs = values[start:end]
    reduced = costs - u[k] - v[cols]

    # Last occurrence of the smallest and of the second smallest reduced cost
    last = len(reduced) - 1
    first = last - int(np.argmin(reduced[::-1]))
    reduced[first] = np.inf
    second = last - int(np.argmin(reduced[::-1]))

    j = int(cols[first])
    z = int(cols[second])
    col[k] = j
    u[k] = costs[second] - v[z]

    i = int(row[j])
    row[j] = k
    if i != -1:
        v[j] = costs[first] - u[k] - epsilon
        col[i] = -1
        return i

    if not unassigned:
        return -1
    return unassigned.pop()


def _trim(
    matrix: SparseCostMatrix,
    active_rows: NP.NDArray[np.bool_],
    active_cols: NP.NDArray[np.bool_],
) -> list[tuple[int, int]]:
    """
    Repeatedly match rows that have exactly one edge to an active column, until
    a full pass over the rows changes nothing. Returns the fixed pairs in the
    order in which they were fixed.
    """
    fixed: list[tuple[int, int]] = []
    changed = True
    while changed:
        changed = False
        for i in np.flatnonzero(active_rows):
            cols, _ = matrix.row(i)
            live = cols[active_cols[cols]]
            if len(live) == 0:
                raise InfeasibleError(f"No feasible solution: row {i} has no edges!")
            if len(live) == 1:
                j = int(live[0])
                fixed.append((int(i), j))
                active_rows[i] = False
                active_cols[j] = False
                changed = True
    return fixed


def _submatrix(
    matrix: SparseCostMatrix,
    active_rows: NP.NDArray[np.bool_],
    active_cols: NP.NDArray[np.bool_],
) -> SparseCostMatrix:
    """
    Restrict the matrix to the active rows and columns, renumbering both.
    """
    row_index = matrix.row_indices()
    keep = active_rows[row_index] & active_cols[matrix.col_index]

    local_col = np.cumsum(active_cols) - 1
    counts = np.bincount(row_index[keep], minlength=matrix.num_rows)[active_rows]
    row_start = np.zeros(len(counts) + 1, dtype=np.int64)
    np.cumsum(counts, out=row_start[1:])

    return SparseCostMatrix(
        matrix.values[keep],
        row_start,
        local_col[matrix.col_index[keep]],
        int(active_cols.sum()),
    )


def _check_perfect_matching(sub: SparseCostMatrix) -> None:
    if sub.num_rows == 0:
        return
    edges = scipy.sparse.csr_matrix(
        (np.ones(sub.nnz, dtype=np.int8), sub.col_index, sub.row_start),
        shape=sub.shape,
    )
    matching = scipy.sparse.csgraph.maximum_bipartite_matching(
        edges, perm_type="column"
    )
    unmatched = int(np.count_nonzero(matching < 0))
    if unmatched > 0:
        raise InfeasibleError(
            f"No feasible solution: at most {sub.num_rows - unmatched} of "
            f"{sub.num_rows} rows can be matched!"
        )


def _reattach(
    n: int,
    fixed: list[tuple[int, int]],
    rows: NP.NDArray[np.int64],
    cols: NP.NDArray[np.int64],
    col: NP.NDArray[np.int64],
) -> NP.NDArray[np.int64]:
    """
    Merge the solution on the trimmed submatrix with the pairs fixed while
    trimming, returning the column assigned to each row of the full matrix.
    """
    x = np.full(n, -1, dtype=np.int64)
    x[rows] = cols[col]
    for r, c in fixed:
        x[r] = c
    return x


def _exact_potentials(
    matrix: SparseCostMatrix, x: NP.NDArray[np.int64]
) -> tuple[NP.NDArray[np.float64], NP.NDArray[np.float64]]:
    """
    Potentials that certify the optimality of the perfect matching ``x``.

    The residual graph has an arc ``i -> j`` of weight ``cost[i, j]`` for every
    unmatched edge and an arc ``j -> i`` of weight ``-cost[i, j]`` for every
    matched edge, plus a zero-weight arc from a source to every column. An
    optimal matching leaves no negative cycle, and with ``d`` the distances from
    the source, ``u = -d[rows]`` and ``v = d[cols]`` are feasible and tight on
    the matched edges, since each row is only entered through its match.
    """
    n = matrix.num_rows
    source = 2 * n
    row_index = matrix.row_indices()
    col_index = matrix.col_index
    values = matrix.values.astype(np.float64)
    matched = x[row_index] == col_index

    tail = np.where(matched, n + col_index, row_index)
    head = np.where(matched, row_index, n + col_index)
    weight = np.where(matched, -values, values)

    # Explicit zeros are edges to csgraph, so the source arcs are kept
    tail = np.concatenate((tail, np.full(n, source, dtype=np.int64)))
    head = np.concatenate((head, n + np.arange(n, dtype=np.int64)))
    weight = np.concatenate((weight, np.zeros(n, dtype=np.float64)))
    graph = scipy.sparse.csr_matrix(
        (weight, (tail, head)), shape=(2 * n + 1, 2 * n + 1)
    )

    try:
        dist = scipy.sparse.csgraph.bellman_ford(graph, directed=True, indices=source)
    except scipy.sparse.csgraph.NegativeCycleError as err:
        raise AssignmentError(
            "Cost scaling ended on a matching that is not optimal!"
        ) from err

    return -dist[:n], dist[n : 2 * n]
