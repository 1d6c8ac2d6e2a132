r"""
General entry point that adapts arbitrary cost matrices to the preconditions of
the matchers and maps the solution back to the original problem.
"""

from __future__ import annotations

import logging
import typing as T

import numpy as np

from . import verify
from ._assignment import Assignment
from .debug import check_debug_enabled
from .errors import InvalidInputError
from .matching import CostMatrix, CostScalingMatcher, Matcher, ShortestPathMatcher
from .sparse import SparseCostMatrix, absent_sentinel

__all__ = ["solve", "MATCHERS"]

_logger = logging.getLogger(__name__)

_EXACT_INTEGER_LIMIT: T.Final = 2**53

MATCHERS: T.Final[dict[str, type[Matcher]]] = {
    ShortestPathMatcher.name: ShortestPathMatcher,
    CostScalingMatcher.name: CostScalingMatcher,
}


def solve(
    cost: CostMatrix,
    maximize: bool = False,
    matcher: Matcher | str | None = None,
) -> Assignment:
    """
    Solve the linear assignment problem over a cost matrix.

    Parameters
    ----------
    cost
        Dense cost matrix (N x M) or a :class:`SparseCostMatrix`. In a dense
        matrix, absent edges are marked by ``+inf`` (``-inf`` when maximizing)
        for real costs and by the largest (smallest when maximizing) value of
        the dtype for integer costs. The matrix is never modified.
    maximize, optional
        Whether to find the matching of maximal rather than minimal cost.
    matcher, optional
        Matcher instance or name (see :data:`MATCHERS`). By default, square
        integer problems are solved by cost scaling and all other problems by
        shortest augmenting paths.

    Returns
    -------
        The optimal assignment and the dual potentials of the original problem.
        When there are fewer rows than columns, every row is matched; when there
        are more rows than columns, every column is matched.
    """
    matrix = _as_private_matrix(cost, maximize)
    num_rows, num_columns = matrix.shape
    if min(num_rows, num_columns) == 0:
        return Assignment.unmatched(num_rows, num_columns)

    matcher = _select_matcher(matcher, matrix)
    if not matcher.supports(
        (min(num_rows, num_columns), max(num_rows, num_columns)), matrix.is_integer
    ):
        raise InvalidInputError(
            f"{matcher.__class__.__name__} can not solve a {num_rows} x {num_columns} "
            f"problem with costs of dtype {matrix.dtype}!"
        )

    if maximize:
        matrix = matrix.with_values(-matrix.values)

    transposed = num_rows > num_columns
    if transposed:
        matrix = matrix.transpose()

    if matrix.is_integer and matrix.nnz > 0:
        _check_integer_range(matrix)

    shift = 0
    if matrix.nnz > 0:
        lowest = matrix.values.min()
        if lowest < 0:
            shift = lowest
            matrix = matrix.with_values(matrix.values - shift)

    if check_debug_enabled():
        _logger.debug(
            "Solving %d x %d problem with %s (maximize=%s, transposed=%s, shift=%s)",
            num_rows,
            num_columns,
            matcher.__class__.__name__,
            maximize,
            transposed,
            shift,
        )

    result = matcher.solve(matrix)
    result = result._replace(u=result.u + shift)
    if transposed:
        result = result.transposed()
    if maximize:
        result = result.negated()

    if check_debug_enabled():
        _verify(cost, result, maximize)

    return result


def _as_private_matrix(cost: CostMatrix, maximize: bool) -> SparseCostMatrix:
    """
    Validate the input and collect its present edges into a CSR matrix that
    shares no memory with the caller's data.
    """
    if isinstance(cost, SparseCostMatrix):
        matrix = cost.copy()
        if not matrix.is_integer and np.isnan(matrix.values).any():
            raise InvalidInputError("Costs must not contain NaN!")
    else:
        dense = np.asarray(cost)
        if dense.ndim != 2:
            raise InvalidInputError(
                f"Cost matrix must be two-dimensional, got shape {dense.shape}!"
            )
        if dense.dtype == np.bool_ or not np.issubdtype(dense.dtype, np.number):
            raise InvalidInputError(
                f"Costs must be integer or real, got dtype {dense.dtype}!"
            )
        if np.issubdtype(dense.dtype, np.floating):
            if np.isnan(dense).any():
                raise InvalidInputError("Costs must not contain NaN!")
            if (dense == (np.inf if maximize else -np.inf)).any():
                raise InvalidInputError(
                    f"Costs must not contain {'+inf' if maximize else '-inf'} when "
                    f"{'maximizing' if maximize else 'minimizing'}!"
                )
        matrix = SparseCostMatrix.from_dense(
            dense, absent_sentinel(dense.dtype, maximize)
        )

    if matrix.is_integer:
        # Signed working copy, such that negating and shifting can not wrap
        matrix = matrix.astype(np.int64)
    elif not np.isfinite(matrix.values).all():
        raise InvalidInputError("Present costs must be finite!")
    return matrix


def _select_matcher(
    matcher: Matcher | str | None, matrix: SparseCostMatrix
) -> Matcher:
    if isinstance(matcher, Matcher):
        return matcher
    if isinstance(matcher, str):
        try:
            return MATCHERS[matcher]()
        except KeyError:
            raise InvalidInputError(
                f"Unknown matcher {matcher!r}, expected one of {sorted(MATCHERS)}!"
            ) from None
    if matcher is not None:
        raise InvalidInputError(f"Expected a matcher or its name, got {matcher!r}!")

    if matrix.is_integer and matrix.num_rows == matrix.num_columns:
        return CostScalingMatcher()
    return ShortestPathMatcher()


def _verify(cost: CostMatrix, result: Assignment, maximize: bool) -> None:
    if not verify.check_assignment_consistent(result):
        _logger.warning("Row and column assignments are not mutually inverse")
    if not verify.check_dual_feasible(cost, result, maximize=maximize):
        _logger.warning("Dual potentials are infeasible")
    if not verify.check_complementary_slackness(cost, result, maximize=maximize):
        _logger.warning("Complementary slackness is violated on a matched edge")


def _check_integer_range(matrix: SparseCostMatrix) -> None:
    """
    Integer costs are solved in double precision after shifting them to be
    non-negative, which is exact only while the shifted costs stay below
    ``2**53``.
    """
    lowest = min(int(matrix.values.min()), 0)
    spread = int(matrix.values.max()) - lowest
    if spread > _EXACT_INTEGER_LIMIT:
        raise InvalidInputError(
            f"Integer costs must span at most 2**53, got a range of {spread}!"
        )
