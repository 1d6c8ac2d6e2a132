from __future__ import annotations

import typing as T
from abc import ABC, abstractmethod

import numpy as np
import numpy.typing as NP

from .._assignment import Assignment
from ..errors import InvalidInputError
from ..sparse import SparseCostMatrix, absent_sentinel

__all__ = ["Matcher", "CostMatrix", "as_cost_matrix"]

CostMatrix: T.TypeAlias = T.Union[NP.ArrayLike, SparseCostMatrix]


def as_cost_matrix(cost: CostMatrix) -> SparseCostMatrix:
    """
    Convert a dense cost matrix to CSR form, dropping the entries that equal the
    minimizing sentinel of its dtype. Sparse inputs are returned as-is.
    """
    if isinstance(cost, SparseCostMatrix):
        return cost

    dense = np.asarray(cost)
    if dense.ndim != 2:
        raise InvalidInputError(
            f"Cost matrix must be two-dimensional, got shape {dense.shape}!"
        )
    if dense.dtype == np.bool_ or not np.issubdtype(dense.dtype, np.number):
        raise InvalidInputError(
            f"Costs must be integer or real, got dtype {dense.dtype}!"
        )
    return SparseCostMatrix.from_dense(dense, absent_sentinel(dense.dtype))


class Matcher(ABC):
    """
    Solves a linear assignment problem to optimality.

    Subclasses state their preconditions through :attr:`requires_square` and
    :attr:`requires_integer`, which :func:`linassign.solve` uses to pick a
    matcher and to reject matchers that cannot handle a problem.
    """

    name: T.ClassVar[str]
    requires_square: T.ClassVar[bool] = False
    requires_integer: T.ClassVar[bool] = False

    def __call__(self, cost: CostMatrix) -> Assignment:
        return self.solve(cost)

    def solve(self, cost: CostMatrix) -> Assignment:
        """
        Solve the minimization problem over the cost matrix.

        Parameters
        ----------
        cost
            Dense cost matrix (N x M) where absent edges hold ``+inf`` (real) or
            the largest integer of the dtype, or a :class:`SparseCostMatrix`.

        Returns
        -------
            The optimal assignment and its dual potentials.
        """
        matrix = as_cost_matrix(cost)
        self.check(matrix)

        if min(matrix.shape) == 0:
            return Assignment.unmatched(*matrix.shape)

        return self._match(matrix)

    def supports(self, shape: tuple[int, int], is_integer: bool) -> bool:
        """
        Whether a problem of the given shape and numeric kind can be passed to
        this matcher after normalization (i.e. with at most as many rows as
        columns and non-negative costs).
        """
        if self.requires_square and shape[0] != shape[1]:
            return False
        if self.requires_integer and not is_integer:
            return False
        return True

    def check(self, matrix: SparseCostMatrix) -> None:
        """
        Raise an :class:`InvalidInputError` if the matrix violates the
        preconditions of this matcher.
        """
        if not matrix.is_integer and not np.all(np.isfinite(matrix.values)):
            raise InvalidInputError(
                "Present costs must be finite; use +inf only to mark absent edges!"
            )
        if self.requires_square and matrix.num_rows != matrix.num_columns:
            raise InvalidInputError(
                f"{self.__class__.__name__} requires a square cost matrix, "
                f"got shape {matrix.shape}!"
            )
        if self.requires_integer and not matrix.is_integer:
            raise InvalidInputError(
                f"{self.__class__.__name__} requires integer costs, "
                f"got dtype {matrix.dtype}!"
            )

    @abstractmethod
    def _match(self, matrix: SparseCostMatrix) -> Assignment:
        raise NotImplementedError
