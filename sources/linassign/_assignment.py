from __future__ import annotations

import typing as T

import numpy as np
import numpy.typing as NP

__all__ = ["Assignment"]


class Assignment(T.NamedTuple):
    """
    Solution of a linear assignment problem, together with the dual potentials
    that certify its optimality.

    Attributes
    ----------
    column_assignment: NDArray[int64] (N)
        Column assigned to each row, or ``-1`` when the row is unmatched.
        E.g. ``[0, 3, 2]`` means that the three rows have been assigned to the
        first, fourth and third column respectively.
    row_assignment: NDArray[int64] (M)
        Row assigned to each column, or ``-1`` when the column is unmatched.
    u: NDArray[float64] (N)
        Dual potential of each row.
    v: NDArray[float64] (M)
        Dual potential of each column.
    """

    column_assignment: NP.NDArray[np.int64]
    row_assignment: NP.NDArray[np.int64]
    u: NP.NDArray[np.float64]
    v: NP.NDArray[np.float64]

    @classmethod
    def unmatched(cls, num_rows: int, num_columns: int) -> Assignment:
        """
        An assignment in which no row is matched and all potentials are zero.
        """
        return cls(
            np.full(num_rows, -1, dtype=np.int64),
            np.full(num_columns, -1, dtype=np.int64),
            np.zeros(num_rows, dtype=np.float64),
            np.zeros(num_columns, dtype=np.float64),
        )

    @property
    def shape(self) -> tuple[int, int]:
        return len(self.column_assignment), len(self.row_assignment)

    @property
    def matches(self) -> NP.NDArray[np.int64]:
        """
        Matched ``(row, column)`` pairs as an array of shape ``(K, 2)``, ordered
        by row.
        """
        rows = np.flatnonzero(self.column_assignment >= 0)
        return np.column_stack((rows, self.column_assignment[rows])).astype(np.int64)

    def transposed(self) -> Assignment:
        """
        The same matching seen from the transposed cost matrix.
        """
        return Assignment(self.row_assignment, self.column_assignment, self.v, self.u)

    def negated(self) -> Assignment:
        """
        The same matching with both potentials negated, which is the certificate
        of the maximization problem that was solved as a minimization.
        """
        return self._replace(u=-self.u, v=-self.v)
