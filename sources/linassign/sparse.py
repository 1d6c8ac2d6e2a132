r"""
Compressed sparse row (CSR) storage for cost matrices with absent edges.

A matrix with ``N`` rows is stored as three arrays:

- ``values``: the costs of all present edges, row after row;
- ``row_start``: ``N + 1`` offsets such that the edges of row ``i`` are found at
  ``values[row_start[i]:row_start[i + 1]]``;
- ``col_index``: the column of every stored edge.

The number of columns is stored explicitly, as trailing columns without any
edge cannot be derived from ``col_index``.
"""

from __future__ import annotations

import functools
import typing as T

import numpy as np
import numpy.typing as NP
import scipy.sparse

from .errors import InvalidInputError

__all__ = ["SparseCostMatrix", "absent_sentinel"]


def absent_sentinel(dtype: NP.DTypeLike, maximize: bool = False) -> T.Any:
    """
    The value that marks an absent edge in a dense cost matrix.

    Parameters
    ----------
    dtype
        Numeric type of the cost matrix.
    maximize
        Whether the matrix describes a maximization problem.

    Returns
    -------
        ``+inf``/``-inf`` for real matrices and the largest/smallest
        representable value for integer matrices, when minimizing/maximizing.
    """
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        return info.min if maximize else info.max
    if np.issubdtype(dtype, np.floating):
        return -np.inf if maximize else np.inf
    raise InvalidInputError(f"Costs must be integer or real, got dtype {dtype}!")


class SparseCostMatrix:
    """
    Cost matrix in compressed sparse row format. Only present edges are stored,
    thus no sentinel value ever takes part in arithmetic on the costs.
    """

    values: NP.NDArray[T.Any]
    row_start: NP.NDArray[np.int64]
    col_index: NP.NDArray[np.int64]
    num_columns: int

    def __init__(
        self,
        values: NP.ArrayLike,
        row_start: NP.ArrayLike,
        col_index: NP.ArrayLike,
        num_columns: int,
    ):
        """
        Parameters
        ----------
        values
            Costs of the present edges in row-major order.
        row_start
            Offsets of each row into ``values``, of length ``num_rows + 1``.
        col_index
            Column of each present edge.
        num_columns
            Number of columns of the matrix.
        """
        values = np.asarray(values)
        if values.size == 0 and not np.issubdtype(values.dtype, np.number):
            values = values.astype(np.float64)
        row_start = np.asarray(row_start, dtype=np.int64)
        col_index = np.asarray(col_index, dtype=np.int64)
        num_columns = int(num_columns)

        if values.ndim != 1 or row_start.ndim != 1 or col_index.ndim != 1:
            raise InvalidInputError("CSR arrays must be one-dimensional!")
        if not (
            np.issubdtype(values.dtype, np.integer)
            or np.issubdtype(values.dtype, np.floating)
        ):
            raise InvalidInputError(
                f"Costs must be integer or real, got dtype {values.dtype}!"
            )
        if len(row_start) == 0 or row_start[0] != 0:
            raise InvalidInputError("Row offsets must start at zero!")
        if row_start[-1] != len(values) or len(col_index) != len(values):
            raise InvalidInputError(
                f"Row offsets end at {row_start[-1]}, but {len(values)} values and "
                f"{len(col_index)} column indices were given!"
            )
        if np.any(np.diff(row_start) < 0):
            raise InvalidInputError("Row offsets must be non-decreasing!")
        if num_columns < 0 or (
            len(col_index) > 0
            and (col_index.min() < 0 or col_index.max() >= num_columns)
        ):
            raise InvalidInputError(
                f"Column indices must lie in [0, {num_columns})!"
            )

        self.values = values
        self.row_start = row_start
        self.col_index = col_index
        self.num_columns = num_columns

    @classmethod
    def from_dense(
        cls, dense: NP.ArrayLike, empty: T.Any = None
    ) -> SparseCostMatrix:
        """
        Collect all present entries of a dense matrix in row-major order.

        Parameters
        ----------
        dense
            Dense cost matrix (N x M).
        empty, optional
            Value that marks an absent edge. Defaults to the minimizing sentinel
            of the matrix dtype, see :func:`absent_sentinel`.
        """
        dense = np.asarray(dense)
        if dense.ndim != 2:
            raise InvalidInputError(
                f"Cost matrix must be two-dimensional, got shape {dense.shape}!"
            )
        if empty is None:
            empty = absent_sentinel(dense.dtype)

        present = dense != empty
        # Boolean indexing and ``nonzero`` both traverse in row-major order
        values = dense[present].copy()
        col_index = np.nonzero(present)[1].astype(np.int64)
        row_start = np.zeros(dense.shape[0] + 1, dtype=np.int64)
        np.cumsum(present.sum(axis=1), out=row_start[1:])

        return cls(values, row_start, col_index, dense.shape[1])

    @classmethod
    def from_scipy(cls, matrix: scipy.sparse.spmatrix) -> SparseCostMatrix:
        """
        Convert a SciPy sparse matrix. Every explicitly stored entry is a present
        edge, including explicit zeros.
        """
        csr = scipy.sparse.csr_matrix(matrix)
        return cls(
            csr.data.copy(),
            csr.indptr.astype(np.int64),
            csr.indices.astype(np.int64),
            csr.shape[1],
        )

    def to_scipy(self) -> scipy.sparse.csr_matrix:
        """
        Convert to a SciPy CSR matrix. Note that SciPy treats missing entries as
        zero, while this class treats them as absent edges.
        """
        return scipy.sparse.csr_matrix(
            (self.values.copy(), self.col_index.copy(), self.row_start.copy()),
            shape=self.shape,
        )

    def to_dense(self, empty: T.Any = None) -> NP.NDArray[T.Any]:
        """
        Expand to a dense matrix where absent edges are filled with ``empty``,
        which defaults to the minimizing sentinel of the value dtype.
        """
        if empty is None:
            empty = absent_sentinel(self.dtype)
        dense = np.full(self.shape, empty, dtype=self.dtype)
        dense[self.row_indices(), self.col_index] = self.values
        return dense

    @property
    def num_rows(self) -> int:
        return len(self.row_start) - 1

    @property
    def shape(self) -> tuple[int, int]:
        return self.num_rows, self.num_columns

    @property
    def nnz(self) -> int:
        return len(self.values)

    @property
    def dtype(self) -> np.dtype:
        return self.values.dtype

    @property
    def is_integer(self) -> bool:
        return bool(np.issubdtype(self.values.dtype, np.integer))

    @functools.cached_property
    def max_value(self) -> T.Any:
        """
        Largest present cost. Raises a ``ValueError`` when the matrix stores no
        edges.
        """
        if self.nnz == 0:
            raise ValueError("Matrix has no present edges!")
        return self.values.max()

    def row_indices(self) -> NP.NDArray[np.int64]:
        """
        Row of each stored edge, i.e. the expanded form of ``row_start``.
        """
        return np.repeat(
            np.arange(self.num_rows, dtype=np.int64), np.diff(self.row_start)
        )

    def row(self, i: int) -> tuple[NP.NDArray[np.int64], NP.NDArray[T.Any]]:
        """
        Columns and costs of the present edges in row ``i``.
        """
        start, end = self.row_start[i], self.row_start[i + 1]
        return self.col_index[start:end], self.values[start:end]

    def with_values(self, values: NP.ArrayLike) -> SparseCostMatrix:
        """
        A matrix with the same sparsity structure and new edge costs.
        """
        values = np.asarray(values)
        if values.shape != self.values.shape:
            raise InvalidInputError(
                f"Expected {self.nnz} values, got array of shape {values.shape}!"
            )
        return SparseCostMatrix(
            values, self.row_start.copy(), self.col_index.copy(), self.num_columns
        )

    def astype(self, dtype: NP.DTypeLike) -> SparseCostMatrix:
        return self.with_values(self.values.astype(dtype))

    def copy(self) -> SparseCostMatrix:
        return self.with_values(self.values.copy())

    def transpose(self) -> SparseCostMatrix:
        """
        Counting-sort transpose in ``O(nnz + num_columns)``.

        The first pass counts the entries of each destination row (i.e. source
        column) and turns the counts into offsets. The second pass moves every
        entry, in source order, to the next free slot of its destination row,
        which means that destination rows list their entries in order of the
        source row.
        """
        counts = np.bincount(self.col_index, minlength=self.num_columns)
        row_start = np.zeros(self.num_columns + 1, dtype=np.int64)
        np.cumsum(counts, out=row_start[1:])

        # A stable sort by destination row places entries exactly like the
        # per-row cursors of a counting sort that scans the source in order.
        order = np.argsort(self.col_index, kind="stable")
        values = self.values[order]
        col_index = self.row_indices()[order]

        return SparseCostMatrix(values, row_start, col_index, self.num_rows)

    @property
    def T(self) -> SparseCostMatrix:
        return self.transpose()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(shape={self.shape}, nnz={self.nnz}, "
            f"dtype={self.dtype})"
        )
