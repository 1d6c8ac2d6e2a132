r"""
Various utilities for working with assignment problems.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
import torch
from torch import Tensor

from .._assignment import Assignment

__all__ = ["gather_total_cost", "split_extended_assignment"]


def gather_total_cost(cost_matrix: Tensor, matches: Tensor) -> Tensor:
    """
    Sum the costs of the matched pairs returned by a
    :class:`LinearAssignment` module. This is the tensor counterpart of
    :func:`linassign.verify.total_cost` and keeps the device and autograd graph
    of ``cost_matrix``.

    Parameters
    ----------
    cost_matrix: Tensor[N, M]
        The cost matrix that was solved.
    matches: Tensor[K, 2]
        Matched ``(row, column)`` pairs.

    Returns
    -------
    Tensor[]
        Total cost of the matched pairs.
    """

    return cost_matrix[matches[:, 0], matches[:, 1]].sum()


def split_extended_assignment(
    solution: Assignment, shape: Tuple[int, int], device: torch.device
) -> Tuple[Tensor, Tensor, Tensor]:
    """
    Read the matches, unmatched rows and unmatched columns of an N x M problem
    from the solution of its extension by :func:`extend_cost`.
    """
    n, m = shape
    x = solution.column_assignment[:n]
    y = solution.row_assignment[:m]

    matched = x < m
    rows = np.flatnonzero(matched)
    matches = np.column_stack((rows, x[rows]))

    return (
        torch.from_numpy(matches).to(device=device, dtype=torch.long),
        torch.from_numpy(np.flatnonzero(~matched)).to(device=device, dtype=torch.long),
        torch.from_numpy(np.flatnonzero(y >= n)).to(device=device, dtype=torch.long),
    )
