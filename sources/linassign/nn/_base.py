from __future__ import annotations

from abc import abstractmethod
from typing import Tuple

import numpy as np
import numpy.typing as NP
import torch

__all__ = ["LinearAssignment", "extend_cost"]


class LinearAssignment(torch.nn.Module):
    """
    Solves a linear assignment problem (LAP) where matches are optional: pairs
    of which the cost is not below ``threshold`` are never matched, and a pair
    is only matched when doing so lowers the total cost.
    """

    threshold: float

    def __init__(self, threshold: float = torch.inf):
        super().__init__()

        self.threshold = threshold

    def forward(
        self, cost_matrix: torch.Tensor
    ) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        """
        Solve the cost matrix

        Parameters
        ----------
        cost_matrix
            Cost matrix (NxM) to solve

        Returns
        -------
            Tuple of matches (N_match x 2), unmatched rows and unmatched
            columns
        """

        if min(cost_matrix.shape) == 0:
            return self._no_match(cost_matrix)

        cost_matrix = torch.where(cost_matrix < self.threshold, cost_matrix, torch.inf)

        return self._assign(cost_matrix)

    @staticmethod
    def _no_match(
        cost_matrix: torch.Tensor,
    ) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        cs_num, ds_num = cost_matrix.shape
        device = cost_matrix.device
        return (
            torch.empty((0, 2), dtype=torch.long, device=device),
            torch.arange(cs_num, dtype=torch.long, device=device),
            torch.arange(ds_num, dtype=torch.long, device=device),
        )

    @abstractmethod
    def _assign(
        self, cost_matrix: torch.Tensor
    ) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        raise NotImplementedError


def extend_cost(
    cost_matrix: NP.NDArray[np.float64], threshold: float
) -> NP.NDArray[np.float64]:
    """
    Embed an N x M cost matrix, of which absent pairs hold ``+inf``, in a square
    (N+M) x (N+M) problem that always has a perfect matching.

    Every row ``i`` gets a private dummy column and every column ``j`` a private
    dummy row, both at cost ``d``; dummy rows connect to all dummy columns at
    zero cost. Matching a real pair then saves ``2 d`` over leaving both ends on
    their dummies. With a finite threshold ``d = threshold / 2``, otherwise ``d``
    exceeds any difference in real cost, such that as many pairs as possible are
    matched.
    """
    n, m = cost_matrix.shape
    finite = np.isfinite(cost_matrix)

    if np.isfinite(threshold):
        dummy = threshold / 2.0
    elif finite.any():
        dummy = (min(n, m) + 1) * float(np.abs(cost_matrix[finite]).max()) + 1.0
    else:
        dummy = 1.0

    extended = np.full((n + m, n + m), np.inf, dtype=np.float64)
    extended[:n, :m] = cost_matrix
    extended[np.arange(n), m + np.arange(n)] = dummy
    extended[n + np.arange(m), np.arange(m)] = dummy
    extended[n:, m:] = 0.0
    return extended
