"""
Optional assignment over a tensor cost matrix using shortest augmenting paths.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
import torch
import torch.fx
import typing_extensions as TX

from .._solve import solve
from ..matching import ShortestPathMatcher
from ._base import LinearAssignment, extend_cost
from ._utils import split_extended_assignment

__all__ = ["ShortestPath", "gated_shortest_path_assignment"]


class ShortestPath(LinearAssignment):
    """
    Uses the shortest augmenting path algorithm to solve the linear assignment
    problem.
    """

    @TX.override
    def _assign(
        self, cost_matrix: torch.Tensor
    ) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        return gated_shortest_path_assignment(cost_matrix, self.threshold)


def gated_shortest_path_assignment(
    cost_matrix: torch.Tensor, threshold: float
) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
    """
    Perform linear assignment, leaving rows and columns unmatched when no pair
    below ``threshold`` improves the total cost.
    """

    device = cost_matrix.device
    cm = cost_matrix.detach().cpu().contiguous().numpy().astype(np.float64)
    cm = np.where(np.isfinite(cm), cm, np.inf)

    solution = solve(extend_cost(cm, threshold), matcher=ShortestPathMatcher())

    return split_extended_assignment(solution, cm.shape, device)


torch.fx.wrap("gated_shortest_path_assignment")
