"""
Optional assignment over a tensor cost matrix using cost scaling. Real costs are
quantized to integers before solving.
"""

from __future__ import annotations

import typing as T

import numpy as np
import torch
import torch.fx
import typing_extensions as TX

from .._solve import solve
from ..matching import CostScalingMatcher
from ._base import LinearAssignment, extend_cost
from ._utils import split_extended_assignment

__all__ = ["CostScaling", "gated_cost_scaling_assignment"]


class CostScaling(LinearAssignment):
    """
    Solves the linear assignment over a cost matrix using the cost-scaling
    push-relabel algorithm.
    """

    resolution: T.Final[float]

    def __init__(self, resolution: float = 1000.0, *args, **kwargs):
        """
        Parameters
        ----------
        resolution, optional
            Costs are multiplied by this factor and rounded to the nearest
            integer, which should be tuned according to the expected domain of
            the cost matrix.
        """
        super().__init__(*args, **kwargs)

        self.resolution = resolution

    @TX.override
    def _assign(
        self, cost_matrix: torch.Tensor
    ) -> T.Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        return gated_cost_scaling_assignment(
            cost_matrix, self.threshold, self.resolution
        )


def gated_cost_scaling_assignment(
    cost_matrix: torch.Tensor, threshold: float, resolution: float
) -> T.Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
    """
    Perform linear assignment on the quantized costs, leaving rows and columns
    unmatched when no pair below ``threshold`` improves the total cost.
    """

    device = cost_matrix.device
    cm = cost_matrix.detach().cpu().contiguous().numpy().astype(np.float64)
    cm = np.where(np.isfinite(cm), cm, np.inf)

    extended = extend_cost(cm, threshold)
    present = np.isfinite(extended)
    quantized = np.full(extended.shape, np.iinfo(np.int64).max, dtype=np.int64)
    quantized[present] = np.rint(extended[present] * resolution).astype(np.int64)

    solution = solve(quantized, matcher=CostScalingMatcher())

    return split_extended_assignment(solution, cm.shape, device)


torch.fx.wrap("gated_cost_scaling_assignment")
