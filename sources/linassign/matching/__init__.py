"""
This package implements the matchers that solve a Linear Assignment Problem (LAP)
to optimality. Every matcher consumes a cost matrix whose absent edges are marked
by the minimizing sentinel, and produces an :class:`~linassign.Assignment` with
dual potentials.
"""

from __future__ import annotations

from ._base import *
from ._cost_scaling import *
from ._shortest_path import *
