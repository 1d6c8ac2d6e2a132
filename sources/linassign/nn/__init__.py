"""
This package implements modules that solve a Linear Assignment Problem (LAP)
over a tensor cost-matrix, where pairs of which the cost exceeds a threshold
remain unmatched.
"""

from __future__ import annotations

from ._base import *
from ._cost_scaling import *
from ._shortest_path import *
from ._utils import *
