r"""
LinAssign
=========

This package solves the linear assignment problem (LAP): given a cost matrix
between a set of rows and a set of columns, find the matching of minimal (or
maximal) total cost together with dual potentials that certify its optimality.

.. math::

    \min \sum_{i} C_{i, x_i} \quad \text{s.t.} \quad x_i \neq x_k \; \forall i \neq k

Terminology
-----------

- **Assignment**: The matching of rows to columns, stored in both directions.

- **Dual potentials**: Values ``u`` (rows) and ``v`` (columns) such that
    ``u[i] + v[j] <= C[i, j]`` on every edge, with equality on matched pairs.

- **Absent edge**: A pair that may not be matched, marked by ``+inf`` (or the
    largest integer) in a dense cost matrix.

- **Matcher**: An algorithm that solves a normalized problem, see
    :mod:`linassign.matching`.
"""

from __future__ import annotations

__version__ = "1.0.0"

from . import debug, errors, matching, sparse, verify
from ._assignment import *
from ._solve import *
from .errors import *
from .matching import *
from .sparse import *
