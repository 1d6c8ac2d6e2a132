r"""
Tests for ``linassign.solve``, which normalizes arbitrary problems before
handing them to a matcher.
"""

from __future__ import annotations

import logging

import numpy as np
import pytest
import scipy.optimize
from hypothesis import given, settings
from hypothesis import strategies as st

from linassign import (
    MATCHERS,
    CostScalingMatcher,
    InfeasibleError,
    InvalidInputError,
    ShortestPathMatcher,
    SparseCostMatrix,
    solve,
)
from linassign.verify import (
    check_assignment_consistent,
    check_complementary_slackness,
    check_dual_feasible,
    total_cost,
)

inf = np.inf


@pytest.mark.parametrize(
    ["cost", "x", "y", "u", "v"],
    [
        (
            [[400, 150, 400], [400, 450, 600], [300, 225, 300]],
            [1, 0, 2],
            [1, 0, 2],
            [225, 400, 300],
            [0, -75, 0],
        ),
        (
            [[6, 6, 4, 7], [5, 4, -3, -3], [5, 3, 0, 6]],
            [1, 3, 2],
            [-1, 0, 2, 1],
            [6, -3, 2],
            [0, 0, -2, 0],
        ),
        (
            [[6, 5, 5], [6, 4, 3], [4, -3, 0], [7, -3, 6]],
            [-1, 0, 2, 1],
            [1, 3, 2],
            [0, 0, -2, 0],
            [6, -3, 2],
        ),
        (
            [[-10, inf, inf], [inf, inf, -19], [inf, -13, inf]],
            [0, 2, 1],
            [0, 2, 1],
            [-10, -19, -13],
            [0, 0, 0],
        ),
    ],
    ids=("positive", "negative", "negative-tall", "negative-permutation"),
)
def test_minimize(cost, x, y, u, v):
    cost = np.array(cost, dtype=np.float64)
    result = solve(cost)

    np.testing.assert_array_equal(result.column_assignment, x)
    np.testing.assert_array_equal(result.row_assignment, y)
    np.testing.assert_array_equal(result.u, u)
    np.testing.assert_array_equal(result.v, v)


def test_rectangular():
    cost = np.array([[400, 150, 400, 1], [400, 450, 600, 2], [300, 225, 300, 3]])
    result = solve(cost.astype(np.float64))

    np.testing.assert_array_equal(result.column_assignment, [1, 3, 2])
    np.testing.assert_array_equal(result.row_assignment, [-1, 0, 2, 1])


@pytest.mark.parametrize(
    ["cost", "x", "y", "u", "v"],
    [
        (
            [[400, 150, 400], [400, 450, 600], [300, 225, 300]],
            [0, 2, 1],
            [0, 2, 1],
            [325, 525, 225],
            [75, 0, 75],
        ),
        (
            [[400, 150, 400, 1], [400, 450, 600, 2], [300, 225, 300, 3]],
            [0, 2, 1],
            [0, 2, 1, -1],
            [325, 525, 225],
            [75, 0, 75, 0],
        ),
        (
            [[10, 10, 8], [9, 8, 1], [9, 7, 4]],
            [2, 1, 0],
            [2, 1, 0],
            [8, 6, 6],
            [3, 2, 0],
        ),
        (
            [[10, 10, 8, 11], [9, 8, 1, 1], [9, 7, 4, 10]],
            [1, 0, 3],
            [1, 0, -1, 2],
            [10, 9, 9],
            [0, 0, 0, 1],
        ),
        (
            [[6, 6, 4, 7], [5, 4, -3, -3], [5, 3, 0, 6]],
            [1, 0, 3],
            [1, 0, -1, 2],
            [6, 5, 5],
            [0, 0, 0, 1],
        ),
        (
            [[6, 5, 5], [6, 4, 3], [4, -3, 0], [7, -3, 6]],
            [1, 0, -1, 2],
            [1, 0, 3],
            [0, 0, 0, 1],
            [6, 5, 5],
        ),
        (
            [[10, -inf, -inf], [-inf, -inf, 1], [-inf, 7, -inf]],
            [0, 2, 1],
            [0, 2, 1],
            [10, 1, 7],
            [0, 0, 0],
        ),
        (
            [[-inf, 11, -inf], [11, 1, 10], [-inf, 7, 12]],
            [1, 0, 2],
            [1, 0, 2],
            [11, 11, 12],
            [0, 0, 0],
        ),
        (
            [[-10, -inf, -inf], [-inf, -inf, -19], [-inf, -13, -inf]],
            [0, 2, 1],
            [0, 2, 1],
            [-10, -19, -13],
            [0, 0, 0],
        ),
    ],
    ids=(
        "square",
        "wide",
        "tie-breaking",
        "wide-tie-breaking",
        "negative",
        "negative-tall",
        "permutation",
        "reroute",
        "negative-permutation",
    ),
)
def test_maximize(cost, x, y, u, v):
    cost = np.array(cost, dtype=np.float64)
    result = solve(cost, maximize=True)

    np.testing.assert_array_equal(result.column_assignment, x)
    np.testing.assert_array_equal(result.row_assignment, y)
    np.testing.assert_array_equal(result.u, u)
    np.testing.assert_array_equal(result.v, v)
    assert check_dual_feasible(cost, result, maximize=True)
    assert check_complementary_slackness(cost, result, maximize=True)


MIN = np.iinfo(np.int32).min


@pytest.mark.parametrize(
    ["cost", "x"],
    [
        ([[400, 150, 400], [400, 450, 600], [300, 225, 300]], [0, 2, 1]),
        ([[10, 10, 8], [9, 8, 1], [9, 7, 4]], [2, 1, 0]),
        ([[10, MIN, MIN], [MIN, MIN, 1], [MIN, 7, MIN]], [0, 2, 1]),
        ([[MIN, 11, MIN], [11, 1, 10], [MIN, 7, 12]], [1, 0, 2]),
        ([[-10, MIN, MIN], [MIN, MIN, -19], [MIN, -13, MIN]], [0, 2, 1]),
    ],
    ids=("square", "tie-breaking", "permutation", "reroute", "negative-permutation"),
)
def test_maximize_integer(cost, x):
    result = solve(np.array(cost, dtype=np.int32), maximize=True)

    np.testing.assert_array_equal(result.column_assignment, x)
    np.testing.assert_array_equal(result.row_assignment, np.argsort(x))


@pytest.mark.parametrize("dtype", [np.float64, np.int32], ids=str)
@pytest.mark.parametrize("maximize", [False, True], ids=("min", "max"))
def test_empty(dtype, maximize):
    result = solve(np.zeros((2, 0), dtype=dtype), maximize=maximize)

    np.testing.assert_array_equal(result.column_assignment, [-1, -1])
    assert len(result.row_assignment) == 0
    np.testing.assert_array_equal(result.u, [0, 0])
    assert len(result.v) == 0


def test_infeasible():
    with pytest.raises(InfeasibleError):
        solve(np.array([[inf]]))
    with pytest.raises(InfeasibleError):
        solve(np.array([[np.iinfo(np.int64).max]]))


@pytest.mark.parametrize(
    "cost",
    [
        [[6, 6, 4, 7], [5, 4, -3, -3], [5, 3, 0, 6]],
        [[6, 5, 5], [6, 4, 3], [4, -3, 0], [7, -3, 6]],
        [[4, 1, 3], [2, 0, 5], [3, 2, 2]],
    ],
    ids=("wide", "tall", "square"),
)
@pytest.mark.parametrize("dtype", [np.float64, np.int64], ids=str)
@pytest.mark.parametrize("maximize", [False, True], ids=("min", "max"))
def test_does_not_modify_input(cost, dtype, maximize):
    cost = np.array(cost, dtype=dtype)
    expected = cost.copy()

    solve(cost, maximize=maximize)
    np.testing.assert_array_equal(cost, expected)

    sparse = SparseCostMatrix.from_dense(cost)
    values = sparse.values.copy()
    solve(sparse, maximize=maximize)
    np.testing.assert_array_equal(sparse.values, values)


def test_sparse_input():
    # [[x, 11, x], [11, 1, 10], [x, 7, 12]]
    cost = SparseCostMatrix(
        [11.0, 11.0, 1.0, 10.0, 7.0, 12.0], [0, 1, 4, 6], [1, 0, 1, 2, 1, 2], 3
    )
    result = solve(cost)

    np.testing.assert_array_equal(result.column_assignment, [1, 0, 2])
    np.testing.assert_array_equal(result.u, [21, 11, 13])
    np.testing.assert_array_equal(result.v, [0, -10, -1])


def test_sparse_tall_input():
    cost = SparseCostMatrix.from_dense(np.array([[6.0, 5.0], [inf, 4.0], [4.0, inf]]))
    result = solve(cost)

    np.testing.assert_array_equal(result.column_assignment, [-1, 1, 0])
    np.testing.assert_array_equal(result.row_assignment, [2, 1])


@pytest.mark.parametrize(
    ["cost", "maximize"],
    [
        ([[1.0, np.nan]], False),
        ([[1.0, -inf]], False),
        ([[1.0, inf]], True),
        ([1.0, 2.0], False),
        ([[True, False]], False),
        ([["a", "b"]], False),
    ],
    ids=("nan", "min-neg-inf", "max-pos-inf", "one-dimensional", "bool", "string"),
)
def test_invalid_input(cost, maximize):
    with pytest.raises(InvalidInputError):
        solve(np.array(cost), maximize=maximize)


def test_invalid_matcher():
    cost = np.ones((3, 3))
    with pytest.raises(InvalidInputError):
        solve(cost, matcher="hungarian")
    with pytest.raises(InvalidInputError):
        solve(cost, matcher=42)
    with pytest.raises(InvalidInputError):
        solve(cost, matcher="cost_scaling")
    with pytest.raises(InvalidInputError):
        solve(np.ones((3, 4), dtype=np.int64), matcher=CostScalingMatcher())


def test_matcher_by_name():
    assert set(MATCHERS) == {"shortest_path", "cost_scaling"}

    cost = np.array([[10, 10, 8], [9, 8, 1], [9, 7, 4]])
    for name in MATCHERS:
        result = solve(cost, matcher=name)
        np.testing.assert_array_equal(result.column_assignment, [0, 2, 1])


def test_integer_problems_via_shortest_path():
    cost = np.array([[6, 6, 4, 7], [5, 4, -3, -3], [5, 3, 0, 6]])
    result = solve(cost, matcher=ShortestPathMatcher())

    np.testing.assert_array_equal(result.column_assignment, [1, 3, 2])
    np.testing.assert_array_equal(result.u, [6, -3, 2])


def test_integer_extremes_do_not_overflow():
    info = np.iinfo(np.int32)
    cost = np.array([[info.min + 1, 0], [0, info.max - 1]], dtype=np.int32)

    result = solve(cost)
    np.testing.assert_array_equal(result.column_assignment, [0, 1])
    assert check_complementary_slackness(cost, result)
    result = solve(cost, maximize=True)
    np.testing.assert_array_equal(result.column_assignment, [1, 0])


@pytest.mark.parametrize("maximize", [False, True], ids=("min", "max"))
def test_integer_range_beyond_double_precision(maximize):
    info = np.iinfo(np.int64)
    cost = np.array([[info.min + 1, 0], [0, info.max - 1]], dtype=np.int64)

    with pytest.raises(InvalidInputError):
        solve(cost, maximize=maximize)
    with pytest.raises(InvalidInputError):
        solve(SparseCostMatrix.from_dense(cost), maximize=maximize)


def test_large_int64_costs():
    cost = np.array([[-(2**40), 0], [0, 2**40 - 1]], dtype=np.int64)
    result = solve(cost)

    np.testing.assert_array_equal(result.column_assignment, [0, 1])
    assert check_dual_feasible(cost, result)
    assert check_complementary_slackness(cost, result)


@pytest.mark.usefixtures("debug_enabled")
def test_debug_verification(caplog):
    cost = np.array([[6, 6, 4, 7], [5, 4, -3, -3], [5, 3, 0, 6]], dtype=np.float64)
    with caplog.at_level(logging.DEBUG, logger="linassign"):
        solve(cost)
        solve(cost.T, maximize=True)
        solve(np.array([[4, 1, 3], [2, 0, 5], [3, 2, 2]]))

    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
    assert any("Solving" in r.getMessage() for r in caplog.records)


def _random_cost(seed: int, shape: tuple[int, int], integer: bool) -> np.ndarray:
    rng = np.random.default_rng(seed)
    if integer:
        return rng.integers(-100, 100, size=shape)
    return rng.normal(size=shape) * 100


@settings(deadline=None, max_examples=25)
@given(
    seed=st.integers(0, 2**16),
    num_rows=st.integers(1, 8),
    num_columns=st.integers(1, 8),
    maximize=st.booleans(),
)
def test_optimal_and_certified(seed, num_rows, num_columns, maximize):
    cost = _random_cost(seed, (num_rows, num_columns), integer=False)
    result = solve(cost, maximize=maximize)

    rows, cols = scipy.optimize.linear_sum_assignment(cost, maximize=maximize)
    assert check_assignment_consistent(result)
    assert len(result.matches) == min(num_rows, num_columns)
    assert total_cost(cost, result) == pytest.approx(cost[rows, cols].sum())
    assert check_dual_feasible(cost, result, maximize=maximize, tol=1e-6)
    assert check_complementary_slackness(cost, result, maximize=maximize, tol=1e-6)


@settings(deadline=None, max_examples=25)
@given(seed=st.integers(0, 2**16), n=st.integers(1, 8), maximize=st.booleans())
def test_optimal_integer(seed, n, maximize):
    cost = _random_cost(seed, (n, n), integer=True)
    result = solve(cost, maximize=maximize)

    rows, cols = scipy.optimize.linear_sum_assignment(cost, maximize=maximize)
    assert check_assignment_consistent(result)
    assert total_cost(cost, result) == cost[rows, cols].sum()
    assert check_dual_feasible(cost, result, maximize=maximize)
    assert check_complementary_slackness(cost, result, maximize=maximize)


@settings(deadline=None, max_examples=25)
@given(
    seed=st.integers(0, 2**16),
    num_rows=st.integers(1, 8),
    num_columns=st.integers(1, 8),
)
def test_maximize_is_negated_minimize(seed, num_rows, num_columns):
    cost = _random_cost(seed, (num_rows, num_columns), integer=False)

    maximized = solve(cost, maximize=True)
    minimized = solve(-cost)

    np.testing.assert_array_equal(
        maximized.column_assignment, minimized.column_assignment
    )
    np.testing.assert_array_equal(maximized.row_assignment, minimized.row_assignment)
    np.testing.assert_array_equal(maximized.u, -minimized.u)
    np.testing.assert_array_equal(maximized.v, -minimized.v)


@settings(deadline=None, max_examples=25)
@given(
    seed=st.integers(0, 2**16),
    num_rows=st.integers(1, 8),
    extra=st.integers(1, 4),
    maximize=st.booleans(),
)
def test_transpose_swaps_solution(seed, num_rows, extra, maximize):
    cost = _random_cost(seed, (num_rows, num_rows + extra), integer=False)

    result = solve(cost, maximize=maximize)
    result_t = solve(cost.T, maximize=maximize)

    np.testing.assert_array_equal(result.column_assignment, result_t.row_assignment)
    np.testing.assert_array_equal(result.row_assignment, result_t.column_assignment)
    np.testing.assert_array_equal(result.u, result_t.v)
    np.testing.assert_array_equal(result.v, result_t.u)


@settings(deadline=None, max_examples=25)
@given(seed=st.integers(0, 2**16), n=st.integers(1, 8))
def test_transpose_of_square_problem(seed, n):
    cost = _random_cost(seed, (n, n), integer=False)

    result = solve(cost)
    result_t = solve(cost.T)

    np.testing.assert_array_equal(result.column_assignment, result_t.row_assignment)
    np.testing.assert_array_equal(result.row_assignment, result_t.column_assignment)
