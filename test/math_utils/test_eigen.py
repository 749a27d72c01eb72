from __future__ import annotations

import numpy as np
import pytest

from paleomag_utils.math_utils.eigen import (
    direction_eigenvalues,
    eigen_decomposition,
    eigenvalues,
    orientation_matrix,
    sort_eigen,
)
from paleomag_utils.stats.sampling import fisher_sample


@pytest.fixture
def symmetric_matrix():
    """Orientation matrix of an arbitrary non-degenerate set of vectors."""
    vectors = np.array([
        [0.8, 0.1, 0.59],
        [0.7, -0.2, 0.68],
        [0.5, 0.3, 0.81],
        [0.9, 0.05, 0.43],
    ])
    return orientation_matrix(vectors)


def test_orientation_matrix_of_axes():
    np.testing.assert_array_almost_equal(orientation_matrix(np.eye(3)), np.eye(3))


# Test cases for eigenvalues
eigenvalue_test_cases = [
    pytest.param(np.eye(3), [1 / 3, 1 / 3, 1 / 3], id="identity"),
    pytest.param(np.diag([3.0, 2.0, 1.0]), [0.5, 1 / 3, 1 / 6], id="diagonal"),
    pytest.param(np.diag([1.0, 3.0, 2.0]), [0.5, 1 / 3, 1 / 6], id="unordered diagonal"),
    pytest.param(np.diag([1.0, 0.0, 0.0]), [1.0, 0.0, 0.0], id="single axis"),
]


@pytest.mark.parametrize("T,expected", eigenvalue_test_cases)
def test_eigenvalues(T, expected):
    np.testing.assert_array_almost_equal(eigenvalues(T), expected)


def test_eigenvalues_match_numerical(symmetric_matrix):
    expected = np.sort(np.linalg.eigvalsh(symmetric_matrix))[::-1]
    expected = expected / expected.sum()
    np.testing.assert_array_almost_equal(eigenvalues(symmetric_matrix), expected)


def test_eigenvalues_sum_to_one_and_descend():
    directions = fisher_sample(40, 10, 20, 30, rng=np.random.default_rng(3))
    tau = direction_eigenvalues(directions)
    assert tau.sum() == pytest.approx(1.0)
    assert tau[0] >= tau[1] >= tau[2]


def test_identical_directions_have_one_axis():
    tau = direction_eigenvalues([(10, 20)] * 5)
    np.testing.assert_array_almost_equal(tau, [1.0, 0.0, 0.0])


def test_sort_eigen_keeps_first_on_ties():
    result = sort_eigen([1.0, 2.0, 2.0], np.eye(3))
    np.testing.assert_array_equal(result.tau, [2.0, 2.0, 1.0])
    np.testing.assert_array_equal(result.v1, [0, 1, 0])
    np.testing.assert_array_equal(result.v2, [0, 0, 1])
    np.testing.assert_array_equal(result.v3, [1, 0, 0])


def test_eigen_decomposition_vectors():
    result = eigen_decomposition(np.diag([1.0, 3.0, 2.0]))
    np.testing.assert_array_almost_equal(result.tau, [0.5, 1 / 3, 1 / 6])
    np.testing.assert_array_almost_equal(np.abs(result.v1), [0, 1, 0])
    np.testing.assert_array_almost_equal(np.abs(result.v3), [1, 0, 0])


def test_eigen_decomposition_agrees_with_analytic(symmetric_matrix):
    result = eigen_decomposition(symmetric_matrix)
    np.testing.assert_array_almost_equal(result.tau, eigenvalues(symmetric_matrix))
    # eigenvectors satisfy T v = lambda v
    scale = np.trace(symmetric_matrix)
    for tau, vector in zip(result.tau, (result.v1, result.v2, result.v3)):
        np.testing.assert_array_almost_equal(symmetric_matrix @ vector, tau * scale * vector)
