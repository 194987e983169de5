"""
Tests for the PCA module.
"""

import pytest
import numpy as np
import sys
import os
from sklearn.decomposition import PCA as SklearnPCA

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from covidmath.math.pca import (
    normalize_vector, covariance_matrix, power_iteration, deflate,
    canonicalize_sign, pca_2d, pca
)


def same_up_to_sign(a, b, atol=1e-6):
    return np.allclose(a, b, atol=atol) or np.allclose(a, -b, atol=atol)


def planar_data(rng, n_samples=200, n_features=5):
    """Centred data lying on a 2-D subspace with unequal variances."""
    basis, _ = np.linalg.qr(rng.normal(size=(n_features, 2)))
    weights = rng.normal(size=(n_samples, 2)) * np.array([3.0, 1.0])
    data = weights @ basis.T
    return data - data.mean(axis=0)


class TestPCAUtils:
    """Tests for the PCA utility functions."""

    def test_normalize_vector(self):
        """Test normalizing a vector to unit length."""
        v = np.array([3.0, 4.0])
        normalized = normalize_vector(v)

        assert np.isclose(np.linalg.norm(normalized), 1.0)
        assert np.isclose(normalized[0] / normalized[1], v[0] / v[1])

        zero_vec = np.zeros(3)
        assert np.array_equal(normalize_vector(zero_vec), zero_vec)

    def test_covariance_matrix(self):
        """Test the covariance matrix against numpy on centred data."""
        data = np.array([
            [1.0, 2.0],
            [-1.0, 0.5],
            [0.0, -2.5]
        ])
        assert np.allclose(covariance_matrix(data), np.cov(data.T, ddof=1))

    def test_covariance_single_row(self):
        """Test that one row does not divide by zero."""
        cov = covariance_matrix(np.array([[1.0, 2.0]]))
        assert np.all(np.isfinite(cov))

    def test_deflate(self):
        """Test removing a direction from every row."""
        data = np.array([
            [1.0, 2.0],
            [3.0, 4.0],
            [5.0, 6.0]
        ])
        result = deflate(data, np.array([1.0, 0.0]))

        assert np.allclose(result[:, 0], 0.0)
        assert np.allclose(result[:, 1], data[:, 1])

    def test_canonicalize_sign(self):
        """Test forcing the largest coordinate positive."""
        assert np.array_equal(canonicalize_sign(np.array([0.2, -0.9])), np.array([-0.2, 0.9]))
        assert np.array_equal(canonicalize_sign(np.array([0.2, 0.9])), np.array([0.2, 0.9]))
        assert np.array_equal(canonicalize_sign(np.zeros(2)), np.zeros(2))


class TestPowerIteration:
    """Tests for the power iteration algorithm."""

    def test_power_iteration_diagonal(self):
        """Test power iteration on a matrix with a known dominant eigenvector."""
        matrix = np.diag([4.0, 1.0])
        result = power_iteration(matrix, iters=100, start_vector=np.array([1.0, 1.0]))

        assert same_up_to_sign(result, np.array([1.0, 0.0]))

    def test_power_iteration_random_start(self, rng):
        """Test power iteration from a random start vector."""
        matrix = np.array([
            [2.0, 1.0],
            [1.0, 2.0]
        ])
        result = power_iteration(matrix, rng=rng)

        assert same_up_to_sign(result, np.array([1.0, 1.0]) / np.sqrt(2))
        assert np.isclose(np.linalg.norm(result), 1.0)

    def test_power_iteration_zero_matrix(self, rng):
        """Test that a zero matrix gives a zero vector rather than NaN."""
        result = power_iteration(np.zeros((3, 3)), rng=rng)
        assert np.array_equal(result, np.zeros(3))


class TestPCA2D:
    """Tests for the two-component PCA."""

    def test_matches_sklearn(self, rng):
        """Test that both components agree with scikit-learn up to sign."""
        data = planar_data(rng)
        result = pca_2d(data, rng=rng)
        reference = SklearnPCA(n_components=2).fit(data)

        assert same_up_to_sign(result['comps'][0], reference.components_[0])
        assert same_up_to_sign(result['comps'][1], reference.components_[1])

    def test_components_orthonormal(self, rng):
        """Test that components are unit length and nearly orthogonal."""
        result = pca_2d(planar_data(rng), rng=rng)
        pc1, pc2 = result['comps']

        assert np.isclose(np.linalg.norm(pc1), 1.0)
        assert np.isclose(np.linalg.norm(pc2), 1.0)
        assert abs(pc1 @ pc2) < 1e-6

    def test_projections_are_linear(self, rng):
        """Test that projections are the data times the component vectors."""
        data = planar_data(rng)
        result = pca_2d(data, rng=rng)

        assert result['projections'].shape == (data.shape[0], 2)
        assert np.allclose(result['projections'], data @ result['comps'].T)

    def test_reconstruction_of_planar_data(self, rng):
        """Test that two components reconstruct rank-2 data."""
        data = planar_data(rng)
        result = pca_2d(data, rng=rng)
        reconstructed = result['projections'] @ result['comps']

        assert np.allclose(reconstructed, data, atol=1e-6)

    def test_sign_may_differ_between_runs(self):
        """Test that different seeds find the same axes up to sign."""
        data = planar_data(np.random.default_rng(7))
        first = pca_2d(data, rng=np.random.default_rng(1))
        second = pca_2d(data, rng=np.random.default_rng(2))

        for a, b in zip(first['comps'], second['comps']):
            assert same_up_to_sign(a, b)

    def test_canonicalized_runs_agree(self):
        """Test that canonicalized components do not depend on the seed."""
        data = planar_data(np.random.default_rng(7))
        first = pca_2d(data, rng=np.random.default_rng(1), canonicalize=True)
        second = pca_2d(data, rng=np.random.default_rng(2), canonicalize=True)

        assert np.allclose(first['comps'], second['comps'], atol=1e-6)

    def test_empty(self):
        """Test that no rows give no projections."""
        result = pca_2d(np.zeros((0, 4)))
        assert result['projections'].shape == (0, 2)

    def test_single_row(self, rng):
        """Test that a single row gives finite projections."""
        result = pca_2d(np.array([[0.5, -0.5, 1.0]]), rng=rng)
        assert np.all(np.isfinite(result['projections']))


class TestPCAVectors:
    """Tests for PCA on feature vector dictionaries."""

    def test_pca_vectors(self, rng):
        """Test that each vector gets pc1 and pc2."""
        vectors = [
            {'x': 1.0, 'y': 1.0, 'z': 0.0},
            {'x': -1.0, 'y': -1.0, 'z': 0.1},
            {'x': 0.5, 'y': 0.4, 'z': -0.1},
            {'x': -0.5, 'y': -0.4, 'z': 0.0},
        ]
        result = pca(vectors, rng=rng)

        assert len(result) == 4
        assert all(set(p.keys()) == {'pc1', 'pc2'} for p in result)
        # pc1 separates the first two points along the x=y diagonal
        assert np.sign(result[0]['pc1']) != np.sign(result[1]['pc1'])

    def test_pca_vectors_empty(self):
        """Test that an empty list gives an empty list."""
        assert pca([]) == []
