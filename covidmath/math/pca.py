"""
PCA (Principal Component Analysis) for 2-D projection of standardized data.

This module finds the two leading principal directions with power
iteration on the covariance matrix, using deflation for the second
component. Power iteration runs for a fixed number of steps with no
convergence test.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from covidmath.math.scaling import feature_names, vectors_to_matrix

logger = logging.getLogger(__name__)

DEFAULT_ITERS = 100


def normalize_vector(v: np.ndarray) -> np.ndarray:
    """
    Normalize a vector to unit length.

    Args:
        v: Vector to normalize

    Returns:
        Normalized vector (the zero vector is returned unchanged)
    """
    norm = np.linalg.norm(v)
    if norm == 0:
        return v
    return v / norm


def covariance_matrix(data: np.ndarray) -> np.ndarray:
    """
    Calculate the sample covariance matrix of already centred data.

    The data is not re-centred: standardized input has zero column means.
    The divisor is N-1, or 1 for a single row.

    Args:
        data: Data matrix (N x D)

    Returns:
        D x D covariance matrix
    """
    n_rows = data.shape[0]
    return (data.T @ data) / max(n_rows - 1, 1)


def rand_starting_vec(n_cols: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Generate a random starting vector for power iteration.

    Args:
        n_cols: Dimension of the vector
        rng: Random generator (a fresh unseeded one if None)

    Returns:
        Vector with entries drawn uniformly from [0, 1)
    """
    rng = rng if rng is not None else np.random.default_rng()
    return rng.random(n_cols)


def power_iteration(matrix: np.ndarray,
                    iters: int = DEFAULT_ITERS,
                    start_vector: Optional[np.ndarray] = None,
                    rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Approximate the dominant eigenvector of a square matrix.

    Applies v <- normalize(M v) exactly `iters` times.

    Args:
        matrix: Square (covariance) matrix
        iters: Number of iterations
        start_vector: Initial vector (random if None)
        rng: Random generator used when no start vector is given

    Returns:
        Unit-length dominant eigenvector (zero if the matrix is zero)
    """
    if start_vector is None:
        start_vector = rand_starting_vec(matrix.shape[0], rng)

    v = np.asarray(start_vector, dtype=float)
    for _ in range(iters):
        v = normalize_vector(matrix @ v)

    return v


def project(data: np.ndarray, component: np.ndarray) -> np.ndarray:
    """Project every row of data onto a component."""
    return data @ component


def deflate(data: np.ndarray, component: np.ndarray) -> np.ndarray:
    """
    Remove the contribution of a component from every row.

    Args:
        data: Data matrix (N x D)
        component: Unit direction

    Returns:
        Residual matrix x_i - (x_i . c) c
    """
    scores = project(data, component)
    return data - np.outer(scores, component)


def canonicalize_sign(component: np.ndarray) -> np.ndarray:
    """
    Flip a component so its largest-magnitude coordinate is positive.

    Args:
        component: Direction vector

    Returns:
        Same direction with a deterministic sign
    """
    if component.size == 0 or not np.any(component):
        return component
    if component[np.argmax(np.abs(component))] < 0:
        return -component
    return component


def pca_2d(data: np.ndarray,
           iters: int = DEFAULT_ITERS,
           rng: Optional[np.random.Generator] = None,
           canonicalize: bool = False) -> Dict[str, np.ndarray]:
    """
    Find two principal components and project the data onto them.

    The second component comes from power iteration on the covariance of
    the residuals after removing the first; it is not re-orthogonalized.

    Args:
        data: Standardized data matrix (N x D)
        iters: Power iteration steps per component
        rng: Random generator for the starting vectors
        canonicalize: Force the largest coordinate of each component positive

    Returns:
        Dictionary with 'comps' (2 x D) and 'projections' (N x 2)
    """
    data = np.asarray(data, dtype=float)
    n_rows = data.shape[0]
    n_cols = data.shape[1] if data.ndim == 2 else 0

    if n_rows == 0:
        return {
            'comps': np.zeros((2, n_cols)),
            'projections': np.zeros((0, 2))
        }

    rng = rng if rng is not None else np.random.default_rng()

    pc1 = power_iteration(covariance_matrix(data), iters, rng=rng)
    residuals = deflate(data, pc1)
    pc2 = power_iteration(covariance_matrix(residuals), iters, rng=rng)

    if canonicalize:
        pc1 = canonicalize_sign(pc1)
        pc2 = canonicalize_sign(pc2)

    comps = np.vstack([pc1, pc2])
    logger.debug(f"PCA on {n_rows}x{n_cols} matrix, pc1.pc2={float(pc1 @ pc2):.3e}")

    return {
        'comps': comps,
        'projections': data @ comps.T
    }


def pca(vectors: Sequence[Dict[str, float]],
        iters: int = DEFAULT_ITERS,
        rng: Optional[np.random.Generator] = None,
        canonicalize: bool = False) -> List[Dict[str, float]]:
    """
    Project standardized feature vectors onto two principal components.

    Args:
        vectors: Standardized feature vectors
        iters: Power iteration steps per component
        rng: Random generator for the starting vectors
        canonicalize: Force a deterministic component sign

    Returns:
        One {'pc1': ..., 'pc2': ...} dictionary per input vector
    """
    if not vectors:
        return []

    names = feature_names(vectors)
    result = pca_2d(vectors_to_matrix(vectors, names), iters, rng, canonicalize)

    return [
        {'pc1': float(p1), 'pc2': float(p2)}
        for p1, p2 in result['projections']
    ]
