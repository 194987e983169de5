"""
Z-score standardization for feature vectors.

Each feature is shifted to mean 0 and scaled to unit population standard
deviation. A feature that is constant across the input keeps a standard
deviation of 1, so its scaled values are the mean-centred raw values (all
zeros) instead of NaN.
"""

import logging
from typing import Dict, List, NamedTuple, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class ScalingResult(NamedTuple):
    """Standardized vectors plus the per-feature statistics used."""

    scaled: List[Dict[str, float]]
    means: Dict[str, float]
    stds: Dict[str, float]


def feature_names(vectors: Sequence[Dict[str, float]]) -> List[str]:
    """
    Get the shared key set of a list of feature vectors.

    Args:
        vectors: Feature vectors, all with identical keys

    Returns:
        Feature names in the order of the first vector

    Raises:
        ValueError: If the vectors do not share the same keys
    """
    if not vectors:
        return []

    names = list(vectors[0].keys())
    expected = set(names)
    for i, vector in enumerate(vectors):
        if set(vector.keys()) != expected:
            raise ValueError(f"Feature vector {i} has keys {sorted(vector)}, expected {sorted(expected)}")
    return names


def vectors_to_matrix(vectors: Sequence[Dict[str, float]], names: Sequence[str]) -> np.ndarray:
    """
    Stack feature vectors into a rows-by-features float matrix.

    Args:
        vectors: Feature vectors
        names: Feature order for the columns

    Returns:
        Matrix of shape (len(vectors), len(names))
    """
    return np.array([[float(v[name]) for name in names] for v in vectors], dtype=float).reshape(len(vectors), len(names))


def standardize_matrix(matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Standardize the columns of a matrix.

    Uses the population variance (divide by n). Columns with zero standard
    deviation use 1 instead.

    Args:
        matrix: Data matrix (rows are observations)

    Returns:
        Tuple of (scaled matrix, column means, column stds)
    """
    matrix = np.asarray(matrix, dtype=float)
    if matrix.shape[0] == 0:
        n_cols = matrix.shape[1] if matrix.ndim == 2 else 0
        return matrix.copy(), np.zeros(n_cols), np.ones(n_cols)

    means = matrix.mean(axis=0)
    variances = ((matrix - means) ** 2).sum(axis=0) / matrix.shape[0]
    stds = np.sqrt(variances)

    constant = stds == 0
    if np.any(constant):
        logger.debug(f"{int(constant.sum())} constant feature(s); using std=1")
        stds = np.where(constant, 1.0, stds)

    return (matrix - means) / stds, means, stds


def standardize(vectors: Sequence[Dict[str, float]]) -> ScalingResult:
    """
    Standardize a list of feature vectors.

    Args:
        vectors: Feature vectors sharing one key set

    Returns:
        ScalingResult with scaled vectors, means and stds keyed by feature
    """
    if not vectors:
        return ScalingResult([], {}, {})

    names = feature_names(vectors)
    scaled, means, stds = standardize_matrix(vectors_to_matrix(vectors, names))

    scaled_vectors = [
        {name: float(row[j]) for j, name in enumerate(names)}
        for row in scaled
    ]
    return ScalingResult(
        scaled_vectors,
        {name: float(means[j]) for j, name in enumerate(names)},
        {name: float(stds[j]) for j, name in enumerate(names)},
    )
