"""
K-means clustering (Lloyd's method) with inertia tracking.

Centroids are seeded from distinct randomly sampled points, then assignment
and update steps alternate until no point changes cluster or the iteration
cap is reached. An empty cluster keeps its previous center.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from covidmath.math.scaling import feature_names, vectors_to_matrix

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERS = 100

_LEADING_INT = re.compile(r'\s*[+-]?\d+')


class Cluster:
    """
    Represents a cluster in K-means clustering.
    """

    def __init__(self,
                 center: np.ndarray,
                 members: Optional[List[int]] = None,
                 id: Optional[int] = None):
        """
        Initialize a cluster with a center and optional members.

        Args:
            center: The center of the cluster
            members: Indices of members belonging to the cluster
            id: Unique identifier for the cluster
        """
        self.center = np.array(center, dtype=float)
        self.members = [] if members is None else list(members)
        self.id = id

    def add_member(self, idx: int) -> None:
        """Add a member index to the cluster."""
        self.members.append(idx)

    def clear_members(self) -> None:
        """Clear all members from the cluster."""
        self.members = []

    def update_center(self, data: np.ndarray) -> None:
        """
        Move the center to the mean of the current members.

        A cluster without members keeps its current center.

        Args:
            data: Data matrix containing all points
        """
        if not self.members:
            return

        self.center = np.mean(data[self.members], axis=0)

    def __repr__(self) -> str:
        return f"Cluster(id={self.id}, members={len(self.members)})"


@dataclass
class KMeansResult:
    """Outcome of a k-means run."""
    assignments: np.ndarray
    clusters: List[Cluster]
    inertia: float
    iterations: int = 0
    converged: bool = False
    inertia_history: List[float] = field(default_factory=list)

    @property
    def centroids(self) -> np.ndarray:
        if not self.clusters:
            return np.zeros((0, 0))
        return np.vstack([c.center for c in self.clusters])

    def cluster_sizes(self) -> Dict[int, int]:
        """Number of points per cluster id, for clusters with members."""
        sizes: Dict[int, int] = {}
        for cluster_id in self.assignments.tolist():
            sizes[cluster_id] = sizes.get(cluster_id, 0) + 1
        return sizes


def squared_distance(a: np.ndarray, b: np.ndarray) -> float:
    """
    Calculate the squared Euclidean distance between two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Sum of squared coordinate differences
    """
    diff = a - b
    return float(diff @ diff)


def init_clusters(data: np.ndarray,
                  k: int,
                  rng: Optional[np.random.Generator] = None) -> List[Cluster]:
    """
    Seed clusters at k distinct points chosen uniformly at random.

    With fewer points than k, every point becomes a center.

    Args:
        data: Data matrix
        k: Number of clusters
        rng: Random generator (a fresh unseeded one if None)

    Returns:
        List of clusters with empty member lists
    """
    rng = rng if rng is not None else np.random.default_rng()
    n_points = data.shape[0]
    n_centers = min(k, n_points)

    indices = rng.choice(n_points, size=n_centers, replace=False)
    return [Cluster(data[idx].copy(), [], i) for i, idx in enumerate(indices)]


def assign_points_to_clusters(data: np.ndarray, clusters: List[Cluster]) -> np.ndarray:
    """
    Assign each data point to the nearest cluster center.

    Ties go to the lowest cluster index. Member lists are rebuilt.

    Args:
        data: Data matrix
        clusters: List of clusters

    Returns:
        Array with the cluster index of each point
    """
    centers = np.vstack([c.center for c in clusters])
    dists = ((data[:, np.newaxis, :] - centers[np.newaxis, :, :]) ** 2).sum(axis=2)
    # argmin keeps the first of equal minima
    assignments = np.argmin(dists, axis=1)

    for cluster in clusters:
        cluster.clear_members()
    for i, cluster_idx in enumerate(assignments):
        clusters[cluster_idx].add_member(i)

    return assignments


def update_cluster_centers(data: np.ndarray, clusters: List[Cluster]) -> None:
    """Recompute every cluster center from its members."""
    for cluster in clusters:
        cluster.update_center(data)


def compute_inertia(data: np.ndarray, clusters: List[Cluster], assignments: np.ndarray) -> float:
    """
    Calculate the within-cluster sum of squared distances.

    Args:
        data: Data matrix
        clusters: Clusters indexed by assignment value
        assignments: Cluster index for each point

    Returns:
        Inertia (WCSS)
    """
    if data.shape[0] == 0:
        return 0.0
    centers = np.vstack([c.center for c in clusters])
    return float(((data - centers[assignments]) ** 2).sum())


def kmeans(data: np.ndarray,
           k: int,
           max_iters: int = DEFAULT_MAX_ITERS,
           rng: Optional[np.random.Generator] = None) -> KMeansResult:
    """
    Perform K-means clustering on the data.

    Args:
        data: Data matrix (rows are points)
        k: Number of clusters (at least 1)
        max_iters: Maximum number of assignment passes
        rng: Random generator used to pick the initial centers

    Returns:
        KMeansResult with assignments, clusters and inertia
    """
    data = np.asarray(data, dtype=float)
    n_points = data.shape[0]

    if n_points == 0:
        return KMeansResult(np.zeros(0, dtype=int), [], 0.0, converged=True)

    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")

    clusters = init_clusters(data, k, rng)
    assignments = np.full(n_points, -1, dtype=int)
    history = []
    iteration = 0
    changed = True

    while changed and iteration < max_iters:
        iteration += 1
        new_assignments = assign_points_to_clusters(data, clusters)
        changed = bool(np.any(new_assignments != assignments))
        assignments = new_assignments

        if changed:
            update_cluster_centers(data, clusters)
            history.append(compute_inertia(data, clusters, assignments))

    inertia = compute_inertia(data, clusters, assignments)
    converged = not changed
    if not converged:
        logger.info(f"k-means stopped at iteration cap ({max_iters}) without converging")
    logger.debug(f"k-means k={k} n={n_points}: {iteration} iterations, inertia={inertia:.4f}")

    return KMeansResult(
        assignments=assignments,
        clusters=clusters,
        inertia=inertia,
        iterations=iteration,
        converged=converged,
        inertia_history=history
    )


def clamp_k(k: Any, k_min: int = 2, k_max: int = 8, default: int = 4) -> int:
    """
    Coerce a requested cluster count into the allowed range.

    Strings are read by their leading integer, so '3.7' gives 3. Input with
    no leading integer falls back to the default before clamping.

    Args:
        k: Requested number of clusters
        k_min: Smallest allowed k
        k_max: Largest allowed k
        default: Value used when k cannot be parsed

    Returns:
        k clamped into [k_min, k_max]
    """
    if isinstance(k, str):
        match = _LEADING_INT.match(k)
        k = int(match.group(0)) if match else default
    else:
        try:
            k = int(k)
        except (TypeError, ValueError, OverflowError):
            k = default
    return max(k_min, min(k_max, k))


def kmeans_vectors(vectors: Sequence[Dict[str, float]],
                   k: int,
                   max_iters: int = DEFAULT_MAX_ITERS,
                   rng: Optional[np.random.Generator] = None) -> KMeansResult:
    """
    Cluster standardized feature vectors.

    Args:
        vectors: Feature vectors sharing one key set
        k: Number of clusters
        max_iters: Maximum number of assignment passes
        rng: Random generator used to pick the initial centers

    Returns:
        KMeansResult (centers are in the vectors' feature order)
    """
    names = feature_names(vectors)
    return kmeans(vectors_to_matrix(vectors, names), k, max_iters, rng)

