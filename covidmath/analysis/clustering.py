"""
Country clustering run.

Feature engineering, standardization, k-means and PCA are chained here and
the result is assembled into a JSON-serializable document. ClusteringService
puts the result cache in front of the run.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import numpy as np

from covidmath.analysis.features import FEATURE_NAMES, engineer_features, validate_rows
from covidmath.cache.result_cache import CacheOutcome, ResultCache
from covidmath.components.config import Config, ConfigManager
from covidmath.errors import EmptyDatasetError
from covidmath.math.clusters import clamp_k, kmeans
from covidmath.math.pca import pca_2d
from covidmath.math.scaling import standardize_matrix, vectors_to_matrix

logger = logging.getLogger(__name__)

PASSTHROUGH_FIELDS = ('gdp_per_capita', 'total_cases', 'population', 'life_expectancy', 'stringency_index')


def resolve_k(k: Any, config: Config) -> int:
    """Clamp a requested k into the configured bounds."""
    return clamp_k(
        k,
        config.get('clustering.k-min', 2),
        config.get('clustering.k-max', 8),
        config.get('clustering.k-default', 4)
    )


def run_clustering(rows: Sequence[Mapping[str, Any]],
                   k: Any,
                   config: Optional[Config] = None,
                   rng: Optional[np.random.Generator] = None) -> Dict[str, Any]:
    """
    Cluster countries and project them to 2-D.

    Args:
        rows: Raw per-country rows
        k: Requested number of clusters (clamped to the configured range)
        config: Configuration (the shared instance if None)
        rng: Random generator for k-means seeding and power iteration

    Returns:
        Dictionary with 'metadata' and 'data' keys

    Raises:
        EmptyDatasetError: If there are no rows
        InvalidParameterError: If a row lacks a required field
    """
    config = config or ConfigManager.get_config()

    if not rows:
        raise EmptyDatasetError("No data available")

    validate_rows(rows)
    k = resolve_k(k, config)
    rng = rng if rng is not None else np.random.default_rng()

    start_time = time.time()

    vectors = engineer_features(
        rows,
        config.get('features.defaults'),
        config.get('features.log-offset', 1e-9)
    )
    scaled, _, _ = standardize_matrix(vectors_to_matrix(vectors, FEATURE_NAMES))

    km = kmeans(scaled, k, config.get('clustering.max-iters', 100), rng)
    projection = pca_2d(
        scaled,
        config.get('pca.iters', 100),
        rng,
        config.get('pca.canonicalize-sign', False)
    )['projections']

    data = []
    for i, row in enumerate(rows):
        record = {
            'country_name': row.get('country_name'),
            'continent': row.get('continent'),
            'cluster': int(km.assignments[i]),
            'pc1': float(projection[i][0]),
            'pc2': float(projection[i][1]),
        }
        for name in PASSTHROUGH_FIELDS:
            record[name] = row.get(name)
        data.append(record)

    cluster_sizes = {str(cluster_id): count for cluster_id, count in km.cluster_sizes().items()}

    logger.info(f"Clustered {len(rows)} countries with k={k} in {time.time() - start_time:.2f}s "
                f"(inertia={km.inertia:.4f}, iterations={km.iterations})")

    return {
        'metadata': {
            'k': k,
            'clusterSizes': cluster_sizes,
            'inertia': km.inertia,
            'generatedAt': datetime.now(timezone.utc).isoformat()
        },
        'data': data
    }


class ClusteringService:
    """
    Serves clustering documents, reusing cached runs per k.
    """

    def __init__(self,
                 cache: Optional[ResultCache] = None,
                 config: Optional[Config] = None,
                 rng_factory: Optional[Callable[[], np.random.Generator]] = None):
        """
        Initialize the service.

        Args:
            cache: Result cache (in-memory if None)
            config: Configuration (the shared instance if None)
            rng_factory: Builds the random generator for each fresh run
        """
        self.cache = cache if cache is not None else ResultCache()
        self.config = config or ConfigManager.get_config()
        self.rng_factory = rng_factory or np.random.default_rng

    def cluster(self,
                rows_provider: Callable[[], List[Mapping[str, Any]]],
                k: Any = None,
                force_refresh: bool = False) -> CacheOutcome:
        """
        Get the clustering document for k.

        Rows are only fetched when the result has to be computed.

        Args:
            rows_provider: Returns the raw rows when called
            k: Requested number of clusters (configured default if None)
            force_refresh: Recompute even if a cached document exists

        Returns:
            CacheOutcome holding the document
        """
        k = resolve_k(self.config.get('clustering.k-default', 4) if k is None else k, self.config)

        def compute():
            return run_clustering(rows_provider(), k, self.config, self.rng_factory())

        if not self.config.get('cache.enabled', True):
            return CacheOutcome(compute(), from_cache=False)

        outcome = self.cache.get_or_compute(k, compute, force_refresh)
        if outcome.write_error is not None:
            logger.warning(f"Clustering result for k={k} returned without being cached")
        return outcome
