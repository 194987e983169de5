"""
Covidmath package for country-level epidemiological analysis.

Standardization, PCA, k-means clustering and outlier detection over a
per-country snapshot of COVID-19 and socio-economic indicators.
"""

__version__ = '0.1.0'

from covidmath.components.config import Config, ConfigManager
from covidmath.analysis.clustering import ClusteringService, run_clustering
from covidmath.analysis.outliers import run_outlier_detection
