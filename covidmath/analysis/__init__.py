"""
End-to-end analyses built from the math routines.
"""

from covidmath.analysis.clustering import ClusteringService, run_clustering
from covidmath.analysis.outliers import VALID_METRICS, run_outlier_detection
