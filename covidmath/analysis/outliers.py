"""
Outlier report for one derived metric.

Validates the requested metric, computes derived metrics per country, runs
the IQR and Z-score detectors and assembles the JSON-serializable report.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from covidmath.analysis.features import compute_derived_metrics, validate_rows
from covidmath.components.config import Config, ConfigManager
from covidmath.errors import EmptyDatasetError, InvalidParameterError
from covidmath.math.outliers import detect_iqr, detect_zscore

logger = logging.getLogger(__name__)

VALID_METRICS = ('death_rate', 'cases_per_capita', 'excess_mortality', 'icu_per_capita')


def validate_metric(metric: Optional[str]) -> str:
    """
    Check a metric name against the accepted set.

    Args:
        metric: Requested metric

    Returns:
        The metric name

    Raises:
        InvalidParameterError: If the metric is missing or unknown
    """
    if metric not in VALID_METRICS:
        raise InvalidParameterError(f"Invalid metric. Must be one of: {', '.join(VALID_METRICS)}")
    return metric


def run_outlier_detection(rows: Sequence[Mapping[str, Any]],
                          metric: Optional[str] = None,
                          continent: Optional[str] = None,
                          config: Optional[Config] = None) -> Dict[str, Any]:
    """
    Flag countries whose metric value is anomalous.

    Args:
        rows: Raw per-country rows
        metric: Metric to analyse (configured default if None)
        continent: Only analyse rows from this continent
        config: Configuration (the shared instance if None)

    Returns:
        Dictionary with 'metadata' and 'data' keys

    Raises:
        InvalidParameterError: If the metric is unknown or a row lacks a required field
        EmptyDatasetError: If no rows remain to analyse
    """
    config = config or ConfigManager.get_config()
    metric = validate_metric(metric if metric is not None else config.get('outliers.default-metric', 'death_rate'))

    if continent:
        rows = [row for row in rows if row.get('continent') == continent]

    if not rows:
        raise EmptyDatasetError("No data found")

    validate_rows(rows)
    derived = compute_derived_metrics(rows)
    values = [d.metric(metric) for d in derived]

    iqr_result = detect_iqr(
        values,
        config.get('outliers.iqr-multiplier', 1.5),
        config.get('outliers.min-iqr-samples', 4)
    )
    z_result = detect_zscore(
        values,
        config.get('outliers.z-threshold', 3.0),
        config.get('outliers.min-z-samples', 2)
    )

    data = []
    for i, d in enumerate(derived):
        data.append({
            'country_name': d.country_name,
            'continent': d.continent,
            'gdp_per_capita': d.gdp_per_capita,
            'death_rate': d.death_rate,
            'cases_per_capita': d.cases_per_capita,
            'icu_per_capita': d.icu_per_capita,
            'excess_mortality': d.excess_mortality,
            'metric_value': values[i],
            'isOutlier_IQR': iqr_result.flagged[i],
            'isOutlier_Z': z_result.flagged[i],
        })

    outlier_count = sum(1 for d in data if d['isOutlier_IQR'])
    logger.info(f"{outlier_count} of {len(data)} countries flagged on {metric}")

    return {
        'metadata': {
            'metric': metric,
            'totalCountries': len(data),
            'outlierCount': outlier_count,
            'method': 'IQR',
            'thresholds': {
                'iqr': iqr_result.thresholds(),
                'zscore': z_result.thresholds()
            }
        },
        'data': data
    }
