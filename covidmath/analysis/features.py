"""
Feature engineering for per-country snapshot rows.

Turns raw rows (as returned by the data store) into the feature vectors
used for clustering and into the derived metrics used for outlier
detection. Missing numeric inputs are filled from a defaults table.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from covidmath.errors import InvalidParameterError
from covidmath.utils.general import float_or_default, parse_float

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('country_name', 'continent')

FEATURE_DEFAULTS = {
    'total_cases': 0.0,
    'population': 1.0,
    'gdp_per_capita': 1000.0,
    'stringency_index': 0.0,
    'life_expectancy': 70.0,
}

LOG_OFFSET = 1e-9

FEATURE_NAMES = ('log_cases_per_capita', 'log_gdp', 'stringency', 'life_expectancy')

# Inputs that feed a log10 and so must not be negative
LOG_INPUTS = ('total_cases', 'population', 'gdp_per_capita')


@dataclass(frozen=True)
class DerivedMetricsRow:
    """Per-country epidemiological ratios computed from raw counts."""
    country_name: str
    continent: Optional[str]
    gdp_per_capita: Optional[float]
    life_expectancy: Optional[float]
    total_cases: float
    total_deaths: float
    population: float
    death_rate: Optional[float]
    cases_per_capita: Optional[float]
    icu_per_capita: Optional[float]
    excess_mortality: Optional[float]

    def metric(self, name: str) -> Optional[float]:
        """Value of one of the derived metrics by name."""
        return getattr(self, name)


def validate_rows(rows: Sequence[Mapping[str, Any]]) -> None:
    """
    Check that every row carries the required identifying fields.

    Args:
        rows: Raw rows

    Raises:
        InvalidParameterError: If a row lacks country_name or continent
    """
    for i, row in enumerate(rows):
        missing = [f for f in REQUIRED_FIELDS if f not in row]
        if missing:
            raise InvalidParameterError(f"Row {i} is missing required field(s): {', '.join(missing)}")


def engineer_features(rows: Sequence[Mapping[str, Any]],
                      defaults: Optional[Mapping[str, float]] = None,
                      log_offset: float = LOG_OFFSET) -> List[Dict[str, float]]:
    """
    Build clustering feature vectors from raw rows.

    Cases per capita and GDP are log10-transformed to reduce skew. A negative
    count, population or GDP is treated as missing and replaced by its default.

    Args:
        rows: Raw rows
        defaults: Replacement values for missing numeric fields
        log_offset: Constant added before taking logs

    Returns:
        One feature vector per row, keyed by FEATURE_NAMES
    """
    table = dict(FEATURE_DEFAULTS)
    if defaults:
        table.update(defaults)

    vectors = []
    for row in rows:
        values = {name: float_or_default(row.get(name), table[name]) for name in table}
        for name in LOG_INPUTS:
            if values[name] < 0:
                logger.warning(f"Negative {name}={values[name]} for {row.get('country_name')}, "
                               f"using default {table[name]}")
                values[name] = table[name]
        vectors.append({
            'log_cases_per_capita': math.log10(values['total_cases'] / values['population'] + log_offset),
            'log_gdp': math.log10(values['gdp_per_capita'] + log_offset),
            'stringency': values['stringency_index'],
            'life_expectancy': values['life_expectancy'],
        })

    return vectors


def compute_derived_metrics(rows: Sequence[Mapping[str, Any]]) -> List[DerivedMetricsRow]:
    """
    Compute derived epidemiological metrics for each country.

    Division by zero yields None rather than an error.

    Args:
        rows: Raw rows

    Returns:
        One DerivedMetricsRow per input row
    """
    derived = []
    for row in rows:
        total_cases = float_or_default(row.get('total_cases'), 0.0)
        total_deaths = float_or_default(row.get('total_deaths'), 0.0)
        population = float_or_default(row.get('population'), 1.0)
        icu_patients = float_or_default(row.get('icu_patients'), None)

        excess = row.get('excess_mortality')
        excess_mortality = parse_float(excess) if excess is not None else None

        derived.append(DerivedMetricsRow(
            country_name=row.get('country_name'),
            continent=row.get('continent'),
            gdp_per_capita=float_or_default(row.get('gdp_per_capita'), None),
            life_expectancy=float_or_default(row.get('life_expectancy'), None),
            total_cases=total_cases,
            total_deaths=total_deaths,
            population=population,
            death_rate=total_deaths / total_cases if total_cases > 0 else None,
            cases_per_capita=total_cases / population if population > 0 else None,
            icu_per_capita=icu_patients / population if icu_patients is not None and population > 0 else None,
            excess_mortality=excess_mortality,
        ))

    return derived
