"""
Loading per-country snapshot rows from files.

Rows normally come from the data store; this reads the same schema from a
CSV or JSON export so the analyses can run offline.
"""

import logging
import os
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from covidmath.utils.general import nan_to_none

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = (
    'total_cases', 'total_deaths', 'stringency_index', 'new_vaccinations',
    'gdp_per_capita', 'life_expectancy', 'population', 'icu_patients',
    'excess_mortality',
)


def read_frame(filepath: str) -> pd.DataFrame:
    """
    Read a snapshot file into a DataFrame.

    Args:
        filepath: Path to a .csv or .json (records) file

    Returns:
        DataFrame with one row per country
    """
    if filepath.endswith('.csv'):
        df = pd.read_csv(filepath)
    elif filepath.endswith('.json'):
        df = pd.read_json(filepath, orient='records')
    else:
        raise ValueError(f"Unsupported data file format: {filepath}")

    for col in NUMERIC_FIELDS:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors='coerce')

    return df


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Convert a DataFrame into plain row dictionaries.

    NaN becomes None and numpy scalars become Python numbers.

    Args:
        df: Snapshot DataFrame

    Returns:
        List of row dictionaries
    """
    rows = []
    for record in df.astype(object).to_dict(orient='records'):
        record = {
            key: (value.item() if isinstance(value, np.generic) else value)
            for key, value in record.items()
        }
        rows.append(nan_to_none(record))
    return rows


def load_rows(filepath: str) -> List[Dict[str, Any]]:
    """
    Load snapshot rows from a file.

    Args:
        filepath: Path to a .csv or .json file

    Returns:
        List of row dictionaries
    """
    if not os.path.isfile(filepath):
        raise FileNotFoundError(f"Data file not found: {filepath}")

    rows = frame_to_rows(read_frame(filepath))
    logger.info(f"Loaded {len(rows)} rows from {filepath}")
    return rows
