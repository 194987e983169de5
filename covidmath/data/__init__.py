"""
Snapshot data loading.
"""

from covidmath.data.loader import load_rows
