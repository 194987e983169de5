"""
Tests for the outlier detection module.
"""

import pytest
import numpy as np
import sys
import os
from scipy import stats as scipy_stats

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from covidmath.math.outliers import percentile, detect_iqr, detect_zscore


class TestPercentile:
    """Tests for the interpolated percentile."""

    def test_percentile_interpolation(self):
        """Test linear interpolation between ranks."""
        values = [1.0, 2.0, 3.0, 4.0, 5.0, 100.0]
        assert percentile(values, 25) == pytest.approx(2.25)
        assert percentile(values, 75) == pytest.approx(4.75)
        assert percentile(values, 0) == 1.0
        assert percentile(values, 100) == 100.0

    def test_percentile_matches_numpy(self, rng):
        """Test agreement with numpy's default linear method."""
        values = sorted(rng.normal(size=37).tolist())
        for p in (10, 25, 50, 75, 90):
            assert percentile(values, p) == pytest.approx(np.percentile(values, p))


class TestIQR:
    """Tests for the Tukey fence detector."""

    def test_iqr_example(self):
        """Test the worked example: only 100 is outside the fences."""
        result = detect_iqr([1, 2, 3, 4, 5, 100])

        assert result.q1 == pytest.approx(2.25)
        assert result.q3 == pytest.approx(4.75)
        assert result.iqr == pytest.approx(2.5)
        assert result.lower == pytest.approx(-1.5)
        assert result.upper == pytest.approx(8.5)
        assert result.flagged == [False, False, False, False, False, True]

    def test_iqr_unsorted_input(self):
        """Test that flags follow input order, not sorted order."""
        result = detect_iqr([100, 3, 1, 5, 2, 4])
        assert result.flagged == [True, False, False, False, False, False]

    def test_iqr_invalid_values_ignored(self):
        """Test that None, NaN and infinities are skipped and never flagged."""
        values = [1, 2, 3, 4, 5, 100, None, float('nan'), float('inf'), float('-inf')]
        result = detect_iqr(values)

        assert result.upper == pytest.approx(8.5)
        assert result.flagged == [False] * 5 + [True] + [False] * 4

    def test_iqr_too_few_values(self):
        """Test that fewer than four valid values give no bounds."""
        result = detect_iqr([1.0, 1000.0, None, 2.0])

        assert result.lower is None
        assert result.upper is None
        assert result.q1 is None
        assert result.flagged == [False, False, False, False]

    def test_iqr_bounds_ordering(self, rng):
        """Test lower <= Q1 <= Q3 <= upper on random data."""
        for _ in range(20):
            values = rng.exponential(size=int(rng.integers(4, 40))).tolist()
            result = detect_iqr(values)
            assert result.lower <= result.q1 <= result.q3 <= result.upper

    def test_iqr_thresholds(self):
        """Test the thresholds dictionary."""
        result = detect_iqr([1, 2, 3, 4, 5, 100])
        assert set(result.thresholds().keys()) == {'lower', 'upper', 'q1', 'q3'}


class TestZScore:
    """Tests for the Z-score detector."""

    def test_zscore_flags_extreme_value(self):
        """Test that a single extreme value is flagged."""
        values = [0.0] * 20 + [100.0]
        result = detect_zscore(values)

        assert result.flagged == [False] * 20 + [True]
        assert result.mean == pytest.approx(100.0 / 21)

    def test_zscore_population_std(self):
        """Test that the standard deviation divides by n."""
        result = detect_zscore([2, 4, 4, 4, 5, 5, 7, 9])
        assert result.mean == pytest.approx(5.0)
        assert result.std == pytest.approx(2.0)

    def test_zscore_matches_scipy(self, rng):
        """Test that exactly the rows with |z| > 3 are flagged."""
        values = np.concatenate([rng.normal(size=200), [8.0, -9.0, 12.0]])
        result = detect_zscore(values.tolist())

        expected = (np.abs(scipy_stats.zscore(values)) > 3).tolist()
        assert result.flagged == expected
        assert sum(result.flagged) >= 3

    def test_zscore_too_few_values(self):
        """Test that fewer than two valid values flag nothing."""
        result = detect_zscore([5.0, None, float('nan')])

        assert result.mean is None
        assert result.std is None
        assert result.flagged == [False, False, False]

    def test_zscore_constant_values(self):
        """Test that zero spread falls back to std 1 and flags nothing."""
        result = detect_zscore([3.0, 3.0, 3.0, 3.0])

        assert result.std == 1.0
        assert result.flagged == [False] * 4

    def test_zscore_invalid_values_not_flagged(self):
        """Test that None and NaN rows are never flagged."""
        values = [0.0] * 20 + [100.0, None, float('nan')]
        result = detect_zscore(values)
        assert result.flagged[-2:] == [False, False]

    def test_zscore_thresholds(self):
        """Test the thresholds dictionary carries the threshold."""
        result = detect_zscore([1.0, 2.0, 3.0])
        assert result.thresholds()['threshold'] == 3.0
