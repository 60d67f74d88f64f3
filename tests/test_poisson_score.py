"""
Tests for the Poisson Likelihood-Ratio Score

This module checks the score formula, its boundary conventions and the
calculator reading sums from cumulative tables.

Test Categories:
1. Score formula
2. Boundary cases (no excess, all cases inside, N <= B)
3. Calculator on aggregate tables

Run with: pytest tests/test_poisson_score.py -v
"""

import math

import pytest
import numpy as np

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from scanstat.data_models import AggregateTables
from scanstat.scan.poisson import PoissonScore, PoissonScoreCalculator, poisson_score


class TestScoreFormula:
    """Tests for poisson_score on plain numbers."""

    def test_finite_score(self):
        """Excess inside the candidate gives the log-likelihood ratio."""
        result = poisson_score(6, 3.0, 10)

        expected = 6 * math.log(2.0) + 4 * math.log(4.0 / 7.0)
        assert result.score == pytest.approx(expected)
        assert result.relrisk_in == pytest.approx(2.0)
        assert result.relrisk_out == pytest.approx(4.0 / 7.0)

    def test_returns_named_tuple(self):
        """Result unpacks as (score, relrisk_in, relrisk_out)."""
        result = poisson_score(6, 3.0, 10)
        score, relrisk_in, relrisk_out = result

        assert isinstance(result, PoissonScore)
        assert score == result.score
        assert relrisk_in == result.relrisk_in
        assert relrisk_out == result.relrisk_out

    def test_score_is_positive_with_excess(self):
        """A candidate with C > B always has a positive score."""
        for C, B, N in [(2, 1.0, 50), (10, 9.5, 40), (30, 5.0, 31)]:
            assert poisson_score(C, B, N).score > 0

    def test_score_grows_with_count(self):
        """More cases inside the same candidate give a higher score."""
        low = poisson_score(5, 2.0, 20).score
        high = poisson_score(8, 2.0, 20).score
        assert high > low


class TestBoundaryCases:
    """Tests for the edge cases of the score."""

    def test_all_cases_inside(self):
        """C = N gives relrisk_out 0 and the finite score C·ln(C/B)."""
        result = poisson_score(8, 4.0, 8)

        assert result.relrisk_in == pytest.approx(2.0)
        assert result.relrisk_out == 0.0
        assert math.isfinite(result.score)
        assert result.score == pytest.approx(8 * math.log(2.0))

    def test_no_excess_is_minus_infinity(self):
        """C <= B gives -inf but still reports relative risks."""
        result = poisson_score(3, 4.0, 10)

        assert result.score == float('-inf')
        assert result.relrisk_in == pytest.approx(0.75)
        assert result.relrisk_out == pytest.approx(7.0 / 6.0)

    def test_equal_count_and_baseline(self):
        """C == B is not an excess."""
        assert poisson_score(4, 4.0, 10).score == float('-inf')

    def test_zero_count(self):
        """An empty candidate scores -inf with relrisk_in 0."""
        result = poisson_score(0, 2.0, 10)

        assert result.score == float('-inf')
        assert result.relrisk_in == 0.0

    def test_total_not_above_baseline(self):
        """N <= B sets relrisk_out to 1."""
        result = poisson_score(2, 5.0, 4)

        assert result.relrisk_out == 1.0
        assert result.score == float('-inf')

    def test_total_equal_to_baseline(self):
        """N == B also uses the fallback instead of dividing by zero."""
        result = poisson_score(3, 6.0, 6)
        assert result.relrisk_out == 1.0


class TestScoreCalculator:
    """Tests for PoissonScoreCalculator on cumulative tables."""

    def test_single_location(self):
        """Sums are read from the cumulative column of the window."""
        tables = AggregateTables.from_raw([[3], [5]], [[2.0], [2.0]])
        calc = PoissonScoreCalculator(tables)

        assert calc.sums([0], 0) == (3, 2.0)
        assert calc.sums([0], 1) == (8, 4.0)

    def test_single_location_scores(self):
        """Scores match poisson_score on the same sums."""
        tables = AggregateTables.from_raw([[3], [5]], [[2.0], [2.0]])
        calc = PoissonScoreCalculator(tables)

        assert calc.score([0], 0) == poisson_score(3, 2.0, 8)
        whole = calc.score([0], 1)
        assert whole.score == pytest.approx(8 * math.log(2.0))
        assert whole.relrisk_in == pytest.approx(2.0)

    def test_zone_sums_over_locations(self):
        """A multi-location zone adds its locations."""
        counts = np.array([[4, 1, 1], [2, 1, 1]])
        baselines = np.ones((2, 3))
        calc = PoissonScoreCalculator(AggregateTables.from_raw(counts, baselines))

        assert calc.sums([0, 1], 0) == (5, 2.0)
        assert calc.sums([0, 1], 1) == (8, 4.0)
        assert calc.sums(np.array([1, 2]), 1) == (4, 4.0)

    def test_uses_total_of_snapshot(self):
        """Pointing the calculator at new tables changes N."""
        first = AggregateTables.from_raw([[4, 1]], [[1.0, 1.0]])
        second = AggregateTables.from_raw([[4, 6]], [[1.0, 1.0]])
        calc = PoissonScoreCalculator(first)
        before = calc.score([0], 0)

        calc.aggregates = second
        after = calc.score([0], 0)

        assert before == poisson_score(4, 1.0, 5)
        assert after == poisson_score(4, 1.0, 10)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
