"""
Poisson Likelihood-Ratio Score for Space-Time Candidates

For a zone Z and a trailing window W (the d + 1 most recent time steps) let

    C = observed cases inside Z × W
    B = expected cases inside Z × W
    N = total observed cases

The population-based Poisson log-likelihood ratio (Kulldorff, 1997) is

    score = C·ln(C/B) + (N - C)·ln((N - C)/(N - B))    if C > B
    score = -inf                                        otherwise

The -inf branch marks candidates without excess risk; they can never win a
strict maximum comparison.

Boundary conventions:
    - If N <= B there is no information outside the candidate, so the outside
      relative risk is taken to be 1.
    - 0·ln(0) is taken to be 0 (scipy.special.xlogy), so a candidate holding
      every observed case has relrisk_out = 0 and a finite score C·ln(C/B).

Reference:
    Kulldorff, M. (1997). A spatial scan statistic. Communications in
    Statistics - Theory and Methods, 26(6), 1481-1496.
"""

from typing import NamedTuple, Sequence
import numpy as np
from scipy.special import xlogy

from ..data_models import AggregateTables


class PoissonScore(NamedTuple):
    """Score and relative risks of a single candidate."""
    score: float
    relrisk_in: float
    relrisk_out: float


def poisson_score(C: float, B: float, total_count: float) -> PoissonScore:
    """
    Compute score and relative risks from aggregated sums.

    Args:
        C: Observed count inside the candidate
        B: Expected count inside the candidate (must be > 0)
        total_count: Total observed count

    Returns:
        PoissonScore(score, relrisk_in, relrisk_out)

    Example:
        >>> poisson_score(8, 4.0, 8).score  # 8·ln(2)
        5.545177444479562
    """
    risk_in = C / B
    risk_out = (total_count - C) / (total_count - B) if total_count > B else 1.0

    if C > B:
        score = float(xlogy(C, risk_in) + xlogy(total_count - C, risk_out))
    else:
        score = float('-inf')

    return PoissonScore(score, float(risk_in), float(risk_out))


class PoissonScoreCalculator:
    """
    Scores zone-duration candidates against one AggregateTables snapshot.

    The calculator holds no state besides the snapshot it reads from. The
    simulation engine points it at a new snapshot every round, so both the
    observed pass and the replicates go through the same scoring code.

    Attributes:
        aggregates: Current cumulative tables

    Example:
        >>> tables = AggregateTables.from_raw([[3], [5]], [[2.0], [2.0]])
        >>> calc = PoissonScoreCalculator(tables)
        >>> calc.score([0], end_row=1).relrisk_in
        2.0
    """

    def __init__(self, aggregates: AggregateTables):
        self.aggregates = aggregates

    def sums(self, zone_locations: Sequence[int], end_row: int):
        """Return (C, B) for the zone at the given cumulative time index."""
        tables = self.aggregates
        zone_locations = np.asarray(zone_locations, dtype=np.intp)
        C = int(tables.cum_counts[zone_locations, end_row].sum())
        B = float(tables.cum_baselines[zone_locations, end_row].sum())
        return C, B

    def score(self, zone_locations: Sequence[int], end_row: int) -> PoissonScore:
        """
        Score one candidate.

        Args:
            zone_locations: Location indices of the zone
            end_row: Cumulative time index (duration - 1)

        Returns:
            PoissonScore for the candidate

        Complexity: O(|zone|)
        """
        C, B = self.sums(zone_locations, end_row)
        return poisson_score(C, B, self.aggregates.total_count)
