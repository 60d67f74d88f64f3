"""
P-values for the observed scan statistic.

Monte Carlo P-value:
    p = (1 + #{replicates >= observed}) / (n_replicates + 1)

Gumbel P-value:
    Maximum scan statistics are approximately Gumbel distributed, so a
    Gumbel fit to the replicates gives P-values finer than 1 / (n + 1).
    Replicates of -inf (rounds without any excess candidate) cannot enter a
    likelihood fit and are dropped before fitting.

Reference:
    Abrams, A. M., Kleinman, K. & Kulldorff, M. (2010). Gumbel based p-value
    approximations for spatial scan statistics. International Journal of
    Health Geographics, 9(1), 61.
"""

from typing import NamedTuple, Sequence
import numpy as np
from scipy import stats


class GumbelFit(NamedTuple):
    """Fitted Gumbel parameters and the resulting P-value."""
    pvalue: float
    loc: float
    scale: float


def mc_pvalue(observed: float, replicates: Sequence[float]) -> float:
    """
    Monte Carlo P-value of an observed statistic.

    Args:
        observed: Observed scan statistic
        replicates: Scan statistics of the simulated data

    Returns:
        P-value in (0, 1], or NaN without replicates

    Example:
        >>> mc_pvalue(5.0, [1.0, 2.0, 6.0])
        0.5
    """
    replicates = np.asarray(replicates, dtype=np.float64)
    if replicates.size == 0:
        return float('nan')
    n_exceeding = int(np.sum(replicates >= observed))
    return (1 + n_exceeding) / (replicates.size + 1)


def gumbel_pvalue(observed: float, replicates: Sequence[float]) -> GumbelFit:
    """
    P-value from a maximum-likelihood Gumbel fit to the replicates.

    Args:
        observed: Observed scan statistic
        replicates: Scan statistics of the simulated data

    Returns:
        GumbelFit(pvalue, loc, scale); all NaN when fewer than two finite
        replicates are available or they are all equal
    """
    replicates = np.asarray(replicates, dtype=np.float64)
    finite = replicates[np.isfinite(replicates)]
    if finite.size < 2 or np.all(finite == finite[0]):
        return GumbelFit(float('nan'), float('nan'), float('nan'))

    loc, scale = stats.gumbel_r.fit(finite)
    pvalue = float(stats.gumbel_r.sf(observed, loc=loc, scale=scale))
    return GumbelFit(pvalue, float(loc), float(scale))
