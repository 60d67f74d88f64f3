"""
Null-Model Count Simulators

Factories for the simulation hook of PoissonScan. Each returns a
zero-argument callable that draws one count table per call from a
numpy Generator seeded once, so a fixed seed reproduces the whole
sequence of replicates.

- multinomial_count_simulator: population-based null. The total number of
  cases is fixed and spread over the cells in proportion to the baselines.
- poisson_count_simulator: each cell is drawn independently from
  Poisson(baseline).
"""

from typing import Optional
import numpy as np

from .engine import CountSimulator


def multinomial_count_simulator(
    baselines: np.ndarray,
    total_count: int,
    seed: Optional[int] = None
) -> CountSimulator:
    """
    Simulator conditioning on the observed total.

    Args:
        baselines: Expected counts (n_times, n_locations), non-negative with
            a positive sum
        total_count: Number of cases to distribute per table
        seed: Random seed for reproducibility

    Returns:
        Callable producing integer tables shaped like baselines

    Example:
        >>> simulate = multinomial_count_simulator(np.ones((3, 4)), 24, seed=1)
        >>> int(simulate().sum())
        24
    """
    baselines = np.asarray(baselines, dtype=np.float64)
    if np.any(baselines < 0) or baselines.sum() <= 0:
        raise ValueError("baselines must be non-negative with a positive sum")
    if total_count < 0:
        raise ValueError(f"total_count must be non-negative, got {total_count}")

    shape = baselines.shape
    probabilities = (baselines / baselines.sum()).ravel()
    rng = np.random.default_rng(seed)

    def simulate_counts() -> np.ndarray:
        return rng.multinomial(total_count, probabilities).reshape(shape)

    return simulate_counts


def poisson_count_simulator(
    baselines: np.ndarray,
    seed: Optional[int] = None
) -> CountSimulator:
    """
    Simulator drawing every cell from Poisson(baseline).

    Args:
        baselines: Expected counts (n_times, n_locations)
        seed: Random seed for reproducibility

    Returns:
        Callable producing integer tables shaped like baselines
    """
    baselines = np.asarray(baselines, dtype=np.float64)
    if np.any(baselines < 0):
        raise ValueError("baselines must be non-negative")

    rng = np.random.default_rng(seed)

    def simulate_counts() -> np.ndarray:
        return rng.poisson(baselines)

    return simulate_counts
