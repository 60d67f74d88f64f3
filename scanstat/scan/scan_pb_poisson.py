"""
Population-Based Poisson Space-Time Scan Statistic

High-level entry point: takes counts the way they are usually held (rows
are time steps from least to most recent, columns are locations), derives
population-based baselines, runs the observed scan and the Monte Carlo
replicates, and assembles a ScanStatistic.

Baselines:
    Without population data the expected count of a cell is proportional
    to its time step total and its location total:

        b[t, l] = n[t, ·] · n[·, l] / n[·, ·]

    With population data (one value per location, or a full matrix) the
    expected count is the population share of the total count:

        b[t, l] = n[·, ·] · p[t, l] / Σ p

    In both cases the baselines add up to the total count, which is what the
    multinomial null model conditions on.

Reference:
    Kulldorff, M. (2001). Prospective time periodic geographical disease
    surveillance using a scan statistic. Journal of the Royal Statistical
    Society, Series A, 164(1), 61-72.
"""

import logging
from typing import Any, Optional, Sequence
import numpy as np

from ..data_models import (
    MostLikelyCluster, ScanStatistic, _as_count_matrix, _as_baseline_matrix
)
from ..hpc.timing import Timer
from .engine import PoissonScan
from .export import ResultExporter
from .pvalues import gumbel_pvalue, mc_pvalue
from .simulators import multinomial_count_simulator

LOGGER = logging.getLogger(__name__)


def estimate_baselines(counts: np.ndarray) -> np.ndarray:
    """
    Baselines from the margins of the count matrix.

    Args:
        counts: Count matrix (n_times, n_locations)

    Returns:
        Float matrix of the same shape summing to the total count
    """
    counts = _as_count_matrix(counts)
    total = counts.sum()
    if total == 0:
        raise ValueError("counts must contain at least one case")
    return np.outer(counts.sum(axis=1), counts.sum(axis=0)) / total


def population_baselines(counts: np.ndarray, population: Any) -> np.ndarray:
    """
    Baselines proportional to population.

    Args:
        counts: Count matrix (n_times, n_locations)
        population: Vector of length n_locations (constant over time) or a
            matrix shaped like counts

    Returns:
        Float matrix shaped like counts summing to the total count
    """
    counts = _as_count_matrix(counts)
    population = np.asarray(population, dtype=np.float64)
    if population.ndim == 1:
        if population.size != counts.shape[1]:
            raise ValueError(
                "If population is supplied as a vector, it must be of the same "
                "length as the number of locations."
            )
        population = np.tile(population, (counts.shape[0], 1))
    population = _as_baseline_matrix(population, counts.shape)
    if population.sum() <= 0:
        raise ValueError("population must have a positive sum")
    return counts.sum() * population / population.sum()


def scan_pb_poisson(
    counts: Any,
    zones: Sequence[Sequence[int]],
    population: Optional[Any] = None,
    n_mcsim: int = 0,
    max_only: bool = False,
    seed: Optional[int] = None
) -> ScanStatistic:
    """
    Calculate the population-based Poisson scan statistic.

    Args:
        counts: Observed counts (n_times, n_locations); rows ordered from
            least recent to most recent
        zones: Zone catalog, each zone a sequence of location indices
        population: Optional population per location (vector) or per cell
            (matrix); baselines are estimated from the counts when omitted
        n_mcsim: Number of Monte Carlo replicates for the P-values
        max_only: Keep only the highest-scoring candidate instead of the
            full zone × duration table
        seed: Random seed of the null model

    Returns:
        ScanStatistic with the most likely cluster, result tables and P-values

    Raises:
        ValueError: On malformed counts, population or zones, or when some
            baseline is not positive

    Example:
        >>> result = scan_pb_poisson(counts, zones, population=pop, n_mcsim=99)
        >>> print(result.summary())
    """
    if n_mcsim < 0:
        raise ValueError(f"n_mcsim must be non-negative, got {n_mcsim}")

    counts = _as_count_matrix(counts)
    if population is None:
        baselines = estimate_baselines(counts)
    else:
        baselines = population_baselines(counts, population)
    if np.any(baselines <= 0):
        raise ValueError(
            "baselines must be positive; every location and time step needs "
            "a positive population or at least one case"
        )

    # Most recent time step first, so cumulative sums are trailing windows
    recent_counts = counts[::-1]
    recent_baselines = baselines[::-1]
    total_count = int(counts.sum())

    simulator = None
    if n_mcsim > 0:
        simulator = multinomial_count_simulator(recent_baselines, total_count, seed=seed)

    with Timer("Population-based Poisson scan") as timer:
        scan = PoissonScan(
            recent_counts,
            recent_baselines,
            zones,
            store_everything=not max_only,
            n_mcsim=n_mcsim,
            simulate_counts=simulator
        )
        scan.run_scan()
        scan.run_simulations()

    exporter = ResultExporter(scan.results)
    table = (exporter.observed_table()
             .sort_values("score", ascending=False, kind="mergesort")
             .reset_index(drop=True))
    replicates = exporter.simulation_table()

    mlc = _most_likely_cluster(table.iloc[0], zones, counts, baselines)
    LOGGER.info("MLC: zone %d, duration %d, score %.4f",
                mlc.zone_number, mlc.duration, mlc.score)

    mc_p = float('nan')
    gumbel_p = float('nan')
    if n_mcsim > 0:
        mc_p = mc_pvalue(mlc.score, replicates["score"].to_numpy())
        gumbel_p = gumbel_pvalue(mlc.score, replicates["score"].to_numpy()).pvalue

    return ScanStatistic(
        MLC=mlc,
        table=table,
        replicate_statistics=replicates,
        mc_pvalue=mc_p,
        gumbel_pvalue=gumbel_p,
        n_zones=scan.n_zones,
        n_locations=counts.shape[1],
        max_duration=counts.shape[0],
        n_mcsim=n_mcsim,
        processing_time_ms=timer.elapsed_ms
    )


def _most_likely_cluster(row, zones, counts: np.ndarray, baselines: np.ndarray) -> MostLikelyCluster:
    """Build the MLC from the top table row; zone -1 means nothing was retained."""
    zone_number = int(row["zone"])
    duration = int(row["duration"])
    locations = [int(i) for i in zones[zone_number]] if zone_number >= 0 else []

    # Last `duration` rows of the least-recent-first matrices
    time_slice = slice(counts.shape[0] - duration, counts.shape[0])
    return MostLikelyCluster(
        zone_number=zone_number,
        locations=locations,
        duration=duration,
        score=float(row["score"]),
        relrisk_in=float(row["relrisk_in"]),
        relrisk_out=float(row["relrisk_out"]),
        observed=counts[time_slice][:, locations],
        baselines=baselines[time_slice][:, locations]
    )
