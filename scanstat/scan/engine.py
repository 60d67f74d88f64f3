"""
Scan and Simulation Engine

PoissonScan drives the Poisson score calculator over every zone-duration
candidate, first on the observed data and then on simulated data for the
Monte Carlo replicates.

Candidate Order:
    Zones in the order given, and within each zone the durations
    1, 2, ..., max_duration. In store-everything mode candidate
    (zone i, duration index d) is written to slot i * max_duration + d.

Simulation State Machine:
    IDLE ──run_simulations()──> RUNNING(round 0..N-1) ──> DONE
                                    │
                                    └── hook failure ──> FAILED

    On entering RUNNING the result store is switched to per-round maxima.
    Each round draws a fresh count table from the injected simulator,
    rebuilds the aggregate tables (the previous snapshot is dropped) and
    replays the full candidate iteration. A failing round aborts the whole
    run, since the number of replicates determines the P-value resolution.

Concurrency:
    Single-threaded and synchronous, with no cancellation. Rounds share no
    mutable state besides their own result slot.
"""

import logging
from enum import Enum
from typing import Callable, Iterator, List, Optional, Sequence, Tuple
import numpy as np

from ..data_models import AggregateTables, _as_count_matrix, _as_baseline_matrix
from .poisson import PoissonScoreCalculator
from .storage import ResultStore

LOGGER = logging.getLogger(__name__)

# Zero-argument hook returning a raw count table shaped like the input
CountSimulator = Callable[[], np.ndarray]


class SimulationState(Enum):
    """Lifecycle of the Monte Carlo simulation."""
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class SimulationError(RuntimeError):
    """A simulation round could not produce a valid count table."""


def validate_zones(zones: Sequence[Sequence[int]], n_locations: int) -> List[np.ndarray]:
    """
    Convert zones to index arrays, checking they are usable.

    Args:
        zones: Sequence of zones, each a sequence of location indices
        n_locations: Number of locations in the data

    Returns:
        List of integer index arrays, one per zone

    Raises:
        ValueError: If there are no zones, a zone is empty, or an index is
            out of range
    """
    if len(zones) == 0:
        raise ValueError("zones must contain at least one zone")

    zone_arrays = []
    for zone_nr, zone in enumerate(zones):
        locations = np.asarray(list(zone), dtype=np.intp)
        if locations.size == 0:
            raise ValueError(f"zone {zone_nr} is empty")
        if locations.min() < 0 or locations.max() >= n_locations:
            raise ValueError(
                f"zone {zone_nr} has location indices outside [0, {n_locations})"
            )
        zone_arrays.append(locations)
    return zone_arrays


class PoissonScan:
    """
    Population-based Poisson space-time scan over a fixed zone catalog.

    Attributes:
        zones: Zone index arrays
        max_duration: Number of time steps (longest window)
        observed_aggregates: Cumulative tables of the observed data
        aggregates: Snapshot currently being scored (observed or simulated)
        calculator: PoissonScoreCalculator shared by both passes
        results: ResultStore holding observed and simulated results
        state: SimulationState

    Example:
        >>> scan = PoissonScan(counts, baselines, zones,
        ...                    store_everything=False, n_mcsim=99,
        ...                    simulate_counts=simulator)
        >>> scan.run_scan()
        >>> scan.run_simulations()
    """

    def __init__(
        self,
        counts: np.ndarray,
        baselines: np.ndarray,
        zones: Sequence[Sequence[int]],
        store_everything: bool = True,
        n_mcsim: int = 0,
        simulate_counts: Optional[CountSimulator] = None
    ):
        """
        Args:
            counts: Raw counts (n_times, n_locations), most recent first
            baselines: Expected counts of the same shape
            zones: Zone catalog, each zone a sequence of location indices
            store_everything: Keep every candidate instead of the maximum only
            n_mcsim: Number of Monte Carlo rounds
            simulate_counts: Hook producing one simulated count table per
                call; required when n_mcsim > 0
        """
        counts = _as_count_matrix(counts)
        self.baselines = _as_baseline_matrix(baselines, counts.shape)
        if n_mcsim > 0 and simulate_counts is None:
            raise ValueError("simulate_counts is required when n_mcsim > 0")

        self.observed_aggregates = AggregateTables.from_raw(counts, self.baselines)
        self.aggregates = self.observed_aggregates
        self.zones = validate_zones(zones, self.aggregates.n_locations)
        # Column 0 is the smallest window, so it bounds every duration
        for zone_nr, locations in enumerate(self.zones):
            if self.aggregates.cum_baselines[locations, 0].sum() <= 0:
                raise ValueError(
                    f"zone {zone_nr} has zero baseline in the most recent time step"
                )
        self.max_duration = self.aggregates.max_duration
        self.n_mcsim = n_mcsim
        self.simulate_counts = simulate_counts

        self.calculator = PoissonScoreCalculator(self.aggregates)
        self.results = ResultStore(
            n_slots=len(self.zones) * self.max_duration,
            n_mcsim=n_mcsim,
            store_everything=store_everything
        )
        self.state = SimulationState.IDLE

    @property
    def n_zones(self) -> int:
        return len(self.zones)

    def candidates(self) -> Iterator[Tuple[int, int, int, np.ndarray, range]]:
        """
        Yield (storage_index, zone_nr, duration_index, zone, rows) per candidate.

        rows are the cumulative time indices covered by the window; only
        the last one is read, since the tables are already cumulative.
        """
        storage_index = 0
        for zone_nr, zone in enumerate(self.zones):
            for duration in range(self.max_duration):
                yield storage_index, zone_nr, duration, zone, range(duration + 1)
                storage_index += 1

    def calculate(
        self,
        storage_index: int,
        zone_nr: int,
        duration: int,
        current_zone: np.ndarray,
        current_rows: Sequence[int]
    ) -> None:
        """Score one candidate and hand it to the current storage strategy."""
        end_row = current_rows[-1]
        score, relrisk_in, relrisk_out = self.calculator.score(current_zone, end_row)
        self.results.store(storage_index, score, relrisk_in, relrisk_out,
                           zone_nr, duration + 1)

    def draw_sample(self, row: int, col: int) -> int:
        """Per-cell sampling weight. Inert (always 1) for count data."""
        return 1

    def _scan_all(self) -> None:
        for storage_index, zone_nr, duration, zone, rows in self.candidates():
            self.calculate(storage_index, zone_nr, duration, zone, rows)

    def run_scan(self) -> None:
        """
        Score every candidate of the observed data.

        Raises:
            RuntimeError: If the simulation has already started
        """
        if self.state is not SimulationState.IDLE:
            raise RuntimeError("The observed scan must run before the simulation")
        LOGGER.debug("Scanning %d zones x %d durations", self.n_zones, self.max_duration)
        self._scan_all()

    def run_simulations(self) -> None:
        """
        Run all Monte Carlo rounds, keeping one maximum per round.

        Raises:
            RuntimeError: If the simulation has already been run
            SimulationError: If the simulator fails or returns an invalid table
        """
        if self.state is not SimulationState.IDLE:
            raise RuntimeError(f"Simulation cannot start from state {self.state.value}")

        self.results.switch_to_simulation()
        self.state = SimulationState.RUNNING
        LOGGER.info("Running %d Monte Carlo simulations", self.n_mcsim)

        for round_index in range(self.n_mcsim):
            self.results.begin_round(round_index)
            self._load_simulated_counts(round_index)
            self._scan_all()
            LOGGER.debug("Round %d: max score %.4f", round_index,
                         self.results.round_max(round_index))

        self.state = SimulationState.DONE
        LOGGER.info("Simulation complete")

    def _load_simulated_counts(self, round_index: int) -> None:
        try:
            simulated = self.simulate_counts()
            tables = AggregateTables.from_raw(simulated, self.baselines)
        except Exception as exc:
            self.state = SimulationState.FAILED
            raise SimulationError(
                f"Simulation round {round_index} of {self.n_mcsim} failed: {exc}"
            ) from exc

        self.aggregates = tables
        self.calculator.aggregates = tables
