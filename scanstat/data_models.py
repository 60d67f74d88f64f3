"""
Data Models for the Space-Time Scan Statistic

This module defines the core data structures used throughout the system.
Uses Python dataclasses for clean, type-hinted data containers.

Data Flow:
    raw counts + baselines → AggregateTables → PoissonScoreCalculator
    ResultStore → ScanResult rows → ScanStatistic (MLC + replicates + P-values)
    ScanScenario (synthetic) → ScanStatistic

Orientation:
    Raw matrices handed to AggregateTables have shape (n_times, n_locations)
    with row 0 the MOST RECENT time step. The cumulative tables are stored
    as (n_locations, max_duration): column d holds the sum over the d + 1
    most recent time steps.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Tuple
import json
import numpy as np
import pandas as pd


RESULT_COLUMNS = ("zone", "duration", "score", "relrisk_in", "relrisk_out")


def _as_count_matrix(counts: Any) -> np.ndarray:
    """Coerce counts to a 2-D non-negative integer matrix (time × locations)."""
    counts = np.asarray(counts)
    if counts.ndim == 1:
        counts = counts.reshape(1, -1)
    if counts.ndim != 2:
        raise ValueError(f"counts must be a 2-D matrix, got {counts.ndim} dimensions")
    if counts.size == 0:
        raise ValueError("counts must not be empty")
    if not np.all(np.equal(np.mod(counts, 1), 0)):
        raise ValueError("counts must be integer")
    if np.any(counts < 0):
        raise ValueError("counts must be non-negative")
    return counts.astype(np.int64)


def _as_baseline_matrix(baselines: Any, shape: Tuple[int, int]) -> np.ndarray:
    """Coerce baselines to a float matrix of the given shape."""
    baselines = np.asarray(baselines, dtype=np.float64)
    if baselines.ndim == 1:
        baselines = baselines.reshape(1, -1)
    if baselines.shape != shape:
        raise ValueError(
            f"baselines must have the same shape as counts: "
            f"expected {shape}, got {baselines.shape}"
        )
    if np.any(baselines < 0) or not np.all(np.isfinite(baselines)):
        raise ValueError("baselines must be finite and non-negative")
    return baselines


@dataclass(frozen=True, eq=False)
class AggregateTables:
    """
    Cumulative observed counts and baselines for one scan pass.

    Attributes:
        cum_counts: Integer array (n_locations, max_duration); column d is
            the count over the d + 1 most recent time steps
        cum_baselines: Float array of the same shape for the baselines
        total_count: Total number of cases over all locations and times

    Invariants:
        - Both matrices are non-decreasing along the time axis
        - total_count == cum_counts[:, -1].sum()

    Instances are read-only: the arrays are flagged non-writeable and a
    new instance is built for every simulation round.
    """
    cum_counts: np.ndarray
    cum_baselines: np.ndarray
    total_count: int

    @classmethod
    def from_raw(cls, counts: Any, baselines: Any) -> "AggregateTables":
        """
        Build cumulative tables from raw (non-cumulative) matrices.

        Args:
            counts: Raw counts, shape (n_times, n_locations), most recent first
            baselines: Expected counts of the same shape

        Returns:
            AggregateTables for the given data

        Complexity: O(n_times × n_locations)

        Example:
            >>> tables = AggregateTables.from_raw([[3], [5]], [[2.0], [2.0]])
            >>> tables.cum_counts
            array([[3, 8]])
        """
        counts = _as_count_matrix(counts)
        baselines = _as_baseline_matrix(baselines, counts.shape)

        cum_counts = np.ascontiguousarray(np.cumsum(counts, axis=0).T)
        cum_baselines = np.ascontiguousarray(np.cumsum(baselines, axis=0).T)
        cum_counts.setflags(write=False)
        cum_baselines.setflags(write=False)

        return cls(
            cum_counts=cum_counts,
            cum_baselines=cum_baselines,
            total_count=int(cum_counts[:, -1].sum())
        )

    @property
    def n_locations(self) -> int:
        return self.cum_counts.shape[0]

    @property
    def max_duration(self) -> int:
        return self.cum_counts.shape[1]


@dataclass
class ScanResult:
    """
    Score and relative risks for one zone-duration candidate.

    Attributes:
        zone: Position of the zone in the zone list (0-based, -1 if unset)
        duration: Number of most recent time steps covered (0 if unset)
        score: Log-likelihood ratio, -inf when the candidate shows no excess
        relrisk_in: Observed/expected ratio inside the zone
        relrisk_out: Observed/expected ratio outside the zone
    """
    zone: int
    duration: int
    score: float
    relrisk_in: float
    relrisk_out: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "zone": self.zone,
            "duration": self.duration,
            "score": self.score,
            "relrisk_in": self.relrisk_in,
            "relrisk_out": self.relrisk_out
        }


@dataclass
class MostLikelyCluster:
    """
    The highest-scoring zone-duration candidate of the observed data.

    The observed and baseline sub-matrices are ordered least recent first,
    the same way the caller supplied the data.
    """
    zone_number: int
    locations: List[int]
    duration: int
    score: float
    relrisk_in: float
    relrisk_out: float
    observed: np.ndarray
    baselines: np.ndarray

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "zone_number": self.zone_number,
            "locations": list(self.locations),
            "duration": self.duration,
            "score": self.score,
            "relrisk_in": self.relrisk_in,
            "relrisk_out": self.relrisk_out,
            "observed": self.observed.tolist(),
            "baselines": self.baselines.tolist()
        }


@dataclass
class ScanStatistic:
    """
    Complete result of a scan: most likely cluster, tables and P-values.

    Attributes:
        MLC: Most likely cluster of the observed data
        table: Observed results (pandas DataFrame), sorted by score descending
        replicate_statistics: One maximum per simulation round (DataFrame)
        mc_pvalue: Monte Carlo P-value (NaN without replicates)
        gumbel_pvalue: P-value from a Gumbel fit to the replicates
        n_zones: Number of zones scanned
        n_locations: Number of locations
        max_duration: Longest duration considered
        n_mcsim: Number of simulation rounds
        processing_time_ms: Wall time of the whole scan
    """
    MLC: MostLikelyCluster
    table: pd.DataFrame
    replicate_statistics: pd.DataFrame
    mc_pvalue: float
    gumbel_pvalue: float
    n_zones: int
    n_locations: int
    max_duration: int
    n_mcsim: int
    distribution: str = "Poisson"
    type: str = "population-based"
    setting: str = "univariate"
    processing_time_ms: float = 0.0

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "=" * 60,
            "SPACE-TIME SCAN STATISTIC",
            "=" * 60,
            f"Distribution:         {self.distribution} ({self.type})",
            f"Zones scanned:        {self.n_zones}",
            f"Locations:            {self.n_locations}",
            f"Maximum duration:     {self.max_duration}",
            f"Simulation rounds:    {self.n_mcsim}",
            f"Processing Time:      {self.processing_time_ms:.2f} ms",
            "-" * 60,
            "MOST LIKELY CLUSTER:",
            f"  Zone:               {self.MLC.zone_number}",
            f"  Locations:          {list(self.MLC.locations)}",
            f"  Duration:           {self.MLC.duration}",
            f"  Score:              {self.MLC.score:.4f}",
            f"  Relative risk in:   {self.MLC.relrisk_in:.4f}",
            f"  Relative risk out:  {self.MLC.relrisk_out:.4f}",
            "-" * 60,
            f"Monte Carlo P-value:  {self.mc_pvalue:.4f}",
            f"Gumbel P-value:       {self.gumbel_pvalue:.4g}",
            "=" * 60,
        ]
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "distribution": self.distribution,
            "type": self.type,
            "setting": self.setting,
            "MLC": self.MLC.to_dict(),
            "table": self.table.to_dict(orient="records"),
            "replicate_statistics": self.replicate_statistics.to_dict(orient="records"),
            "mc_pvalue": self.mc_pvalue,
            "gumbel_pvalue": self.gumbel_pvalue,
            "n_zones": self.n_zones,
            "n_locations": self.n_locations,
            "max_duration": self.max_duration,
            "n_mcsim": self.n_mcsim,
            "processing_time_ms": self.processing_time_ms
        }


@dataclass
class OutbreakTruth:
    """
    Ground truth of an injected outbreak (for testing/validation).

    Attributes:
        zone_number: Zone the outbreak was injected into (-1 for none)
        locations: Locations of that zone
        duration: Number of most recent time steps affected
        relative_risk: Multiplier applied to the expected counts
    """
    zone_number: int = -1
    locations: List[int] = field(default_factory=list)
    duration: int = 0
    relative_risk: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "zone_number": self.zone_number,
            "locations": list(self.locations),
            "duration": self.duration,
            "relative_risk": self.relative_risk
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutbreakTruth":
        """Create from dictionary (JSON deserialization)."""
        return cls(
            zone_number=int(data.get("zone_number", -1)),
            locations=[int(i) for i in data.get("locations", [])],
            duration=int(data.get("duration", 0)),
            relative_risk=float(data.get("relative_risk", 1.0))
        )


@dataclass
class ScanScenario:
    """
    Complete input for a scan: counts, population, geography and zones.

    This is the main data container passed through the CLI pipeline.

    Attributes:
        counts: Observed counts (n_times, n_locations), least recent first
        population: Population per location, shape (n_locations,)
        coords: Location coordinates, shape (n_locations, 2)
        zones: Zone catalog, each zone a sorted tuple of location indices
        ground_truth: Optional injected outbreak
        scenario_id: Unique identifier for this scenario

    Space Complexity: O(n_times × n_locations + total zone size)
    """
    counts: np.ndarray
    population: np.ndarray
    coords: np.ndarray
    zones: List[Tuple[int, ...]]
    ground_truth: Optional[OutbreakTruth] = None
    scenario_id: Optional[str] = None

    @property
    def n_times(self) -> int:
        return self.counts.shape[0]

    @property
    def n_locations(self) -> int:
        return self.counts.shape[1]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "counts": np.asarray(self.counts).tolist(),
            "population": np.asarray(self.population).tolist(),
            "coords": np.asarray(self.coords).tolist(),
            "zones": [list(z) for z in self.zones],
            "ground_truth": self.ground_truth.to_dict() if self.ground_truth else None,
            "scenario_id": self.scenario_id
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanScenario":
        """Create from dictionary (JSON deserialization)."""
        ground_truth = None
        if data.get("ground_truth"):
            ground_truth = OutbreakTruth.from_dict(data["ground_truth"])
        return cls(
            counts=np.asarray(data["counts"], dtype=np.int64),
            population=np.asarray(data["population"], dtype=np.float64),
            coords=np.asarray(data["coords"], dtype=np.float64),
            zones=[tuple(int(i) for i in z) for z in data["zones"]],
            ground_truth=ground_truth,
            scenario_id=data.get("scenario_id")
        )

    def save_to_json(self, filepath: str) -> None:
        """Save scenario to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load_from_json(cls, filepath: str) -> "ScanScenario":
        """Load scenario from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)
