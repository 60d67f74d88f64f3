"""
Scan Timing and Benchmarks

Wall-clock measurement of the observed scan and the Monte Carlo loop.

- Timer: context manager around one scan (logged when named)
- BenchmarkResult: repeated timings of one configuration plus the problem
  size it was run on, with per-candidate cost
- benchmark_function: run a callable with warmup and collect the trials

Example:
    >>> with Timer("Observed scan") as t:
    ...     scan.run_scan()
    >>> t.elapsed_ms
    12.7
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import numpy as np

LOGGER = logging.getLogger(__name__)


class Timer:
    """
    Measure the wall time of a ``with`` block using time.perf_counter().

    A named timer logs its result at INFO on exit, unless verbose is False.

    Attributes:
        name: Label used in the log line
        elapsed: Seconds spent in the block
    """

    def __init__(self, name: Optional[str] = None, verbose: bool = True):
        self.name = name
        self.verbose = verbose
        self.elapsed = 0.0
        self._started_at: Optional[float] = None

    def __enter__(self) -> 'Timer':
        self._started_at = time.perf_counter()
        return self

    def __exit__(self, *exc_info) -> None:
        self.elapsed = time.perf_counter() - self._started_at
        if self.name and self.verbose:
            LOGGER.info("%s: %.2f ms", self.name, self.elapsed_ms)

    @property
    def elapsed_ms(self) -> float:
        return 1000.0 * self.elapsed


@dataclass
class BenchmarkResult:
    """
    Timings of one scan configuration.

    Attributes:
        name: Configuration label
        times_ms: One wall time per trial, in milliseconds
        metadata: Problem size of the run (n_locations, n_zones,
            n_candidates, ...), copied into to_dict() rows
    """
    name: str
    times_ms: List[float] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_trial(self, time_ms: float) -> None:
        self.times_ms.append(float(time_ms))

    @property
    def num_trials(self) -> int:
        return len(self.times_ms)

    @property
    def mean_ms(self) -> float:
        return float(np.mean(self.times_ms)) if self.times_ms else 0.0

    @property
    def std_ms(self) -> float:
        # Sample standard deviation; undefined for a single trial
        return float(np.std(self.times_ms, ddof=1)) if self.num_trials > 1 else 0.0

    @property
    def min_ms(self) -> float:
        return min(self.times_ms) if self.times_ms else 0.0

    def us_per_candidate(self, n_rounds: int = 1) -> float:
        """Mean cost of scoring one candidate once, in microseconds."""
        n_candidates = self.metadata.get('n_candidates', 0)
        if not n_candidates or n_rounds < 1:
            return float('nan')
        return 1000.0 * self.mean_ms / (n_candidates * n_rounds)

    def summary(self) -> str:
        return (f"{self.name}: {self.mean_ms:.2f} ± {self.std_ms:.2f} ms "
                f"(n={self.num_trials}, min={self.min_ms:.2f})")

    def to_dict(self) -> Dict[str, Any]:
        """Flat row for CSV output: timing statistics followed by metadata."""
        row = {
            'name': self.name,
            'mean_ms': self.mean_ms,
            'std_ms': self.std_ms,
            'min_ms': self.min_ms,
            'num_trials': self.num_trials,
        }
        row.update(self.metadata)
        return row


def benchmark_function(
    func: Callable,
    args: tuple = (),
    kwargs: Optional[dict] = None,
    n_trials: int = 5,
    warmup: int = 1,
    name: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> BenchmarkResult:
    """
    Time repeated calls of func(*args, **kwargs).

    Warmup calls run first and are not recorded.

    Args:
        func: Callable to time, e.g. scan_pb_poisson
        args: Positional arguments
        kwargs: Keyword arguments
        n_trials: Number of recorded calls
        warmup: Number of unrecorded calls
        name: Result label, defaults to func.__name__
        metadata: Problem size stored on the result

    Returns:
        BenchmarkResult with one time per trial
    """
    kwargs = kwargs or {}
    result = BenchmarkResult(name or func.__name__, metadata=dict(metadata or {}))

    for _ in range(warmup):
        func(*args, **kwargs)

    for _ in range(n_trials):
        with Timer(verbose=False) as timer:
            func(*args, **kwargs)
        result.add_trial(timer.elapsed_ms)

    LOGGER.debug("%s", result.summary())
    return result
