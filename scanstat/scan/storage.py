"""
Result Retention Strategies

Three mutually exclusive ways of keeping candidate results:

    ALL      every candidate is written to its own slot (full table)
    MAX      only the running maximum is kept, in slot 0
    SIM_MAX  one running maximum per simulation round

ALL or MAX is chosen once at construction for the observed pass. When the
simulation starts the store is switched to SIM_MAX, permanently. The chosen
strategy is bound to ``self.store`` so the per-candidate loop never branches
on the mode.

Both maximum strategies use a strict ``>`` comparison: on ties the earliest
candidate is kept, and a -inf score can never replace the initial -inf.
"""

from enum import Enum
from typing import Dict
import numpy as np


class RetentionMode(Enum):
    """Which candidates a ResultStore keeps."""
    ALL = "all"
    MAX = "max"
    SIM_MAX = "sim_max"


def _empty_columns(n: int) -> Dict[str, np.ndarray]:
    """Allocate parallel result arrays with 'unset' sentinels."""
    return {
        "zone": np.full(n, -1, dtype=np.int64),
        "duration": np.zeros(n, dtype=np.int64),
        "score": np.full(n, -np.inf, dtype=np.float64),
        "relrisk_in": np.full(n, np.nan, dtype=np.float64),
        "relrisk_out": np.full(n, np.nan, dtype=np.float64),
    }


class ResultStore:
    """
    Parallel result arrays for the observed pass and the simulation rounds.

    Attributes:
        mode: Current RetentionMode
        current_round: Simulation round written by SIM_MAX
        store: Bound storage function for the current mode, called as
            store(storage_index, score, relrisk_in, relrisk_out, zone, duration)

    Example:
        >>> results = ResultStore(n_slots=6, n_mcsim=99, store_everything=False)
        >>> results.store(0, 3.2, 1.5, 0.9, zone=2, duration=1)
        >>> results.observed()["zone"]
        array([2])
    """

    def __init__(self, n_slots: int, n_mcsim: int, store_everything: bool):
        """
        Args:
            n_slots: Number of candidates in one pass (zones × durations)
            n_mcsim: Number of simulation rounds
            store_everything: Keep every candidate (ALL) instead of the
                maximum only (MAX)
        """
        if n_slots < 1:
            raise ValueError(f"n_slots must be positive, got {n_slots}")
        if n_mcsim < 0:
            raise ValueError(f"n_mcsim must be non-negative, got {n_mcsim}")

        self.n_slots = n_slots
        self.n_mcsim = n_mcsim
        self._observed = _empty_columns(n_slots if store_everything else 1)
        self._simulated = _empty_columns(n_mcsim)
        self.current_round = 0

        self._strategies = {
            RetentionMode.ALL: self._store_all,
            RetentionMode.MAX: self._store_max,
            RetentionMode.SIM_MAX: self._store_sim,
        }
        self.mode = RetentionMode.ALL if store_everything else RetentionMode.MAX
        self.store = self._strategies[self.mode]

    @property
    def simulating(self) -> bool:
        return self.mode is RetentionMode.SIM_MAX

    def switch_to_simulation(self) -> None:
        """Rebind the store to SIM_MAX. Can only happen once."""
        if self.simulating:
            raise RuntimeError("ResultStore is already in simulation mode")
        self.mode = RetentionMode.SIM_MAX
        self.store = self._strategies[self.mode]

    def begin_round(self, round_index: int) -> None:
        """Select the simulation round that SIM_MAX writes to."""
        if not self.simulating:
            raise RuntimeError("begin_round() called before switch_to_simulation()")
        if not 0 <= round_index < self.n_mcsim:
            raise ValueError(
                f"round_index must be in [0, {self.n_mcsim}), got {round_index}"
            )
        self.current_round = round_index

    # Storage functions -------------------------------------------------

    def _store_all(self, storage_index, score, relrisk_in, relrisk_out, zone, duration):
        cols = self._observed
        cols["score"][storage_index] = score
        cols["relrisk_in"][storage_index] = relrisk_in
        cols["relrisk_out"][storage_index] = relrisk_out
        cols["zone"][storage_index] = zone
        cols["duration"][storage_index] = duration

    def _store_max(self, storage_index, score, relrisk_in, relrisk_out, zone, duration):
        cols = self._observed
        if score > cols["score"][0]:
            cols["score"][0] = score
            cols["relrisk_in"][0] = relrisk_in
            cols["relrisk_out"][0] = relrisk_out
            cols["zone"][0] = zone
            cols["duration"][0] = duration

    def _store_sim(self, storage_index, score, relrisk_in, relrisk_out, zone, duration):
        cols = self._simulated
        r = self.current_round
        if score > cols["score"][r]:
            cols["score"][r] = score
            cols["relrisk_in"][r] = relrisk_in
            cols["relrisk_out"][r] = relrisk_out
            cols["zone"][r] = zone
            cols["duration"][r] = duration

    # Retrieval functions -----------------------------------------------

    def observed(self) -> Dict[str, np.ndarray]:
        """Copies of the observed-data columns."""
        return {name: col.copy() for name, col in self._observed.items()}

    def round_max(self, round_index: int) -> float:
        """Maximum score kept so far for one simulation round."""
        return float(self._simulated["score"][round_index])

    def simulated(self) -> Dict[str, np.ndarray]:
        """Copies of the per-round maximum columns."""
        return {name: col.copy() for name, col in self._simulated.items()}
