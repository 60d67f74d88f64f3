"""
Tests for Result Retention and Export

This module tests the three retention strategies of ResultStore and the
DataFrames built from them by ResultExporter.

Test Categories:
1. Keep-all strategy
2. Running maximum (ties, -inf)
3. Simulation mode and rounds
4. Export tables

Run with: pytest tests/test_result_store.py -v
"""

import pytest
import numpy as np

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from scanstat.data_models import RESULT_COLUMNS, ScanResult
from scanstat.scan.storage import ResultStore, RetentionMode
from scanstat.scan.export import ResultExporter


class TestStoreAll:
    """Tests for the keep-all strategy."""

    def test_mode(self):
        results = ResultStore(n_slots=4, n_mcsim=0, store_everything=True)
        assert results.mode is RetentionMode.ALL
        assert not results.simulating

    def test_every_slot_written(self):
        """Each candidate lands in its own slot."""
        results = ResultStore(n_slots=3, n_mcsim=0, store_everything=True)
        for i in range(3):
            results.store(i, float(i), 1.0 + i, 0.5, zone=i // 2, duration=i + 1)

        observed = results.observed()
        np.testing.assert_array_equal(observed["score"], [0.0, 1.0, 2.0])
        np.testing.assert_array_equal(observed["relrisk_in"], [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(observed["zone"], [0, 0, 1])
        np.testing.assert_array_equal(observed["duration"], [1, 2, 3])

    def test_lower_score_overwrites(self):
        """Keep-all does not compare scores."""
        results = ResultStore(n_slots=1, n_mcsim=0, store_everything=True)
        results.store(0, 5.0, 2.0, 0.5, 0, 1)
        results.store(0, 1.0, 1.2, 0.9, 3, 2)

        observed = results.observed()
        assert observed["score"][0] == 1.0
        assert observed["zone"][0] == 3

    def test_unset_slots_keep_sentinels(self):
        """Slots never written read zone -1, duration 0, score -inf, NaN risks."""
        results = ResultStore(n_slots=2, n_mcsim=0, store_everything=True)
        results.store(0, 1.0, 1.5, 0.5, 0, 1)

        observed = results.observed()
        assert observed["zone"][1] == -1
        assert observed["duration"][1] == 0
        assert observed["score"][1] == float('-inf')
        assert np.isnan(observed["relrisk_in"][1])
        assert np.isnan(observed["relrisk_out"][1])

    def test_observed_returns_copies(self):
        results = ResultStore(n_slots=1, n_mcsim=0, store_everything=True)
        results.store(0, 1.0, 1.5, 0.5, 0, 1)

        observed = results.observed()
        observed["score"][0] = 99.0
        assert results.observed()["score"][0] == 1.0


class TestStoreMax:
    """Tests for the running maximum."""

    def test_single_row(self):
        results = ResultStore(n_slots=10, n_mcsim=0, store_everything=False)
        assert results.mode is RetentionMode.MAX
        assert len(results.observed()["score"]) == 1

    def test_keeps_highest(self):
        results = ResultStore(n_slots=3, n_mcsim=0, store_everything=False)
        results.store(0, 1.0, 1.1, 0.9, 0, 1)
        results.store(1, 3.0, 1.3, 0.7, 1, 1)
        results.store(2, 2.0, 1.2, 0.8, 2, 1)

        observed = results.observed()
        assert observed["score"][0] == 3.0
        assert observed["zone"][0] == 1
        assert observed["relrisk_in"][0] == 1.3
        assert observed["relrisk_out"][0] == 0.7

    def test_tie_keeps_first(self):
        """An equal later score does not replace the stored one."""
        results = ResultStore(n_slots=2, n_mcsim=0, store_everything=False)
        results.store(0, 5.2, 1.5, 0.5, zone=0, duration=1)
        results.store(1, 5.2, 1.7, 0.4, zone=1, duration=1)

        observed = results.observed()
        assert observed["zone"][0] == 0
        assert observed["relrisk_in"][0] == 1.5

    def test_minus_infinity_never_stored(self):
        """A -inf candidate cannot replace the initial -inf."""
        results = ResultStore(n_slots=2, n_mcsim=0, store_everything=False)
        results.store(0, float('-inf'), 0.5, 1.2, zone=4, duration=2)

        observed = results.observed()
        assert observed["zone"][0] == -1
        assert observed["duration"][0] == 0
        assert np.isnan(observed["relrisk_in"][0])


class TestSimulationMode:
    """Tests for the per-round maximum strategy."""

    def test_switch(self):
        results = ResultStore(n_slots=4, n_mcsim=3, store_everything=True)
        results.switch_to_simulation()

        assert results.mode is RetentionMode.SIM_MAX
        assert results.simulating

    def test_switch_twice_raises(self):
        results = ResultStore(n_slots=4, n_mcsim=3, store_everything=False)
        results.switch_to_simulation()
        with pytest.raises(RuntimeError):
            results.switch_to_simulation()

    def test_begin_round_before_switch_raises(self):
        results = ResultStore(n_slots=4, n_mcsim=3, store_everything=True)
        with pytest.raises(RuntimeError):
            results.begin_round(0)

    def test_begin_round_out_of_range(self):
        results = ResultStore(n_slots=4, n_mcsim=3, store_everything=True)
        results.switch_to_simulation()
        with pytest.raises(ValueError):
            results.begin_round(3)
        with pytest.raises(ValueError):
            results.begin_round(-1)

    def test_rounds_are_independent(self):
        """Each round keeps its own maximum."""
        results = ResultStore(n_slots=2, n_mcsim=3, store_everything=True)
        results.switch_to_simulation()

        results.begin_round(0)
        results.store(0, 1.0, 1.1, 0.9, 0, 1)
        results.store(1, 4.0, 1.4, 0.6, 1, 2)
        results.begin_round(2)
        results.store(0, 2.0, 1.2, 0.8, 0, 1)

        simulated = results.simulated()
        assert simulated["score"][0] == 4.0
        assert simulated["zone"][0] == 1
        assert simulated["duration"][0] == 2
        assert simulated["score"][1] == float('-inf')
        assert simulated["score"][2] == 2.0
        assert results.round_max(0) == 4.0

    def test_observed_untouched_by_simulation(self):
        """After the switch, stores no longer reach the observed columns."""
        results = ResultStore(n_slots=1, n_mcsim=1, store_everything=True)
        results.store(0, 1.0, 1.5, 0.5, 0, 1)
        results.switch_to_simulation()
        results.begin_round(0)
        results.store(0, 9.0, 3.0, 0.1, 0, 1)

        assert results.observed()["score"][0] == 1.0
        assert results.simulated()["score"][0] == 9.0

    def test_no_rounds(self):
        results = ResultStore(n_slots=2, n_mcsim=0, store_everything=True)
        results.switch_to_simulation()
        assert len(results.simulated()["score"]) == 0


class TestConstruction:
    """Tests for argument validation."""

    def test_zero_slots(self):
        with pytest.raises(ValueError):
            ResultStore(n_slots=0, n_mcsim=0, store_everything=True)

    def test_negative_rounds(self):
        with pytest.raises(ValueError):
            ResultStore(n_slots=1, n_mcsim=-1, store_everything=True)


class TestExporter:
    """Tests for the DataFrames built by ResultExporter."""

    def test_observed_columns(self):
        results = ResultStore(n_slots=3, n_mcsim=0, store_everything=True)
        table = ResultExporter(results).observed_table()

        assert table.columns.tolist() == list(RESULT_COLUMNS)
        assert table.columns.tolist() == ['zone', 'duration', 'score',
                                          'relrisk_in', 'relrisk_out']
        assert len(table) == 3

    def test_simulation_one_row_per_round(self):
        results = ResultStore(n_slots=3, n_mcsim=5, store_everything=False)
        results.switch_to_simulation()
        table = ResultExporter(results).simulation_table()

        assert table.columns.tolist() == list(RESULT_COLUMNS)
        assert len(table) == 5

    def test_max_table_has_one_row(self):
        results = ResultStore(n_slots=3, n_mcsim=0, store_everything=False)
        results.store(1, 2.5, 1.5, 0.5, 1, 3)
        table = ResultExporter(results).observed_table()

        assert len(table) == 1
        assert table.loc[0, "zone"] == 1
        assert table.loc[0, "duration"] == 3
        assert table.loc[0, "score"] == 2.5

    def test_records(self):
        results = ResultStore(n_slots=1, n_mcsim=0, store_everything=True)
        results.store(0, 2.5, 1.5, 0.5, 0, 1)
        records = ResultExporter(results).observed_results()

        assert records == [ScanResult(zone=0, duration=1, score=2.5,
                                      relrisk_in=1.5, relrisk_out=0.5)]
        assert isinstance(records[0].zone, int)

    def test_simulation_records(self):
        results = ResultStore(n_slots=1, n_mcsim=2, store_everything=True)
        results.switch_to_simulation()
        results.begin_round(1)
        results.store(0, 1.5, 1.2, 0.8, 0, 1)
        records = ResultExporter(results).simulation_results()

        assert len(records) == 2
        assert records[0].zone == -1
        assert records[1].score == 1.5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
