"""
Tests for Synthetic Data Generation

This module tests the generators for locations, populations, counts and
injected outbreaks, and scenario persistence.

Test Categories:
1. Component generators
2. Outbreak injection
3. Scenario generation and reproducibility
4. JSON round trip
5. Visualization

Run with: pytest tests/test_synthetic_data.py -v
"""

import pytest
import numpy as np

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from scanstat.data_models import OutbreakTruth, ScanScenario
from scanstat.scan.scan_pb_poisson import scan_pb_poisson
from scanstat.synthetic_data import (
    generate_locations,
    generate_population,
    generate_counts,
    inject_outbreak,
    generate_scan_scenario,
    generate_benchmark_scenarios,
    save_scenario_to_json,
    load_scenario_from_json,
    visualize_replicates
)


class TestGenerators:
    """Tests for the component generators."""

    def test_locations(self):
        coords = generate_locations(12, seed=1)
        assert coords.shape == (12, 2)

    def test_locations_invalid(self):
        with pytest.raises(ValueError):
            generate_locations(0)

    def test_population_range(self):
        population = generate_population(50, low=100, high=200, seed=2)

        assert population.shape == (50,)
        assert np.all(population >= 100)
        assert np.all(population < 200)

    def test_population_invalid(self):
        with pytest.raises(ValueError):
            generate_population(5, low=200, high=100)

    def test_counts(self):
        counts = generate_counts(np.full(8, 1000.0), n_times=4, rate=1e-2, seed=3)

        assert counts.shape == (4, 8)
        assert np.all(counts >= 0)
        assert np.issubdtype(counts.dtype, np.integer)

    def test_counts_invalid(self):
        with pytest.raises(ValueError):
            generate_counts(np.ones(3), n_times=0)
        with pytest.raises(ValueError):
            generate_counts(np.ones(3), n_times=2, rate=0.0)


class TestOutbreakInjection:
    """Tests for inject_outbreak."""

    def test_only_zone_and_window_change(self):
        population = np.full(6, 1000.0)
        counts = generate_counts(population, n_times=5, seed=4)
        boosted = inject_outbreak(counts, population, [1, 2], duration=2,
                                  relative_risk=20.0, seed=5)

        np.testing.assert_array_equal(boosted[:3], counts[:3])
        np.testing.assert_array_equal(boosted[:, [0, 3, 4, 5]], counts[:, [0, 3, 4, 5]])
        assert boosted[3:, [1, 2]].sum() > counts[3:, [1, 2]].sum()

    def test_input_not_modified(self):
        population = np.full(3, 1000.0)
        counts = generate_counts(population, n_times=3, seed=6)
        original = counts.copy()
        inject_outbreak(counts, population, [0], duration=1, relative_risk=5.0, seed=7)

        np.testing.assert_array_equal(counts, original)

    def test_invalid_duration(self):
        counts = np.ones((3, 2), dtype=int)
        with pytest.raises(ValueError):
            inject_outbreak(counts, np.ones(2), [0], duration=4, relative_risk=2.0)
        with pytest.raises(ValueError):
            inject_outbreak(counts, np.ones(2), [0], duration=0, relative_risk=2.0)

    def test_invalid_relative_risk(self):
        counts = np.ones((3, 2), dtype=int)
        with pytest.raises(ValueError):
            inject_outbreak(counts, np.ones(2), [0], duration=1, relative_risk=0.0)


class TestScenarioGeneration:
    """Tests for generate_scan_scenario."""

    def test_shapes(self):
        scenario = generate_scan_scenario(n_locations=20, n_times=5, k=4, seed=42)

        assert scenario.counts.shape == (5, 20)
        assert scenario.population.shape == (20,)
        assert scenario.coords.shape == (20, 2)
        assert scenario.n_times == 5
        assert scenario.n_locations == 20
        assert len(scenario.zones) >= 20

    def test_ground_truth(self):
        scenario = generate_scan_scenario(n_locations=20, n_times=5, k=4,
                                          outbreak_zone=3, outbreak_duration=2,
                                          relative_risk=2.5, seed=42)
        truth = scenario.ground_truth

        assert truth.zone_number == 3
        assert truth.locations == list(scenario.zones[3])
        assert truth.duration == 2
        assert truth.relative_risk == 2.5

    def test_no_outbreak(self):
        scenario = generate_scan_scenario(n_locations=10, n_times=3, outbreak_duration=0, seed=1)

        assert scenario.ground_truth.zone_number == -1
        assert scenario.ground_truth.locations == []

    def test_invalid_outbreak_zone(self):
        with pytest.raises(ValueError):
            generate_scan_scenario(n_locations=10, n_times=3, outbreak_zone=10_000, seed=1)

    def test_reproducibility(self):
        """Same seed should produce identical scenarios."""
        first = generate_scan_scenario(n_locations=15, n_times=4, seed=123)
        second = generate_scan_scenario(n_locations=15, n_times=4, seed=123)

        np.testing.assert_array_equal(first.counts, second.counts)
        np.testing.assert_array_equal(first.coords, second.coords)
        assert first.zones == second.zones
        assert first.ground_truth == second.ground_truth

    def test_different_seeds(self):
        first = generate_scan_scenario(n_locations=15, n_times=4, seed=1)
        second = generate_scan_scenario(n_locations=15, n_times=4, seed=2)
        assert not np.array_equal(first.counts, second.counts)

    def test_benchmark_scenarios(self):
        scenarios = generate_benchmark_scenarios(sizes=(10, 20), n_times=3, k=3)

        assert sorted(scenarios) == [10, 20]
        assert scenarios[20].n_locations == 20
        assert scenarios[10].scenario_id == "benchmark_10"


class TestPersistence:
    """Tests for JSON round trip."""

    def test_round_trip(self, tmp_path):
        scenario = generate_scan_scenario(n_locations=12, n_times=4, k=3,
                                          seed=9, scenario_id="roundtrip")
        path = save_scenario_to_json(scenario, str(tmp_path))
        loaded = load_scenario_from_json(path)

        assert Path(path).name == "scenario_roundtrip.json"
        assert isinstance(loaded, ScanScenario)
        np.testing.assert_array_equal(loaded.counts, scenario.counts)
        np.testing.assert_allclose(loaded.population, scenario.population)
        np.testing.assert_allclose(loaded.coords, scenario.coords)
        assert loaded.zones == scenario.zones
        assert loaded.ground_truth == scenario.ground_truth
        assert loaded.scenario_id == "roundtrip"

    def test_missing_ground_truth(self):
        data = {
            "counts": [[1, 2]],
            "population": [10.0, 20.0],
            "coords": [[0.0, 0.0], [1.0, 1.0]],
            "zones": [[0], [0, 1]],
        }
        scenario = ScanScenario.from_dict(data)

        assert scenario.ground_truth is None
        assert scenario.zones == [(0,), (0, 1)]
        assert scenario.scenario_id is None

    def test_outbreak_truth_defaults(self):
        assert OutbreakTruth.from_dict({}) == OutbreakTruth()


class TestVisualization:
    """Tests for the replicate histogram."""

    def test_saves_figure(self, tmp_path):
        scenario = generate_scan_scenario(n_locations=10, n_times=3, k=3, seed=5)
        result = scan_pb_poisson(scenario.counts, scenario.zones,
                                 population=scenario.population,
                                 n_mcsim=19, max_only=True, seed=5)
        path = tmp_path / "replicates.png"

        visualize_replicates(result, save_path=str(path))

        assert path.exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
