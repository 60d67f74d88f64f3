#!/usr/bin/env python3
"""
Benchmark Script: Scan and Simulation Cost

This script measures how the population-based Poisson scan scales with
the number of locations:

1. Zone construction: KD-tree k-NN vs brute-force distance matrix
2. Observed scan: keep-all table vs maximum-only
3. Monte Carlo: cost per simulation round

Usage:
    python benchmarks/benchmark_scan.py
    python benchmarks/benchmark_scan.py --sizes 50,100,200 --n-mcsim 49 --trials 5

Output:
    - Console table with timing results
    - CSV file with detailed results
"""

import argparse
import sys
from pathlib import Path
from typing import List, Dict, Any

import numpy as np
import pandas as pd

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from scanstat.synthetic_data import generate_benchmark_scenarios
from scanstat.geometry.kd_tree import KDTree, brute_force_knn
from scanstat.scan.scan_pb_poisson import scan_pb_poisson
from scanstat.hpc.timing import benchmark_function


def run_benchmark_suite(
    sizes: List[int],
    n_times: int = 8,
    k: int = 8,
    n_mcsim: int = 19,
    n_trials: int = 3,
    verbose: bool = True
) -> List[Dict[str, Any]]:
    """
    Run complete benchmark suite for multiple problem sizes.

    Args:
        sizes: Numbers of locations
        n_times: Time steps per scenario
        k: Neighbours per zone
        n_mcsim: Monte Carlo rounds for the simulation benchmark
        n_trials: Number of timing trials per benchmark
        verbose: Print progress information

    Returns:
        List of result dictionaries
    """
    scenarios = generate_benchmark_scenarios(sizes, n_times=n_times, k=k)
    results = []

    for size, scenario in scenarios.items():
        if verbose:
            print(f"\n{'='*60}")
            print(f"Benchmarking {size} locations")
            print('='*60)

        n_zones = len(scenario.zones)
        result_entry = {
            'n_locations': size,
            'n_times': n_times,
            'n_zones': n_zones,
            'n_candidates': n_zones * n_times,
            'n_mcsim': n_mcsim
        }
        if verbose:
            print(f"  Zones: {n_zones}, candidates: {n_zones * n_times}")

        knn_tree = benchmark_function(lambda: KDTree(scenario.coords).query_knn(k),
                                      n_trials=n_trials, name="kdtree_knn")
        knn_brute = benchmark_function(brute_force_knn, args=(scenario.coords, k),
                                       n_trials=n_trials)
        result_entry['kdtree_knn_ms'] = knn_tree.mean_ms
        result_entry['brute_knn_ms'] = knn_brute.mean_ms

        common = {'population': scenario.population, 'seed': 42}
        scan_all = benchmark_function(
            scan_pb_poisson, args=(scenario.counts, scenario.zones),
            kwargs=dict(common, n_mcsim=0, max_only=False),
            n_trials=n_trials, name="scan_all"
        )
        scan_max = benchmark_function(
            scan_pb_poisson, args=(scenario.counts, scenario.zones),
            kwargs=dict(common, n_mcsim=0, max_only=True),
            n_trials=n_trials, name="scan_max"
        )
        scan_sim = benchmark_function(
            scan_pb_poisson, args=(scenario.counts, scenario.zones),
            kwargs=dict(common, n_mcsim=n_mcsim, max_only=True),
            n_trials=n_trials, name="scan_sim"
        )
        result_entry['scan_all_ms'] = scan_all.mean_ms
        result_entry['scan_all_std'] = scan_all.std_ms
        result_entry['scan_max_ms'] = scan_max.mean_ms
        result_entry['scan_sim_ms'] = scan_sim.mean_ms
        result_entry['ms_per_round'] = (
            (scan_sim.mean_ms - scan_max.mean_ms) / n_mcsim if n_mcsim else np.nan
        )

        if verbose:
            for r in (knn_tree, knn_brute, scan_all, scan_max, scan_sim):
                print(f"    {r.summary()}")

        results.append(result_entry)

    return results


def save_results_csv(results: List[Dict[str, Any]], filepath: str):
    """One CSV row per problem size, same columns as the result dicts."""
    if not results:
        return
    pd.DataFrame(results).to_csv(filepath, index=False)
    print(f"\nResults written to {filepath}")


def print_results_table(results: List[Dict[str, Any]]):
    """Print formatted results table."""
    print("\n" + "=" * 90)
    print("BENCHMARK RESULTS SUMMARY")
    print("=" * 90)

    print(f"{'Locations':>10} {'Zones':>8} {'KD k-NN':>10} {'Brute':>10} "
          f"{'Scan all':>10} {'Scan max':>10} {'ms/round':>10}")
    print("-" * 90)

    for r in results:
        print(f"{r['n_locations']:>10} {r['n_zones']:>8} "
              f"{r['kdtree_knn_ms']:>10.2f} {r['brute_knn_ms']:>10.2f} "
              f"{r['scan_all_ms']:>10.2f} {r['scan_max_ms']:>10.2f} "
              f"{r['ms_per_round']:>10.2f}")

    print("=" * 90)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Benchmark the Poisson space-time scan'
    )
    parser.add_argument(
        '--sizes', type=str, default='50,100,200,400',
        help='Comma-separated numbers of locations (default: 50,100,200,400)'
    )
    parser.add_argument(
        '--n-times', type=int, default=8,
        help='Time steps per scenario (default: 8)'
    )
    parser.add_argument(
        '--k', type=int, default=8,
        help='Neighbours per zone (default: 8)'
    )
    parser.add_argument(
        '--n-mcsim', type=int, default=19,
        help='Monte Carlo rounds (default: 19)'
    )
    parser.add_argument(
        '--trials', type=int, default=3,
        help='Number of timing trials per benchmark (default: 3)'
    )
    parser.add_argument(
        '--output', type=str, default='benchmarks/benchmark_results.csv',
        help='Output CSV file path'
    )
    parser.add_argument(
        '--quiet', '-q', action='store_true',
        help='Minimal output'
    )

    args = parser.parse_args()

    sizes = [int(s.strip()) for s in args.sizes.split(',')]

    if not args.quiet:
        print("=" * 60)
        print("  POISSON SCAN BENCHMARK")
        print("  Zone construction, observed scan, Monte Carlo")
        print("=" * 60)
        print(f"\nLocations: {sizes}")
        print(f"Time steps: {args.n_times}, k: {args.k}, rounds: {args.n_mcsim}")
        print(f"Trials per size: {args.trials}")

    results = run_benchmark_suite(sizes, args.n_times, args.k, args.n_mcsim,
                                  args.trials, verbose=not args.quiet)

    print_results_table(results)

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    save_results_csv(results, str(output_path))

    return 0


if __name__ == "__main__":
    sys.exit(main())
