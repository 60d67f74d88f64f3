"""
Main Entry Point for the Space-Time Scan Statistic

This script provides a command-line interface for running the
population-based Poisson scan. It orchestrates:

1. Synthetic data generation (geography, zones, counts + outbreak)
2. Observed scan over every zone and trailing time window
3. Monte Carlo replicates and P-values
4. Reporting and export

Usage:
    # Generate data and run the scan with 999 replicates
    python -m scanstat.main --generate-data --n-locations 40 --n-times 6 --n-mcsim 999

    # Run on an existing scenario file
    python -m scanstat.main --input data/scenario_example.json --n-mcsim 99

    # Run benchmark over problem sizes
    python -m scanstat.main --benchmark --sizes 50,100,200
"""

import argparse
import logging
import sys
from pathlib import Path


from .synthetic_data import (
    generate_scan_scenario,
    generate_benchmark_scenarios,
    save_scenario_to_json,
    load_scenario_from_json,
    visualize_replicates
)
from .data_models import ScanScenario, ScanStatistic
from .scan.scan_pb_poisson import scan_pb_poisson
from .hpc.timing import benchmark_function

LOGGER = logging.getLogger("scanstat")


def print_header():
    """Print application header."""
    print("=" * 70)
    print("  POPULATION-BASED POISSON SPACE-TIME SCAN STATISTIC")
    print("  Cluster detection with Monte Carlo significance testing")
    print("=" * 70)
    print()


def generate_data(args) -> ScanScenario:
    """
    Generate a synthetic scenario from the command line options.

    Args:
        args: Command line arguments

    Returns:
        Generated ScanScenario
    """
    print("Generating Synthetic Data...")
    print("-" * 40)
    print(f"  Locations: {args.n_locations}")
    print(f"  Time steps: {args.n_times}")
    print(f"  Neighbours per zone: {args.k}")
    print(f"  Outbreak: duration {args.outbreak_duration}, relative risk {args.relative_risk}")
    print(f"  Random seed: {args.seed}")
    print()

    scenario = generate_scan_scenario(
        n_locations=args.n_locations,
        n_times=args.n_times,
        k=args.k,
        rate=args.rate,
        outbreak_zone=args.outbreak_zone,
        outbreak_duration=args.outbreak_duration,
        relative_risk=args.relative_risk,
        seed=args.seed,
        scenario_id=f"generated_{args.n_locations}x{args.n_times}"
    )

    print(f"Generated scenario: {scenario.scenario_id}")
    print(f"  Zones: {len(scenario.zones)}")
    print(f"  Total cases: {int(scenario.counts.sum())}")
    if scenario.ground_truth and scenario.ground_truth.zone_number >= 0:
        print(f"  Outbreak zone: {scenario.ground_truth.zone_number} "
              f"(locations {scenario.ground_truth.locations})")
    print()

    if args.save_data:
        path = save_scenario_to_json(scenario, args.output_dir)
        print(f"Data saved to: {path}")
        print()

    return scenario


def load_data(args) -> ScanScenario:
    """Load scenario from JSON file."""
    print(f"Loading data from: {args.input}")
    print("-" * 40)

    scenario = load_scenario_from_json(args.input)

    print(f"Loaded scenario: {scenario.scenario_id}")
    print(f"  Locations: {scenario.n_locations}, time steps: {scenario.n_times}")
    print(f"  Zones: {len(scenario.zones)}")
    print()

    return scenario


def run_analysis(scenario: ScanScenario, args) -> ScanStatistic:
    """
    Run the scan and the Monte Carlo replicates.

    Args:
        scenario: Scenario to analyze
        args: Command line arguments

    Returns:
        ScanStatistic with results
    """
    print("Running Scan...")
    print("-" * 40)
    print(f"  Monte Carlo replicates: {args.n_mcsim}")
    print(f"  Keep maximum only: {args.max_only}")
    print()

    result = scan_pb_poisson(
        scenario.counts,
        scenario.zones,
        population=scenario.population,
        n_mcsim=args.n_mcsim,
        max_only=args.max_only,
        seed=args.seed
    )

    print(f"  Processing time: {result.processing_time_ms:.2f} ms")
    print()
    return result


def print_report(result: ScanStatistic, verbose: bool = False):
    """Print the scan summary and, if verbose, the top candidates."""
    print(result.summary())

    if verbose:
        print("\nTop candidates (first 10):")
        print("-" * 40)
        print(result.table.head(10).to_string(index=False))
    print()


def run_validation(scenario: ScanScenario, result: ScanStatistic):
    """Compare the most likely cluster with the injected outbreak."""
    truth = scenario.ground_truth
    if truth is None or truth.zone_number < 0:
        print("No injected outbreak to validate against.")
        return

    detected = set(result.MLC.locations)
    injected = set(truth.locations)
    overlap = len(detected & injected)

    print("Ground Truth Validation:")
    print("-" * 40)
    print(f"  Injected zone:  {truth.zone_number} (duration {truth.duration})")
    print(f"  Detected zone:  {result.MLC.zone_number} (duration {result.MLC.duration})")
    print(f"  Location overlap: {overlap}/{len(injected)} injected, "
          f"{overlap}/{len(detected)} detected")
    print()


def export_tables(result: ScanStatistic, output_dir: str):
    """Write the observed and replicate tables as CSV."""
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    table_path = output_path / "scan_table.csv"
    replicates_path = output_path / "replicate_statistics.csv"
    result.table.to_csv(table_path, index=False)
    result.replicate_statistics.to_csv(replicates_path, index=False)

    print("Tables saved to:")
    print(f"  {table_path}")
    print(f"  {replicates_path}")
    print()


def run_benchmark(args):
    """Time the observed scan and the simulation over problem sizes."""
    print("Running Performance Benchmarks...")
    print("-" * 40)

    sizes = [int(s.strip()) for s in args.sizes.split(',')]
    print(f"  Problem sizes: {sizes}")
    print(f"  Trials per size: {args.trials}")
    print(f"  Replicates per trial: {args.n_mcsim}")
    print()

    scenarios = generate_benchmark_scenarios(sizes, n_times=args.n_times, k=args.k,
                                             seed=args.seed)
    results = []
    for size, scenario in scenarios.items():
        n_candidates = len(scenario.zones) * scenario.n_times
        result = benchmark_function(
            scan_pb_poisson,
            args=(scenario.counts, scenario.zones),
            kwargs={'population': scenario.population, 'n_mcsim': args.n_mcsim,
                    'max_only': True, 'seed': args.seed},
            n_trials=args.trials,
            name=f"scan_{size}",
            metadata={'n_locations': size, 'n_zones': len(scenario.zones),
                      'n_candidates': n_candidates}
        )
        results.append(result)
        print(f"  {result.summary()}")

    print("\n" + "=" * 70)
    print("BENCHMARK SUMMARY")
    print("=" * 70)
    print(f"{'Locations':>10} {'Zones':>8} {'Candidates':>12} {'Mean(ms)':>12} {'us/cand/round':>15}")
    print("-" * 70)
    for r in results:
        per_candidate_us = r.us_per_candidate(n_rounds=args.n_mcsim + 1)
        print(f"{r.metadata['n_locations']:>10} {r.metadata['n_zones']:>8} "
              f"{r.metadata['n_candidates']:>12} {r.mean_ms:>12.2f} {per_candidate_us:>15.3f}")
    print()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Population-based Poisson space-time scan statistic',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate data and run the scan
  python -m scanstat.main --generate-data --n-locations 40 --n-times 6

  # Load existing data
  python -m scanstat.main --input data/scenario_example.json

  # Run benchmarks
  python -m scanstat.main --benchmark --sizes 50,100,200
        """
    )

    data_group = parser.add_mutually_exclusive_group()
    data_group.add_argument('--generate-data', '-g', action='store_true',
                            help='Generate synthetic data')
    data_group.add_argument('--input', '-i', type=str,
                            help='Path to input scenario JSON file')
    data_group.add_argument('--benchmark', '-b', action='store_true',
                            help='Run performance benchmarks')

    gen_group = parser.add_argument_group('Data Generation')
    gen_group.add_argument('--n-locations', type=int, default=40,
                           help='Number of locations (default: 40)')
    gen_group.add_argument('--n-times', type=int, default=6,
                           help='Number of time steps (default: 6)')
    gen_group.add_argument('--k', type=int, default=6,
                           help='Nearest neighbours per zone (default: 6)')
    gen_group.add_argument('--rate', type=float, default=1e-3,
                           help='Cases per person per time step (default: 0.001)')
    gen_group.add_argument('--outbreak-zone', type=int, default=None,
                           help='Zone of the injected outbreak (default: random)')
    gen_group.add_argument('--outbreak-duration', type=int, default=2,
                           help='Outbreak duration, 0 for none (default: 2)')
    gen_group.add_argument('--relative-risk', type=float, default=3.0,
                           help='Outbreak relative risk (default: 3.0)')
    gen_group.add_argument('--seed', type=int, default=42,
                           help='Random seed (default: 42)')

    proc_group = parser.add_argument_group('Scan')
    proc_group.add_argument('--n-mcsim', type=int, default=99,
                            help='Monte Carlo replicates (default: 99)')
    proc_group.add_argument('--max-only', action='store_true',
                            help='Keep only the most likely cluster')

    bench_group = parser.add_argument_group('Benchmarking')
    bench_group.add_argument('--sizes', type=str, default='50,100,200',
                             help='Comma-separated numbers of locations (default: 50,100,200)')
    bench_group.add_argument('--trials', type=int, default=3,
                             help='Number of timing trials (default: 3)')

    out_group = parser.add_argument_group('Output')
    out_group.add_argument('--output-dir', type=str, default='data',
                           help='Output directory (default: data)')
    out_group.add_argument('--no-save', action='store_true',
                           help='Do not save generated data')
    out_group.add_argument('--export-csv', action='store_true',
                           help='Save result tables as CSV')
    out_group.add_argument('--visualize', '-v', action='store_true',
                           help='Plot the replicate distribution')
    out_group.add_argument('--verbose', action='store_true',
                           help='Debug logging and top candidates')
    out_group.add_argument('--quiet', '-q', action='store_true',
                           help='Minimal output')

    args = parser.parse_args()
    args.save_data = not args.no_save

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO if not args.quiet else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.quiet:
        print_header()

    if args.benchmark:
        run_benchmark(args)
        return 0

    if args.input is None:
        scenario = generate_data(args)
    else:
        scenario = load_data(args)

    try:
        result = run_analysis(scenario, args)
    except ValueError as exc:
        LOGGER.error("Scan failed: %s", exc)
        return 1

    if not args.quiet:
        print_report(result, verbose=args.verbose)
        run_validation(scenario, result)

    if args.export_csv:
        export_tables(result, args.output_dir)

    if args.visualize and args.n_mcsim > 0:
        visualize_replicates(result, save_path=str(Path(args.output_dir) / "replicates.png"))

    if not args.quiet:
        print("=" * 70)
        print(f"Scan complete. MLC score {result.MLC.score:.3f}, "
              f"Monte Carlo P-value {result.mc_pvalue:.4f}")
        print("=" * 70)

    return 0


if __name__ == "__main__":
    sys.exit(main())
