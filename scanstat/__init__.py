"""
Population-Based Poisson Space-Time Scan Statistic

This package detects anomalous space-time clusters in event-count data
(e.g. disease outbreaks) by scanning every zone and trailing time window
with a Poisson likelihood-ratio score, and judges the most likely cluster
against a Monte Carlo null distribution.

Main modules:
- data_models: Aggregate tables, result records, scenarios
- scan: Score calculator, retention strategies, simulation engine, P-values
- geometry: KD-tree and k-nearest-neighbour zones
- synthetic_data: Synthetic counts with injected outbreaks
- hpc: Timing and benchmark utilities
"""

__version__ = "1.0.0"
