"""
Poisson Space-Time Scan Module

This module provides the scan statistic kernel and its collaborators:

- poisson: likelihood-ratio score and relative risks of one candidate
- storage: retention strategies (all candidates / maximum / per-round maximum)
- engine: candidate iteration and the Monte Carlo simulation loop
- simulators: null-model count generators for the simulation hook
- export: observed and replicate result tables
- pvalues: Monte Carlo and Gumbel P-values
- scan_pb_poisson: population-based Poisson scan entry point
"""

from .poisson import PoissonScore, PoissonScoreCalculator, poisson_score
from .storage import ResultStore, RetentionMode
from .engine import PoissonScan, SimulationError, SimulationState
from .simulators import multinomial_count_simulator, poisson_count_simulator
from .export import ResultExporter
from .pvalues import GumbelFit, gumbel_pvalue, mc_pvalue
from .scan_pb_poisson import estimate_baselines, population_baselines, scan_pb_poisson

__all__ = [
    'PoissonScore',
    'PoissonScoreCalculator',
    'poisson_score',
    'ResultStore',
    'RetentionMode',
    'PoissonScan',
    'SimulationError',
    'SimulationState',
    'multinomial_count_simulator',
    'poisson_count_simulator',
    'ResultExporter',
    'GumbelFit',
    'gumbel_pvalue',
    'mc_pvalue',
    'estimate_baselines',
    'population_baselines',
    'scan_pb_poisson'
]
