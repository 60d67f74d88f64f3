"""
Performance Measurement Module

Utilities for timing scans and benchmarking the scan and simulation
loops across problem sizes.

Components:
- timing: Timer context manager and benchmark helpers
"""

from .timing import (
    Timer,
    BenchmarkResult,
    benchmark_function
)

__all__ = [
    'Timer',
    'BenchmarkResult',
    'benchmark_function'
]
