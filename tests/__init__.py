"""
Test Suite for the Space-Time Scan Statistic

This package contains unit tests and integration tests for:
- Cumulative aggregate tables and the Poisson score
- Result retention strategies and export tables
- Scan and Monte Carlo simulation engine
- P-values
- KD-tree k-nearest neighbours and zone construction
- Synthetic data generation and the command-line interface

Run tests with: pytest -v
"""
