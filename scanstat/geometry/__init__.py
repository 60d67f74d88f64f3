"""
Geometry Module for the Space-Time Scan

This module builds the zone catalog scanned by the Poisson scan:
- KD-tree for k-nearest-neighbour search over location coordinates
- k-nearest-neighbour zones (every location plus its closest neighbours)
"""

from .kd_tree import KDTree, brute_force_knn
from .zones import coords_to_knn, knn_zones

__all__ = [
    'KDTree',
    'brute_force_knn',
    'coords_to_knn',
    'knn_zones'
]
