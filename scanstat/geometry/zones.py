"""
Zone Catalog from k-Nearest Neighbours

A zone is a set of locations scanned as one region. The classic circular
scan builds zones from each location and its nearest neighbours:

    location i with neighbours n₁ = i, n₂, ..., n_k (nearest first)
    zones:   {n₁}, {n₁, n₂}, ..., {n₁, ..., n_k}

Zones produced by more than one location are kept once, at their first
appearance (locations in index order, prefixes by increasing size). Each
zone is returned as a sorted tuple of location indices.

Example:
    >>> coords = np.array([[0, 0], [1, 0], [3, 0]])
    >>> knn_zones(coords_to_knn(coords, k=2))
    [(0,), (0, 1), (1,), (2,), (1, 2)]
"""

from typing import List, Tuple
import numpy as np

from .kd_tree import KDTree


def coords_to_knn(coords: np.ndarray, k: int) -> np.ndarray:
    """
    Nearest neighbours of every location, the location itself first.

    Args:
        coords: Array of shape (n_locations, 2)
        k: Number of neighbours per location, including itself

    Returns:
        Integer array of shape (n_locations, min(k, n_locations))

    Raises:
        ValueError: If k < 1 or there are no coordinates
    """
    if k < 1:
        raise ValueError(f"k must be positive, got {k}")
    tree = KDTree(coords)
    if tree.n_points == 0:
        raise ValueError("coords must contain at least one location")
    return tree.query_knn(k)


def knn_zones(knn_matrix: np.ndarray) -> List[Tuple[int, ...]]:
    """
    Unique zones formed by every prefix of every neighbour list.

    Args:
        knn_matrix: Neighbour indices, one row per location, nearest first

    Returns:
        List of zones as sorted tuples, ordered by first appearance

    Complexity: O(n k² log k) time for n locations and k neighbours
    """
    knn_matrix = np.asarray(knn_matrix, dtype=np.int64)
    if knn_matrix.ndim != 2:
        raise ValueError("knn_matrix must be a 2-D array")

    seen = set()
    zones: List[Tuple[int, ...]] = []
    for row in knn_matrix:
        for size in range(1, len(row) + 1):
            zone = tuple(sorted(int(i) for i in row[:size]))
            if zone not in seen:
                seen.add(zone)
                zones.append(zone)
    return zones
