"""
KD-Tree for k-Nearest-Neighbour Queries on Location Coordinates

Zones are built from each location's k nearest neighbours, so the scan
needs one k-NN query per location. This module provides a small KD-tree
for 2-D coordinates (e.g. centroids of counties or postcode areas) and a
brute-force baseline used for validation.

Ties in distance are broken by location index, so the tree and the brute
force return identical neighbour lists, and a location always comes first
in its own list unless another location shares its coordinates with a
lower index.

Complexity Analysis:
- Build: O(n log² n) (sort at every level)
- k-Nearest Neighbours: O(k log k log n) average
- All-locations k-NN: O(n k log k log n) average
- Space: O(n)

Reference:
    Bentley, J. L. (1975). Multidimensional binary search trees used for
    associative searching. Communications of the ACM, 18(9), 509-517.
"""

from dataclasses import dataclass
from typing import List, Tuple, Optional
import numpy as np
from heapq import heappush, heappushpop


@dataclass
class KDNode:
    """
    One location in the tree.

    Attributes:
        point: Coordinates of the location
        index: Location index (row of the coordinate array)
        split_dim: Axis this node splits on (0 = x, 1 = y)
        left: Locations below the split (ties ordered by index)
        right: Locations above the split
    """
    point: np.ndarray
    index: int
    split_dim: int
    left: Optional['KDNode'] = None
    right: Optional['KDNode'] = None


class KDTree:
    """
    KD-Tree for 2D k-nearest-neighbour queries.

    Example:
        >>> coords = np.array([[0, 0], [1, 0], [5, 5], [0, 1]])
        >>> tree = KDTree(coords)
        >>> tree.k_nearest_neighbors([0, 0], k=3)
        [(0, 0.0), (1, 1.0), (3, 1.0)]

    Attributes:
        points: Location coordinates, shape (n_points, 2)
        root: Median node of the first x split, None when empty
        n_points: Number of locations
    """

    n_dimensions = 2

    def __init__(self, points: np.ndarray):
        """
        Build the tree over location coordinates.

        Args:
            points: NumPy array of shape (n, 2)

        Raises:
            ValueError: If points is not an (n, 2) array
        """
        self.points = np.asarray(points, dtype=np.float64)
        if self.points.size == 0:
            self.points = self.points.reshape(0, 2)
        if self.points.ndim != 2 or self.points.shape[1] != self.n_dimensions:
            raise ValueError(f"points must have shape (n, 2), got {self.points.shape}")

        self.n_points = len(self.points)
        self.root = self._build(list(range(self.n_points)), depth=0)

    def _build(self, indices: List[int], depth: int) -> Optional[KDNode]:
        """Recursively split on the median, alternating x and y."""
        if not indices:
            return None

        split_dim = depth % self.n_dimensions
        indices.sort(key=lambda i: (self.points[i, split_dim], i))

        median_pos = len(indices) // 2
        median_idx = indices[median_pos]

        node = KDNode(
            point=self.points[median_idx],
            index=median_idx,
            split_dim=split_dim
        )
        node.left = self._build(indices[:median_pos], depth + 1)
        node.right = self._build(indices[median_pos + 1:], depth + 1)
        return node

    def k_nearest_neighbors(self, query: np.ndarray, k: int) -> List[Tuple[int, float]]:
        """
        Find the k nearest neighbours of a query point.

        A max-heap keyed on (-distance, -index) holds the k best candidates,
        so the root is always the candidate to evict: the farthest one, and
        among equally far ones the highest index.

        Args:
            query: Query point as [x, y]
            k: Number of neighbours to find (capped at n_points)

        Returns:
            List of (index, distance) tuples, sorted by distance then index

        Complexity:
            Time: O(k log k log n) average
            Space: O(k) for the heap
        """
        if k < 1:
            raise ValueError(f"k must be positive, got {k}")
        query = np.asarray(query, dtype=np.float64)

        if self.root is None:
            return []

        heap: List[Tuple[float, int]] = []
        self._knn_search(self.root, query, min(k, self.n_points), heap)

        results = sorted((-neg_dist, -neg_idx) for neg_dist, neg_idx in heap)
        return [(idx, dist) for dist, idx in results]

    def _knn_search(
        self,
        node: Optional[KDNode],
        query: np.ndarray,
        k: int,
        heap: List[Tuple[float, int]]
    ) -> None:
        if node is None:
            return

        dist = float(np.sqrt(np.sum((node.point - query) ** 2)))
        entry = (-dist, -node.index)
        if len(heap) < k:
            heappush(heap, entry)
        elif entry > heap[0]:
            heappushpop(heap, entry)

        diff = query[node.split_dim] - node.point[node.split_dim]
        if diff < 0:
            near_child, far_child = node.left, node.right
        else:
            near_child, far_child = node.right, node.left

        self._knn_search(near_child, query, k, heap)

        # Points on the splitting plane can tie with the current worst, so <=
        radius = float('inf') if len(heap) < k else -heap[0][0]
        if abs(diff) <= radius:
            self._knn_search(far_child, query, k, heap)

    def query_knn(self, k: int) -> np.ndarray:
        """
        k nearest neighbours of every point in the tree.

        Returns:
            Integer array of shape (n_points, min(k, n_points)); row i lists
            the neighbours of point i, nearest first
        """
        k = min(k, self.n_points)
        result = np.zeros((self.n_points, k), dtype=np.int64)
        for i in range(self.n_points):
            neighbours = self.k_nearest_neighbors(self.points[i], k)
            result[i] = [idx for idx, _ in neighbours]
        return result


def brute_force_knn(points: np.ndarray, k: int) -> np.ndarray:
    """
    k nearest neighbours of every point by full distance matrix.

    Used for correctness testing of the KD-tree. Ties are broken by index.

    Complexity:
        Time: O(n² log n)
        Space: O(n²)
    """
    points = np.asarray(points, dtype=np.float64)
    n = len(points)
    k = min(k, n)

    diffs = points[:, None, :] - points[None, :, :]
    distances = np.sqrt(np.sum(diffs ** 2, axis=2))

    result = np.zeros((n, k), dtype=np.int64)
    indices = np.arange(n)
    for i in range(n):
        order = np.lexsort((indices, distances[i]))
        result[i] = order[:k]
    return result
