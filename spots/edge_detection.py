"""
Edge Detection Module

Marks a pixel as an edge when its intensity differs from any orthogonal
neighbour by more than a threshold.
"""

import logging

import numpy as np

from config import PipelineConfig

logger = logging.getLogger(__name__)


class EdgeDetector:
    """Threshold edge detection over the von Neumann neighborhood."""

    def __init__(self, config: dict = None):
        """
        Initialize edge detector.

        Args:
            config: Optional config dict, uses PipelineConfig.EDGE_DETECTION if None
        """
        self.config = config or PipelineConfig.EDGE_DETECTION
        self.edge_value = self.config['EDGE_VALUE']

    def neighbour_differences(self, grid: np.ndarray) -> np.ndarray:
        """Absolute differences to the +x, -x, +y, -y neighbours of interior pixels."""
        centre = grid[1:-1, 1:-1]
        return np.abs(np.stack([
            centre - grid[1:-1, 2:],
            centre - grid[1:-1, :-2],
            centre - grid[2:, 1:-1],
            centre - grid[:-2, 1:-1],
        ], axis=-1))

    def detect(self, grid: np.ndarray, epsilon: int) -> np.ndarray:
        """
        Detect edges in a noise-reduced grid.

        Args:
            grid: (H, W) intensity grid
            epsilon: Threshold; a difference strictly greater is an edge

        Returns:
            (H, W) grid of 0 / 255, border pixels always 0
        """
        grid = grid.astype(np.int32)
        edges = np.zeros_like(grid)
        h, w = grid.shape
        if h < 3 or w < 3:
            return edges

        is_edge = (self.neighbour_differences(grid) > epsilon).any(axis=-1)
        edges[1:-1, 1:-1] = np.where(is_edge, self.edge_value, 0)

        logger.debug("Edge detection (epsilon=%d): %d edge pixels",
                     epsilon, int(np.count_nonzero(is_edge)))
        return edges
