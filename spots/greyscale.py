"""
Greyscale Module

Reduces an RGB grid to a single intensity channel using the weighted
luma formula floor(0.299 R + 0.587 G + 0.114 B).
"""

import logging

import numpy as np

from config import PipelineConfig

logger = logging.getLogger(__name__)


class GreyscaleConverter:
    """Converts RGB grids to greyscale."""

    def __init__(self, config: dict = None):
        """
        Initialize greyscale converter.

        Args:
            config: Optional config dict, uses PipelineConfig.GREYSCALE if None
        """
        self.config = config or PipelineConfig.GREYSCALE
        self.weights = np.array(self.config['WEIGHTS'], dtype=np.int64)
        self.scale = self.config['SCALE']

    def convert(self, grid: np.ndarray) -> np.ndarray:
        """
        Convert a grid to greyscale.

        Integer weights keep the floor exact, so grey input (R=G=B) maps to
        itself.

        Args:
            grid: (H, W, 3) RGB grid, or (H, W) grid already single channel

        Returns:
            (H, W) int32 intensity grid
        """
        if grid.ndim == 2:
            return grid.astype(np.int32, copy=True)

        weighted = grid.astype(np.int64) @ self.weights
        grey = weighted // self.scale
        logger.debug("Greyscale: %dx%d", grey.shape[1], grey.shape[0])
        return grey.astype(np.int32)
