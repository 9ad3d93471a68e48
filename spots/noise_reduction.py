"""
Noise Reduction Module

Cellular-automaton smoothing: each interior pixel takes the majority value
of its von Neumann neighborhood (centre plus 4 orthogonal neighbours).
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)

# Tally order: centre, +x, -x, +y, -y
_ORDER_MASK = np.tril(np.ones((5, 5), dtype=bool))


class NoiseFilter:
    """Majority-vote smoothing over the von Neumann neighborhood."""

    def neighborhood(self, grid: np.ndarray) -> np.ndarray:
        """
        Stack the 5 neighborhood values of every interior pixel.

        Returns:
            (H-2, W-2, 5) array in tally order
        """
        return np.stack([
            grid[1:-1, 1:-1],
            grid[1:-1, 2:],
            grid[1:-1, :-2],
            grid[2:, 1:-1],
            grid[:-2, 1:-1],
        ], axis=-1)

    def reduce(self, grid: np.ndarray) -> np.ndarray:
        """
        Apply one smoothing pass.

        The centre keeps its value when it ties for the highest count.
        Otherwise the value that first reaches the highest count in tally
        order wins. Border pixels are copied unchanged.

        Args:
            grid: (H, W) intensity grid

        Returns:
            New (H, W) grid; the input is not modified
        """
        out = grid.copy()
        h, w = grid.shape
        if h < 3 or w < 3:
            return out

        values = self.neighborhood(grid)
        same = values[..., :, None] == values[..., None, :]

        totals = same.sum(axis=-1)
        running = (same & _ORDER_MASK).sum(axis=-1)
        best = totals.max(axis=-1)

        first_to_best = np.argmax(running, axis=-1)
        majority = np.take_along_axis(values, first_to_best[..., None], axis=-1)[..., 0]

        centre = values[..., 0]
        out[1:-1, 1:-1] = np.where(totals[..., 0] == best, centre, majority)

        changed = int(np.count_nonzero(out[1:-1, 1:-1] != centre))
        logger.debug("Noise reduction changed %d pixels", changed)
        return out
