"""
Mask Factory Module

Builds ring ("donut") templates approximating the edge signature of a
circular spot, and the smaller centre masks used to remember which spots
were already counted.
"""

import numpy as np

from config import PipelineConfig


class MaskFactory:
    """Creates binary ring masks."""

    def __init__(self, config: dict = None):
        """
        Initialize mask factory.

        Args:
            config: Optional config dict, uses PipelineConfig.SPOT_DETECTION if None
        """
        self.config = config or PipelineConfig.SPOT_DETECTION
        self.on_value = self.config['ON']

    def create(self, radius: int, ring_radius: int, width: int, delta: int) -> np.ndarray:
        """
        Create a ring mask.

        Args:
            radius: Outer radius; the mask is (2 * radius + 1) square
            ring_radius: Radius of the ring centre line
            width: Band half-width, in squared-distance units
            delta: Offset subtracted from ring_radius

        Returns:
            uint8 mask with ring cells set to the on value
        """
        side = 2 * radius + 1
        offsets = np.arange(side) - radius
        dist_sq = offsets[:, None] ** 2 + offsets[None, :] ** 2

        target = (ring_radius - delta) ** 2
        ring = (dist_sq > target - width) & (dist_sq < target + width)
        return np.where(ring, self.on_value, 0).astype(np.uint8)

    def ring(self, radius: int, scale: int) -> np.ndarray:
        """Ring mask matched against edges at the given scale."""
        cal = PipelineConfig.calibration(scale, self.config)
        return self.create(radius, radius, cal.ring_width, cal.delta)

    def centre(self, radius: int, scale: int) -> np.ndarray:
        """Half-radius footprint marked as counted when a ring matches."""
        cal = PipelineConfig.calibration(scale, self.config)
        return self.create(radius, radius // 2, cal.ring_width, cal.delta)


def format_mask(mask: np.ndarray) -> str:
    """Render a mask as rows of right-aligned values."""
    return '\n'.join(' '.join(f'{int(v):3d}' for v in row) for row in mask)


if __name__ == '__main__':
    factory = MaskFactory()
    for scale, radius in enumerate(range(4, 12)):
        print(f"--- scale {scale}, radius {radius} ---")
        print(format_mask(factory.ring(radius, scale)))
        print()
        print(format_mask(factory.centre(radius, scale)))
        print()
