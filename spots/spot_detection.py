"""
Spot Detection Module

Counts spots in an edge grid by sliding ring masks of increasing radius over
it and scoring each window with the sum of absolute differences. A boolean
"counted" grid remembers the centre footprint of every match so that
overlapping windows, at the same or a larger scale, are not counted twice.
"""

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from config import PipelineConfig
from .exceptions import CalibrationRangeExceeded, InvalidDimensions, ParameterOutOfRange
from .mask_factory import MaskFactory
from .pixel_grid import require_integer

logger = logging.getLogger(__name__)


@dataclass
class SpotDetectionResult:
    """Output of one detection call."""

    spots: np.ndarray
    count: int
    scale_counts: List[int] = field(default_factory=list)


@dataclass
class _ScanState:
    """Accumulators owned by a single detection call."""

    spots: np.ndarray
    counted: np.ndarray
    count: int = 0

    @classmethod
    def for_shape(cls, shape) -> '_ScanState':
        return cls(spots=np.zeros(shape, dtype=np.int32),
                   counted=np.zeros(shape, dtype=bool))


class SpotMatcher:
    """Multi-scale ring template matcher with overlap deduplication."""

    def __init__(self, config: dict = None):
        """
        Initialize spot matcher.

        Args:
            config: Optional config dict, uses PipelineConfig.SPOT_DETECTION if None
        """
        self.config = config or PipelineConfig.SPOT_DETECTION
        self.mask_factory = MaskFactory(self.config)
        self.on_value = self.config['ON']

    def validate_radii(self, r1: int, r2: int):
        """Reject radii outside the calibrated scale range."""
        require_integer('r1', r1)
        require_integer('r2', r2)
        if r1 < 0:
            raise ParameterOutOfRange('r1', r1, low=0)
        low, high = PipelineConfig.scale_span(self.config)
        if not low <= r2 - r1 <= high:
            raise CalibrationRangeExceeded(r1, r2, high)

    def mark_counted(self,
                     state: _ScanState,
                     footprint: np.ndarray,
                     x: int,
                     y: int) -> bool:
        """
        Mark a match's centre footprint as counted.

        Args:
            state: Scan accumulators
            footprint: (N, 2) array of (dy, dx) offsets of centre mask cells
            x: Column of the window's top-left pixel
            y: Row of the window's top-left pixel

        Returns:
            True if none of the footprint was counted before
        """
        ys = footprint[:, 0] + y
        xs = footprint[:, 1] + x
        seen = bool(state.counted[ys, xs].any())
        state.counted[ys, xs] = True
        return not seen

    def scan(self,
             edges: np.ndarray,
             state: _ScanState,
             mask: np.ndarray,
             centre: np.ndarray,
             max_diff: int,
             deduplicate: bool = True) -> int:
        """
        Slide one mask over the edge grid.

        Window origins are top-left anchored and visited column by column
        (outer loop over x, inner over y). Windows without any edge pixel
        are skipped.

        Returns:
            Number of new spots found at this scale
        """
        size = mask.shape[0]
        h, w = edges.shape
        n_x, n_y = w - size, h - size
        if n_x <= 0 or n_y <= 0:
            logger.debug("Mask of size %d does not fit %dx%d grid", size, w, h)
            return 0

        windows = sliding_window_view(edges, (size, size))
        template = mask.astype(np.int32)
        footprint = np.argwhere(centre == self.on_value)

        found = 0
        for x in range(n_x):
            column = windows[:n_y, x]
            has_edge = column.max(axis=(1, 2)) > 0
            if not has_edge.any():
                continue

            scores = np.abs(column - template).sum(axis=(1, 2))
            for y in np.flatnonzero(has_edge & (scores < max_diff)):
                y = int(y)
                block = column[y]
                region = state.spots[y:y + size, x:x + size]
                region[block == self.on_value] = self.on_value

                is_new = self.mark_counted(state, footprint, x, y)
                if is_new or not deduplicate:
                    found += 1

        return found

    def detect(self,
               edges: np.ndarray,
               r1: int,
               r2: int,
               deduplicate: bool = True) -> SpotDetectionResult:
        """
        Count spots with ring radii r1..r2.

        Args:
            edges: (H, W) edge grid of 0 / 255
            r1: Smallest mask radius
            r2: Largest mask radius; r2 - r1 selects the calibration rows
            deduplicate: Suppress matches whose centre overlaps a counted spot

        Returns:
            SpotDetectionResult with the spots grid, total and per-scale counts
        """
        self.validate_radii(r1, r2)
        edges = np.asarray(edges, dtype=np.int32)
        if edges.ndim != 2:
            raise InvalidDimensions(f"edge grid must be 2D, got {edges.ndim}D")

        state = _ScanState.for_shape(edges.shape)
        scale_counts = []

        for scale in range(r2 - r1 + 1):
            radius = r1 + scale
            cal = PipelineConfig.calibration(scale, self.config)
            mask = self.mask_factory.ring(radius, scale)
            centre = self.mask_factory.centre(radius, scale)

            found = self.scan(edges, state, mask, centre, cal.max_diff, deduplicate)
            state.count += found
            scale_counts.append(found)
            logger.info("Scale %d (radius %d): %d spots", scale, radius, found)

        logger.info("Total spots: %d", state.count)
        return SpotDetectionResult(spots=state.spots, count=state.count,
                                   scale_counts=scale_counts)
