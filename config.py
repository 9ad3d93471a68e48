"""
Configuration settings for the spot counting pipeline.
Centralized configuration for all modules.
"""

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class ScaleCalibration:
    """Calibration for one mask scale."""

    ring_width: int
    delta: int
    max_diff: int


class PipelineConfig:
    """Configuration for the entire spot counting pipeline."""

    # Stage indices
    STAGES = {
        'GREYSCALE': 0,
        'NOISE_REDUCTION': 1,
        'EDGE_DETECTION': 2,
        'SPOT_DETECTION': 3,
    }

    # Greyscale weights in thousandths (0.299, 0.587, 0.114)
    GREYSCALE = {
        'WEIGHTS': (299, 587, 114),
        'SCALE': 1000,
    }

    # Edge Detection
    EDGE_DETECTION = {
        'EPSILON_MIN': 0,
        'EPSILON_MAX': 255,
        'EDGE_VALUE': 255,
    }

    # Spot Detection: empirical ring calibration indexed by scale
    SPOT_DETECTION = {
        'RING_WIDTH': (6, 9, 12, 15, 18, 21, 24, 27),
        'DELTA': (0, 1, 1, 1, 1, 1, 2, 2),
        'MAX_DIFF': (4800, 6625, 11000, 15000, 19000, 23000, 28000, 35000),
        'MAX_SCALE_SPAN': 7,
        'ON': 255,
    }

    # Output files
    OUTPUT = {
        'DEFAULT_DIR': 'out',
        'SUFFIXES': {0: '_GS', 1: '_NR', 2: '_ED', 3: '_SD'},
        'EXTENSION': '.png',
    }

    # Interactive stage viewer
    VIEWER = {
        'WINDOW_NAME': 'Spot Counter',
        'KEYS': {'1': 'original', '2': 'greyscale', '3': 'noise_reduced',
                 '4': 'edges', '5': 'spots'},
        'QUIT_KEYS': ('q', '\x1b'),
    }

    # Labels used for stage panels
    STAGE_LABELS = {
        'original': '0. Original',
        'greyscale': '1. Greyscale',
        'noise_reduced': '2. Noise Reduction',
        'edges': '3. Edges',
        'spots': '4. Spots',
    }

    @classmethod
    def calibration(cls, scale: int, config: Dict = None) -> ScaleCalibration:
        """Look up the calibration row for a scale index."""
        cfg = config or cls.SPOT_DETECTION
        return ScaleCalibration(
            ring_width=cfg['RING_WIDTH'][scale],
            delta=cfg['DELTA'][scale],
            max_diff=cfg['MAX_DIFF'][scale],
        )

    @classmethod
    def scale_span(cls, config: Dict = None) -> Tuple[int, int]:
        """Supported (min, max) value of r2 - r1."""
        cfg = config or cls.SPOT_DETECTION
        return 0, cfg['MAX_SCALE_SPAN']
