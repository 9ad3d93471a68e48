"""
Spot Counting Modules

This package contains modular components for counting coat spots:
- pixel_grid: Grid validation and image conversion
- greyscale: Weighted RGB to intensity reduction
- noise_reduction: Von Neumann majority-vote smoothing
- edge_detection: Threshold edge classification
- mask_factory: Ring template generation
- spot_detection: Multi-scale template matching with deduplication
"""

from .exceptions import (
    SpotPipelineError,
    InvalidDimensions,
    CalibrationRangeExceeded,
    ParameterOutOfRange,
)
from .greyscale import GreyscaleConverter
from .noise_reduction import NoiseFilter
from .edge_detection import EdgeDetector
from .mask_factory import MaskFactory
from .spot_detection import SpotMatcher, SpotDetectionResult

__version__ = "0.1.0"

__all__ = [
    'SpotPipelineError',
    'InvalidDimensions',
    'CalibrationRangeExceeded',
    'ParameterOutOfRange',
    'GreyscaleConverter',
    'NoiseFilter',
    'EdgeDetector',
    'MaskFactory',
    'SpotMatcher',
    'SpotDetectionResult',
]
