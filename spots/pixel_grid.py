"""
Pixel Grid Module

Validation and conversion between decoded OpenCV images and the pixel grids
consumed by the pipeline stages. Grids are numpy arrays addressed as
grid[y, x]: shape (H, W, 3) for RGB or (H, W) for a single intensity channel.
"""

import logging
import numbers
from typing import Tuple, Union

import cv2
import numpy as np

from .exceptions import InvalidDimensions, ParameterOutOfRange

logger = logging.getLogger(__name__)

GridLike = Union[np.ndarray, list]


def as_grid(data: GridLike) -> np.ndarray:
    """
    Validate a pixel grid and return it as an int32 array.

    Args:
        data: 2D intensity grid or 3D RGB grid (nested lists or ndarray)

    Returns:
        A new int32 array with the same shape

    Raises:
        InvalidDimensions: ragged, empty, or wrongly shaped input
        ParameterOutOfRange: a value outside [0, 255] or not a whole number
    """
    try:
        arr = np.asarray(data)
    except ValueError as e:
        raise InvalidDimensions(f"grid is not rectangular: {e}") from e

    if arr.dtype == object:
        raise InvalidDimensions("grid is not rectangular")
    if arr.ndim not in (2, 3):
        raise InvalidDimensions(f"grid must be 2D or 3D, got {arr.ndim}D")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidDimensions(f"grid has zero size: {arr.shape}")
    if arr.ndim == 3 and arr.shape[2] != 3:
        raise InvalidDimensions(f"expected 3 colour channels, got {arr.shape[2]}")
    if arr.dtype.kind not in 'biuf':
        raise InvalidDimensions(f"unsupported pixel type: {arr.dtype}")

    if arr.dtype.kind == 'f' and not np.array_equal(arr, np.floor(arr)):
        raise ParameterOutOfRange('pixel value', arr[arr != np.floor(arr)].flat[0])

    low, high = arr.min(), arr.max()
    if low < 0 or high > 255:
        bad = low if low < 0 else high
        raise ParameterOutOfRange('pixel value', bad, 0, 255)

    return arr.astype(np.int32)


def require_integer(name: str, value):
    """Reject non-integer parameters, including bools."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ParameterOutOfRange(name, value)


def grid_size(grid: np.ndarray) -> Tuple[int, int]:
    """Return (width, height) of a grid."""
    return grid.shape[1], grid.shape[0]


def get_pixel(grid: np.ndarray, x: int, y: int):
    """Bounds-checked access to the pixel at column x, row y."""
    width, height = grid_size(grid)
    if not (0 <= x < width and 0 <= y < height):
        raise IndexError(f"pixel ({x}, {y}) outside {width}x{height} grid")
    value = grid[y, x]
    if grid.ndim == 3:
        return tuple(int(c) for c in value)
    return int(value)


def grid_from_image(image: np.ndarray) -> np.ndarray:
    """Convert an 8-bit OpenCV BGR or greyscale image to an RGB grid."""
    if image is None or image.size == 0:
        raise InvalidDimensions("image is empty")

    if image.ndim == 2:
        rgb = cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    else:
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

    logger.debug("Decoded %dx%d image", rgb.shape[1], rgb.shape[0])
    return rgb.astype(np.int32)


def image_from_grid(grid: np.ndarray) -> np.ndarray:
    """Convert a single-channel or RGB grid to a uint8 BGR image."""
    img = np.asarray(grid).astype(np.uint8)
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    return cv2.cvtColor(img, cv2.COLOR_RGB2BGR)
