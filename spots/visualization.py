"""
Visualization utilities for the spot counting pipeline.
Labelled stage panels for saving and the interactive viewer.
"""

import cv2
import numpy as np
from typing import List, Optional, Tuple

FONT = cv2.FONT_HERSHEY_SIMPLEX
MIN_BANNER = 12


def to_bgr(img: np.ndarray) -> np.ndarray:
    """Return a uint8 BGR copy of a greyscale or BGR image."""
    img = np.asarray(img).astype(np.uint8)
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    return img.copy()


def banner_height(img_height: int) -> int:
    """Height of the caption strip for an image of the given height."""
    return min(img_height, max(MIN_BANNER, img_height // 12))


def add_label_to_image(img: np.ndarray,
                       text: str,
                       color: Tuple[int, int, int] = (255, 255, 255),
                       bg_color: Tuple[int, int, int] = (0, 0, 0)) -> np.ndarray:
    """
    Caption a stage image with a strip across its top rows.

    The text is sized to the strip height and shrunk further when it would
    run past the right edge. The image keeps its shape.
    """
    vis = to_bgr(img)
    h, w = vis.shape[:2]
    strip = banner_height(h)
    pad = max(1, strip // 6)

    scale = cv2.getFontScaleFromHeight(FONT, max(1, strip - 2 * pad))
    (text_w, _), _ = cv2.getTextSize(text, FONT, scale, 1)
    if text_w > w - 2 * pad > 0:
        scale *= (w - 2 * pad) / text_w

    vis[:strip] = bg_color
    cv2.putText(vis, text, (pad, strip - pad), FONT, scale, color, 1, cv2.LINE_AA)
    return vis


def create_grid_visualization(images: List[np.ndarray],
                              labels: Optional[List[str]] = None,
                              grid_size: Optional[Tuple[int, int]] = None) -> np.ndarray:
    """
    Tile same-sized images row by row onto one canvas.

    Args:
        images: Images to arrange, greyscale or BGR
        labels: Optional caption for each image
        grid_size: Optional (rows, cols); near-square if None

    Returns:
        BGR panel; unused cells stay black
    """
    if not images:
        raise ValueError("No images provided")

    if grid_size is None:
        cols = int(np.ceil(np.sqrt(len(images))))
        rows = -(-len(images) // cols)
    else:
        rows, cols = grid_size

    labels = list(labels or [])
    h, w = np.asarray(images[0]).shape[:2]
    canvas = np.zeros((rows * h, cols * w, 3), dtype=np.uint8)

    for i, img in enumerate(images[:rows * cols]):
        label = labels[i] if i < len(labels) else None
        tile = add_label_to_image(img, label) if label else to_bgr(img)
        r, c = divmod(i, cols)
        canvas[r * h:(r + 1) * h, c * w:(c + 1) * w] = tile

    return canvas


def overlay_spots(img: np.ndarray,
                  spots: np.ndarray,
                  color: Tuple[int, int, int] = (0, 0, 255)) -> np.ndarray:
    """Paint matched spot pixels onto an image."""
    vis = to_bgr(img)
    vis[np.asarray(spots) > 0] = color
    return vis
