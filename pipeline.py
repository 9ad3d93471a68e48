"""
Coat Spot Counting Pipeline

Main script that orchestrates all modules to count spots on an animal's coat.
Process: Greyscale -> Noise Reduction -> Edge Detection -> Spot Detection

Usage:
    python pipeline.py <mode> <image> [epsilon] [r1 r2] [--output <dir>] [--all] [--grid] [--show]

Modes:
    0  greyscale                      (no extra arguments)
    1  noise reduction                (no extra arguments)
    2  edge detection                 (epsilon)
    3  spot detection                 (epsilon r1 r2)
"""

import argparse
import logging
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import cv2
import numpy as np

from config import PipelineConfig
from spots import (
    GreyscaleConverter,
    NoiseFilter,
    EdgeDetector,
    SpotMatcher,
    SpotPipelineError,
    ParameterOutOfRange,
)
from spots.pixel_grid import as_grid, grid_from_image, image_from_grid, require_integer
from spots.visualization import add_label_to_image, create_grid_visualization, overlay_spots

logger = logging.getLogger(__name__)

STAGE_NAMES = ('greyscale', 'noise_reduced', 'edges', 'spots')

# Extra integer arguments expected after the image path, per mode
MODE_ARG_COUNTS = {0: 0, 1: 0, 2: 1, 3: 3}

INTEGER_RE = re.compile(r'-?\d+$')


@dataclass
class PipelineResult:
    """Final grid of a run plus optional intermediates."""

    grid: np.ndarray
    stage: int
    spot_count: Optional[int] = None
    stages: Dict[str, np.ndarray] = field(default_factory=dict)


class SpotCountingPipeline:
    """Main pipeline for coat spot counting."""

    def __init__(self, config: dict = None):
        """
        Initialize all stage modules.

        Args:
            config: Optional dict of PipelineConfig section overrides, keyed by
                section name (GREYSCALE, EDGE_DETECTION, SPOT_DETECTION)
        """
        config = config or {}
        self.greyscale = GreyscaleConverter(config.get('GREYSCALE'))
        self.noise_filter = NoiseFilter()
        self.edge_detector = EdgeDetector(config.get('EDGE_DETECTION'))
        self.spot_matcher = SpotMatcher(config.get('SPOT_DETECTION'))

        self.edge_cfg = self.edge_detector.config

    def validate(self,
                 grid,
                 stage: int,
                 epsilon: Optional[int],
                 r1: Optional[int],
                 r2: Optional[int]) -> np.ndarray:
        """
        Check all inputs before any stage runs.

        Returns:
            The grid as a validated int array
        """
        require_integer('stage', stage)
        if stage not in PipelineConfig.STAGES.values():
            raise ParameterOutOfRange('stage', stage, 0, max(PipelineConfig.STAGES.values()))

        grid = as_grid(grid)

        if stage >= PipelineConfig.STAGES['EDGE_DETECTION']:
            low, high = self.edge_cfg['EPSILON_MIN'], self.edge_cfg['EPSILON_MAX']
            if epsilon is None:
                raise ParameterOutOfRange('epsilon', None)
            require_integer('epsilon', epsilon)
            if not low <= epsilon <= high:
                raise ParameterOutOfRange('epsilon', epsilon, low, high)

        if stage == PipelineConfig.STAGES['SPOT_DETECTION']:
            if r1 is None or r2 is None:
                raise ParameterOutOfRange('radii', (r1, r2))
            self.spot_matcher.validate_radii(r1, r2)

        return grid

    def process_image(self,
                      grid,
                      stage: int,
                      epsilon: Optional[int] = None,
                      r1: Optional[int] = None,
                      r2: Optional[int] = None,
                      keep_stages: bool = False) -> PipelineResult:
        """
        Run stages 0..stage on a pixel grid.

        Args:
            grid: RGB (H, W, 3) or greyscale (H, W) grid
            stage: Last stage to apply (0-3)
            epsilon: Edge threshold, required for stage >= 2
            r1: Smallest spot radius, required for stage 3
            r2: Largest spot radius, required for stage 3
            keep_stages: Keep every intermediate grid in the result

        Returns:
            PipelineResult
        """
        current = self.validate(grid, stage, epsilon, r1, r2)
        logger.info("Running stages 0-%d on %dx%d grid", stage, current.shape[1], current.shape[0])
        stages = {}
        spot_count = None

        # Step 0: Greyscale
        current = self.greyscale.convert(current)
        stages['greyscale'] = current

        # Step 1: Noise Reduction
        if stage >= PipelineConfig.STAGES['NOISE_REDUCTION']:
            current = self.noise_filter.reduce(current)
            stages['noise_reduced'] = current

        # Step 2: Edge Detection
        if stage >= PipelineConfig.STAGES['EDGE_DETECTION']:
            current = self.edge_detector.detect(current, epsilon)
            stages['edges'] = current

        # Step 3: Spot Detection
        if stage >= PipelineConfig.STAGES['SPOT_DETECTION']:
            detection = self.spot_matcher.detect(current, r1, r2)
            current = detection.spots
            spot_count = detection.count
            stages['spots'] = current

        return PipelineResult(grid=current, stage=stage, spot_count=spot_count,
                              stages=stages if keep_stages else {})


def run_pipeline(grid,
                 stage: int,
                 epsilon: Optional[int] = None,
                 r1: Optional[int] = None,
                 r2: Optional[int] = None) -> Tuple[np.ndarray, Optional[int]]:
    """Run the pipeline and return (result grid, spot count or None)."""
    result = SpotCountingPipeline().process_image(grid, stage, epsilon, r1, r2)
    return result.grid, result.spot_count


def check_arguments(mode: str, image_path: str, params: List[str]) -> Tuple[int, int, int, int]:
    """
    Validate command line values in the order the runner reports them.

    Returns:
        (mode, epsilon, r1, r2); unused values are 0

    Raises:
        ValueError: with the message to report
    """
    expected = {str(m): n for m, n in MODE_ARG_COUNTS.items()}
    if mode in expected and len(params) != expected[mode]:
        raise ValueError("invalid number of arguments")

    if not all(INTEGER_RE.match(value) for value in [mode] + params):
        raise ValueError("invalid argument type")

    if mode not in expected:
        raise ValueError("invalid mode")

    values = [int(v) for v in params]
    edge_cfg = PipelineConfig.EDGE_DETECTION
    if values and not edge_cfg['EPSILON_MIN'] <= values[0] <= edge_cfg['EPSILON_MAX']:
        raise ValueError("invalid epsilon")

    path = Path(image_path)
    if not path.is_file() or not cv2.haveImageReader(str(path)):
        raise ValueError("invalid or missing file")

    values += [0] * (3 - len(values))
    return int(mode), values[0], values[1], values[2]


def output_path(image_path: Path, output_dir: Path, stage: int) -> Path:
    """Result file name: the input name up to its first dot plus a stage suffix."""
    out_cfg = PipelineConfig.OUTPUT
    stem = image_path.name.split('.')[0]
    return output_dir / f"{stem}{out_cfg['SUFFIXES'][stage]}{out_cfg['EXTENSION']}"


def save_grid(grid: np.ndarray, path: Path):
    """Encode a grid to disk."""
    if not cv2.imwrite(str(path), image_from_grid(grid)):
        raise IOError(f"Could not write image: {path}")
    print(f"  Saved: {path}")


def stage_images(original: np.ndarray, result: PipelineResult) -> Dict[str, np.ndarray]:
    """BGR images of the original and every produced stage, keyed by stage name."""
    images = {'original': image_from_grid(original)}
    for name in STAGE_NAMES:
        if name in result.stages:
            images[name] = image_from_grid(result.stages[name])
    return images


def build_stage_panel(images: Dict[str, np.ndarray], result: PipelineResult) -> np.ndarray:
    """Labelled grid of all stages, with matched spots painted on the original."""
    labels = PipelineConfig.STAGE_LABELS
    panels = [images[name] for name in images]
    names = [labels[name] for name in images]

    if result.spot_count is not None:
        panels.append(overlay_spots(images['original'], result.grid))
        names.append(f"Spots: {result.spot_count}")

    return create_grid_visualization(panels, names)


def show_stages(images: Dict[str, np.ndarray]):
    """Interactive viewer: number keys switch stages, q or Esc quits."""
    viewer_cfg = PipelineConfig.VIEWER
    labels = PipelineConfig.STAGE_LABELS
    window = viewer_cfg['WINDOW_NAME']
    current = list(images)[-1]

    while True:
        cv2.imshow(window, add_label_to_image(images[current], labels[current]))
        key = chr(cv2.waitKey(0) & 0xFF)
        if key in viewer_cfg['QUIT_KEYS']:
            break
        name = viewer_cfg['KEYS'].get(key)
        if name in images:
            current = name

    cv2.destroyAllWindows()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Coat Spot Counting Pipeline')
    parser.add_argument('mode', type=str, help='Pipeline stage to run up to (0-3)')
    parser.add_argument('image', type=str, help='Input image file')
    parser.add_argument('params', nargs='*', help='epsilon for modes 2-3; r1 r2 for mode 3')
    parser.add_argument('--output', '-o', type=str,
                        help=f"Output directory (default: {PipelineConfig.OUTPUT['DEFAULT_DIR']})")
    parser.add_argument('--all', '-a', action='store_true', help='Save every stage up to mode')
    parser.add_argument('--grid', '-g', action='store_true', help='Save a labelled panel of all stages')
    parser.add_argument('--show', '-s', action='store_true', help='Open the interactive stage viewer')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        mode, epsilon, r1, r2 = check_arguments(args.mode, args.image, args.params)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    image_path = Path(args.image)
    image = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
    if image is None:
        print("ERROR: invalid or missing file", file=sys.stderr)
        return 1

    output_dir = Path(args.output or PipelineConfig.OUTPUT['DEFAULT_DIR'])
    output_dir.mkdir(exist_ok=True, parents=True)

    original = grid_from_image(image)
    pipeline = SpotCountingPipeline()
    keep = args.all or args.grid or args.show

    try:
        result = pipeline.process_image(original, mode, epsilon, r1, r2, keep_stages=keep)
    except SpotPipelineError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if result.spot_count is not None:
        print(result.spot_count)

    if args.all:
        for stage, name in enumerate(STAGE_NAMES[:mode + 1]):
            save_grid(result.stages[name], output_path(image_path, output_dir, stage))
    else:
        save_grid(result.grid, output_path(image_path, output_dir, mode))

    if args.grid or args.show:
        images = stage_images(original, result)
        if args.grid:
            panel_path = output_dir / f"{image_path.name.split('.')[0]}_stages.jpg"
            cv2.imwrite(str(panel_path), build_stage_panel(images, result))
            print(f"  Saved: {panel_path}")
        if args.show:
            show_stages(images)

    return 0


if __name__ == "__main__":
    sys.exit(main())
