"""
Tests for ring masks and multi-scale spot matching.
"""

import numpy as np
import pytest

from config import PipelineConfig
from spots import CalibrationRangeExceeded, MaskFactory, ParameterOutOfRange, SpotMatcher
from spots.mask_factory import format_mask


def loose_config(max_diff=10 ** 9):
    """Calibration that accepts every window containing an edge pixel."""
    cfg = dict(PipelineConfig.SPOT_DETECTION)
    cfg['MAX_DIFF'] = (max_diff,) * len(cfg['MAX_DIFF'])
    return cfg


def edge_grid_with_ring(size, radius, x, y):
    """Zero grid with the scale-0 ring mask pasted at top-left (x, y)."""
    edges = np.zeros((size, size), dtype=np.int32)
    mask = MaskFactory().ring(radius, 0)
    side = mask.shape[0]
    edges[y:y + side, x:x + side] = mask
    return edges


# --- Masks ---

@pytest.mark.parametrize("scale", range(8))
@pytest.mark.parametrize("radius", [0, 1, 4, 7, 11])
def test_masks_are_rotationally_symmetric(scale, radius):
    factory = MaskFactory()
    for mask in (factory.ring(radius, scale), factory.centre(radius, scale)):
        assert mask.shape == (2 * radius + 1, 2 * radius + 1)
        np.testing.assert_array_equal(mask, mask[::-1, ::-1])
        assert set(np.unique(mask)) <= {0, 255}


def test_ring_membership_uses_strict_band():
    mask = MaskFactory().create(4, 4, 6, 0)
    for i in range(9):
        for j in range(9):
            dist_sq = (i - 4) ** 2 + (j - 4) ** 2
            expected = 255 if 10 < dist_sq < 22 else 0
            assert mask[i, j] == expected
    assert np.count_nonzero(mask) == 32


def test_delta_shrinks_the_ring():
    mask = MaskFactory().create(5, 5, 9, 1)
    assert mask[5, 1] == 255
    assert mask[5, 0] == 0
    assert mask[5, 5] == 0


def test_centre_mask_uses_half_radius():
    factory = MaskFactory()
    cal = PipelineConfig.calibration(3)
    np.testing.assert_array_equal(factory.centre(7, 3), factory.create(7, 3, cal.ring_width, cal.delta))


def test_calibration_table_is_verbatim():
    rows = [PipelineConfig.calibration(s) for s in range(8)]
    assert [r.ring_width for r in rows] == [6, 9, 12, 15, 18, 21, 24, 27]
    assert [r.delta for r in rows] == [0, 1, 1, 1, 1, 1, 2, 2]
    assert [r.max_diff for r in rows] == [4800, 6625, 11000, 15000, 19000, 23000, 28000, 35000]


def test_format_mask():
    text = format_mask(np.array([[0, 255], [255, 0]]))
    assert text == "  0 255\n255   0"


# --- Matching ---

def test_single_ring_is_counted_once():
    edges = edge_grid_with_ring(30, 4, 10, 10)

    result = SpotMatcher().detect(edges, 4, 4)

    assert result.count == 1
    assert result.scale_counts == [1]
    np.testing.assert_array_equal(result.spots, edges)


def test_blank_grid_has_no_spots():
    result = SpotMatcher().detect(np.zeros((20, 20), dtype=np.int32), 2, 5)
    assert result.count == 0
    assert result.scale_counts == [0, 0, 0, 0]
    assert not result.spots.any()


def test_overlapping_matches_are_counted_once():
    edges = np.zeros((10, 10), dtype=np.int32)
    edges[5, 5] = 255
    matcher = SpotMatcher(loose_config())

    deduplicated = matcher.detect(edges, 1, 1)
    every_match = matcher.detect(edges, 1, 1, deduplicate=False)

    assert deduplicated.count == 1
    assert every_match.count == 9


def test_separate_matches_are_counted_separately():
    edges = np.zeros((20, 20), dtype=np.int32)
    edges[4, 4] = 255
    edges[14, 14] = 255
    result = SpotMatcher(loose_config()).detect(edges, 1, 1)
    assert result.count == 2


def test_counted_footprints_carry_across_scales():
    edges = np.zeros((12, 12), dtype=np.int32)
    edges[5, 5] = 255
    result = SpotMatcher(loose_config()).detect(edges, 1, 2)
    assert result.scale_counts[0] == 1
    assert result.scale_counts[1] == 0
    assert result.count == 1


def test_window_without_edges_is_never_a_match():
    cfg = loose_config()
    edges = np.zeros((10, 10), dtype=np.int32)
    result = SpotMatcher(cfg).detect(edges, 1, 1, deduplicate=False)
    assert result.count == 0


def test_window_origin_stops_short_of_far_edge():
    # The window must satisfy x < W - mask width, so the last column never fits.
    edges = np.zeros((3, 4), dtype=np.int32)
    edges[1, 3] = 255
    matcher = SpotMatcher(loose_config())
    assert matcher.detect(edges, 0, 0).count == 0
    edges[1, 2] = 255
    assert matcher.detect(edges, 0, 0).count == 1


def test_total_is_sum_of_scale_counts_and_dedup_never_adds():
    rng = np.random.default_rng(21)
    edges = np.where(rng.random((40, 40)) < 0.15, 255, 0).astype(np.int32)
    matcher = SpotMatcher(loose_config(60000))

    deduplicated = matcher.detect(edges, 1, 4)
    every_match = matcher.detect(edges, 1, 4, deduplicate=False)

    assert deduplicated.count == sum(deduplicated.scale_counts)
    assert len(deduplicated.scale_counts) == 4
    assert every_match.count == sum(every_match.scale_counts)
    assert deduplicated.count <= every_match.count
    np.testing.assert_array_equal(deduplicated.spots, every_match.spots)


def test_oversized_mask_contributes_nothing():
    edges = np.full((5, 5), 255, dtype=np.int32)
    result = SpotMatcher(loose_config()).detect(edges, 3, 3)
    assert result.count == 0
    assert result.scale_counts == [0]


def test_input_grid_is_not_modified():
    edges = edge_grid_with_ring(30, 4, 10, 10)
    before = edges.copy()
    SpotMatcher().detect(edges, 4, 5)
    np.testing.assert_array_equal(edges, before)


def test_span_beyond_calibration_is_rejected_before_scanning(monkeypatch):
    matcher = SpotMatcher()
    calls = []
    monkeypatch.setattr(matcher, 'scan', lambda *args, **kwargs: calls.append(args) or 0)

    with pytest.raises(CalibrationRangeExceeded):
        matcher.detect(np.zeros((30, 30), dtype=np.int32), 2, 10)
    assert calls == []


def test_inverted_and_negative_radii_are_rejected():
    matcher = SpotMatcher()
    with pytest.raises(CalibrationRangeExceeded):
        matcher.detect(np.zeros((10, 10), dtype=np.int32), 5, 4)
    with pytest.raises(ParameterOutOfRange):
        matcher.detect(np.zeros((10, 10), dtype=np.int32), -1, 2)


@pytest.mark.parametrize("r1, r2", [(1.5, 2.5), (1, 3.0), (True, 2), ("1", "2")])
def test_non_integer_radii_are_rejected(r1, r2):
    with pytest.raises(ParameterOutOfRange):
        SpotMatcher().detect(np.zeros((10, 10), dtype=np.int32), r1, r2)


def test_numpy_integer_radii_are_accepted():
    result = SpotMatcher().detect(np.zeros((10, 10), dtype=np.int32), np.int64(1), np.int32(2))
    assert result.scale_counts == [0, 0]


def test_full_calibration_span_is_accepted():
    result = SpotMatcher().detect(np.zeros((10, 10), dtype=np.int32), 0, 7)
    assert len(result.scale_counts) == 8
