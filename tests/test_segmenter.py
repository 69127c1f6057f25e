from dataclasses import fields

import numpy as np
import pytest

from captcha_fingerprint import SegmentationGeometryError
from captcha_fingerprint.config import SegmentationConfig
from captcha_fingerprint.segmentation import GlyphSegmentation, GlyphSegmenter, find_glyph_boxes, merge_horizontally
from captcha_fingerprint.utils import BoundingBox


def _strip(*runs, width=60, height=10):
    mask = np.full((height, width), 255, dtype=np.uint8)
    for start, end in runs:
        mask[height // 2, start:end + 1] = 0
    return mask


def test_boxes_follow_ink_runs_left_to_right():
    boxes = find_glyph_boxes(_strip((2, 5), (9, 9), (20, 30)), max_glyph_width=33)
    assert [box.as_tuple() for box in boxes] == [(2, 0, 6, 10), (9, 0, 10, 10), (20, 0, 31, 10)]


def test_run_of_exactly_max_width_is_kept_whole():
    boxes = find_glyph_boxes(_strip((0, 32)), max_glyph_width=33)
    assert len(boxes) == 1
    assert boxes[0].width == 33


def test_wide_run_is_split_at_midpoint():
    boxes = find_glyph_boxes(_strip((10, 49)), max_glyph_width=33)
    assert [(box.x1, box.x2) for box in boxes] == [(10, 30), (30, 50)]


def test_run_touching_right_edge_is_closed():
    boxes = find_glyph_boxes(_strip((50, 59)), max_glyph_width=33)
    assert [(box.x1, box.x2) for box in boxes] == [(50, 60)]


def test_blank_mask_has_no_boxes():
    assert find_glyph_boxes(np.full((5, 5), 255, dtype=np.uint8), max_glyph_width=33) == []


def test_merge_horizontally_concatenates():
    left = np.zeros((4, 3), dtype=np.uint8)
    right = np.full((4, 5), 255, dtype=np.uint8)
    merged = merge_horizontally(left, right)
    assert merged.shape == (4, 8)
    assert (merged[:, :3] == 0).all()
    assert (merged[:, 3:] == 255).all()


def test_merge_horizontally_rejects_height_mismatch():
    with pytest.raises(SegmentationGeometryError):
        merge_horizontally(np.zeros((4, 3), dtype=np.uint8), np.zeros((5, 3), dtype=np.uint8))


def test_merge_horizontally_rejects_missing_input():
    with pytest.raises(SegmentationGeometryError):
        merge_horizontally(None, np.zeros((4, 3), dtype=np.uint8))


def test_six_boxes_yield_six_crops(six_glyph_mask):
    result = GlyphSegmenter(SegmentationConfig()).segment(six_glyph_mask)
    assert result.valid
    assert not result.wrapped
    assert len(result.glyphs) == 6
    assert [glyph.shape[1] for glyph in result.glyphs] == [20, 18, 22, 20, 19, 21]
    assert all(glyph.shape[0] == six_glyph_mask.shape[0] for glyph in result.glyphs)


@pytest.mark.parametrize("widths", [[20, 20, 20], [20] * 5, [20] * 8])
def test_wrong_box_count_yields_blank_placeholders(make_mask, widths):
    result = GlyphSegmenter(SegmentationConfig()).segment(make_mask(widths))
    assert not result.valid
    assert len(result.glyphs) == 6
    for glyph in result.glyphs:
        assert glyph.shape == (70, 200)
        assert (glyph == 255).all()


def test_narrow_first_glyph_invalidates_six_boxes(make_mask):
    result = GlyphSegmenter(SegmentationConfig()).segment(make_mask([13, 20, 20, 20, 20, 20]))
    assert not result.valid
    assert len(result.glyphs) == 6


def test_seven_boxes_merge_last_then_first_into_first_slot(wrapped_mask):
    segmenter = GlyphSegmenter(SegmentationConfig())
    boxes = segmenter.find_boxes(wrapped_mask)
    assert len(boxes) == 7

    result = segmenter.segment(wrapped_mask)
    assert result.valid
    assert result.wrapped
    assert len(result.glyphs) == 6

    first = wrapped_mask[:, boxes[0].x1:boxes[0].x2]
    last = wrapped_mask[:, boxes[6].x1:boxes[6].x2]
    assert np.array_equal(result.glyphs[0], np.hstack((last, first)))
    assert np.array_equal(result.glyphs[1], wrapped_mask[:, boxes[1].x1:boxes[1].x2])
    assert np.array_equal(result.glyphs[5], wrapped_mask[:, boxes[5].x1:boxes[5].x2])


def test_wrap_merge_slot_last_appends_merged_glyph(wrapped_mask):
    result = GlyphSegmenter(SegmentationConfig(wrap_merge_slot="last")).segment(wrapped_mask)
    assert result.glyphs[-1].shape[1] == 10 + 8
    assert result.glyphs[0].shape[1] == 20


def test_crop_to_ink_is_off_by_default(six_glyph_mask):
    default = GlyphSegmenter(SegmentationConfig()).segment(six_glyph_mask)
    cropped = GlyphSegmenter(SegmentationConfig(crop_to_ink=True)).segment(six_glyph_mask)
    assert default.glyphs[0].shape[0] == six_glyph_mask.shape[0]
    assert cropped.glyphs[0].shape[0] == 20


def test_segmentation_carries_only_glyphs_boxes_and_flags(six_glyph_mask):
    assert [field.name for field in fields(GlyphSegmentation)] == ["glyphs", "boxes", "valid", "wrapped"]
    box = GlyphSegmenter(SegmentationConfig()).find_boxes(six_glyph_mask)[0]
    assert box.as_tuple() == (box.x1, box.y1, box.x2, box.y2)
    assert (box.width, box.height) == (20, six_glyph_mask.shape[0])
    assert not hasattr(BoundingBox, "area")
