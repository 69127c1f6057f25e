# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Column-scan glyph segmentation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from ..config import SegmentationConfig
from ..errors import SegmentationGeometryError
from ..preprocess import crop_to_ink
from ..utils import BLACK, BoundingBox, blank_glyph, column_span, crop

logger = logging.getLogger(__name__)


def _ink_runs(has_ink: np.ndarray) -> List[Tuple[int, int]]:
    """Return inclusive ``(start, end)`` column ranges of consecutive ink."""

    runs: List[Tuple[int, int]] = []
    start: Optional[int] = None
    for idx, value in enumerate(has_ink):
        if value and start is None:
            start = idx
        elif not value and start is not None:
            runs.append((start, idx - 1))
            start = None
    if start is not None:
        runs.append((start, len(has_ink) - 1))
    return runs


def find_glyph_boxes(mask: np.ndarray, max_glyph_width: int) -> List[BoundingBox]:
    """Locate candidate glyphs in a binary ``mask``.

    Every maximal run of columns holding at least one black pixel becomes one
    box; runs wider than ``max_glyph_width`` are split at their midpoint, which
    separates two glyphs touching without a gap. Boxes always span the full
    mask height and are returned left to right.
    """

    height = mask.shape[0]
    has_ink = np.any(mask == BLACK, axis=0)
    boxes: List[BoundingBox] = []
    for start, end in _ink_runs(has_ink):
        if end - start + 1 <= max_glyph_width:
            boxes.append(column_span(start, end, height))
            continue
        mid = (start + end) // 2
        boxes.append(column_span(start, mid, height))
        boxes.append(column_span(mid + 1, end, height))
    return boxes


def merge_horizontally(left: Optional[np.ndarray], right: Optional[np.ndarray]) -> np.ndarray:
    """Place ``right`` immediately after ``left``; both must share a height."""

    if left is None or right is None:
        raise SegmentationGeometryError("input images cannot be None")
    if left.shape[0] != right.shape[0]:
        raise SegmentationGeometryError(
            f"input images must have equal heights, got {left.shape[0]} and {right.shape[0]}"
        )
    return np.hstack((left, right))


@dataclass
class GlyphSegmentation:
    glyphs: List[np.ndarray]
    boxes: List[BoundingBox]
    valid: bool
    wrapped: bool = False


class GlyphSegmenter:
    def __init__(self, config: SegmentationConfig) -> None:
        self.config = config

    def find_boxes(self, mask: np.ndarray) -> List[BoundingBox]:
        return find_glyph_boxes(mask, self.config.max_glyph_width)

    def segment(self, mask: np.ndarray) -> GlyphSegmentation:
        """Cut ``mask`` into exactly ``glyph_count`` glyph images.

        Unusable box counts (or a suspiciously narrow first glyph) yield blank
        placeholders instead of raising. One surplus box means the first glyph
        wrapped around the image edge; its two halves are joined back together.
        The joined glyph takes the first slot unless ``wrap_merge_slot`` is
        ``"last"``, which dictionaries labelled in reading order of the source
        renderer require.
        """

        cfg = self.config
        boxes = self.find_boxes(mask)
        count = len(boxes)
        logger.debug("Found %d glyph boxes in %dx%d mask", count, mask.shape[1], mask.shape[0])

        if count not in cfg.accepted_box_counts:
            return self._placeholders(boxes, f"unexpected box count {count}")
        if count == cfg.glyph_count and boxes[0].width < cfg.min_first_glyph_width:
            return self._placeholders(boxes, f"first glyph too narrow ({boxes[0].width}px)")

        glyphs = [crop(mask, box) for box in boxes]
        wrapped = False
        if count == cfg.glyph_count + 1:
            glyphs = self._join_wrapped(glyphs)
            wrapped = True

        if cfg.crop_to_ink:
            glyphs = [crop_to_ink(glyph) for glyph in glyphs]
        return GlyphSegmentation(glyphs=glyphs, boxes=boxes, valid=True, wrapped=wrapped)

    def _join_wrapped(self, glyphs: List[np.ndarray]) -> List[np.ndarray]:
        # The trailing fragment holds the left part of the wrapped glyph.
        merged = merge_horizontally(glyphs[-1], glyphs[0])
        middle = glyphs[1:-1]
        logger.debug("Merged wrap-around glyph (%d px wide) into %s slot", merged.shape[1], self.config.wrap_merge_slot)
        if self.config.wrap_merge_slot == "last":
            return middle + [merged]
        return [merged] + middle

    def _placeholders(self, boxes: List[BoundingBox], reason: str) -> GlyphSegmentation:
        cfg = self.config
        logger.warning("Segmentation rejected: %s; substituting blank glyphs", reason)
        blank = blank_glyph(cfg.blank_glyph_width, cfg.blank_glyph_height)
        glyphs = [blank.copy() for _ in range(cfg.glyph_count)]
        return GlyphSegmentation(glyphs=glyphs, boxes=boxes, valid=False)
