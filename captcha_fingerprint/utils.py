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

"""General-purpose utilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

BLACK = 0
WHITE = 255


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box; ``x2``/``y2`` are exclusive."""

    x1: int
    y1: int
    x2: int
    y2: int

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return self.x1, self.y1, self.x2, self.y2

    @property
    def width(self) -> int:
        return max(0, self.x2 - self.x1)

    @property
    def height(self) -> int:
        return max(0, self.y2 - self.y1)


def column_span(start: int, end: int, height: int) -> BoundingBox:
    """Box covering the inclusive column range ``[start, end]`` at full height."""

    return BoundingBox(start, 0, end + 1, height)


def crop(image: np.ndarray, box: BoundingBox) -> np.ndarray:
    """Return a copy of the rectangular crop denoted by ``box``."""

    return image[box.y1:box.y2, box.x1:box.x2].copy()


def blank_glyph(width: int, height: int) -> np.ndarray:
    """All-white glyph used when segmentation cannot be trusted."""

    return np.full((height, width), WHITE, dtype=np.uint8)
