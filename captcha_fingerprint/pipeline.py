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

"""High-level pipeline orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from .config import SolverConfig
from .io_utils import ImageSource, decode_image, read_image_bytes
from .preprocess import normalise
from .recognition import (
    FingerprintDictionary,
    FingerprintResolver,
    extract_fingerprint,
    load_dictionary,
    shared_dictionary,
)
from .segmentation import GlyphSegmentation, GlyphSegmenter
from .utils import BoundingBox

logger = logging.getLogger(__name__)


@dataclass
class SolveResult:
    boxes: List[BoundingBox]
    glyphs: List[np.ndarray]
    fingerprints: List[str]
    characters: List[str]
    text: str
    segmentation_valid: bool
    wrapped: bool = False


class CaptchaSolver:
    """Decode, segment, fingerprint and resolve one captcha per call.

    The solver keeps no per-call state; a single instance (and its dictionary)
    may be shared by any number of threads.
    """

    def __init__(
        self,
        config: Optional[SolverConfig] = None,
        dictionary: Optional[FingerprintDictionary] = None,
    ) -> None:
        self.config = config or SolverConfig()
        if dictionary is None:
            dictionary = load_dictionary(self.config.resolver)
        self.dictionary = dictionary
        self.segmenter = GlyphSegmenter(self.config.segmentation)
        self.resolver = FingerprintResolver(dictionary, sentinel=self.config.resolver.sentinel)

    def segment(self, source: ImageSource) -> GlyphSegmentation:
        image = decode_image(read_image_bytes(source))
        mask = normalise(image, self.config.normalization)
        return self.segmenter.segment(mask)

    def find_glyphs(self, source: ImageSource) -> List[np.ndarray]:
        return self.segment(source).glyphs

    def run(self, source: ImageSource) -> SolveResult:
        segmentation = self.segment(source)
        fingerprints = [extract_fingerprint(glyph) for glyph in segmentation.glyphs]
        characters = self.resolver.resolve_all(fingerprints)
        text = "".join(characters)
        logger.debug("Resolved captcha as %r (valid segmentation: %s)", text, segmentation.valid)
        return SolveResult(
            boxes=segmentation.boxes,
            glyphs=segmentation.glyphs,
            fingerprints=fingerprints,
            characters=characters,
            text=text,
            segmentation_valid=segmentation.valid,
            wrapped=segmentation.wrapped,
        )

    def solve(self, source: ImageSource) -> str:
        return self.run(source).text

    def solve_file(self, path: Union[str, Path]) -> str:
        with Path(path).open("rb") as handle:
            return self.solve(handle)


def solve(
    source: ImageSource,
    dictionary: Optional[FingerprintDictionary] = None,
    config: Optional[SolverConfig] = None,
) -> str:
    """One-shot helper.

    Without an explicit ``dictionary`` the configured file is loaded once per
    process and reused by every later call.
    """

    config = config or SolverConfig()
    if dictionary is None:
        dictionary = shared_dictionary(config.resolver.dictionary_path)
    return CaptchaSolver(config, dictionary).solve(source)
