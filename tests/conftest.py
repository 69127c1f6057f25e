"""Synthetic captcha fixtures."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import cv2 as cv
import numpy as np
import pytest

from captcha_fingerprint import FingerprintDictionary, extract_fingerprint
from captcha_fingerprint.config import SegmentationConfig
from captcha_fingerprint.segmentation import GlyphSegmenter

HEIGHT = 40


def draw_mask(widths: Sequence[int], gap: int = 4, margin: int = 5, right_margin: int = 5) -> np.ndarray:
    """Binary mask with one solid glyph per width; glyph ``i`` starts on row ``4 + i``."""

    total = margin + sum(widths) + gap * (len(widths) - 1) + right_margin
    mask = np.full((HEIGHT, total), 255, dtype=np.uint8)
    x = margin
    for idx, width in enumerate(widths):
        top = 4 + idx
        mask[top:top + 20, x:x + width] = 0
        # Notch so that glyphs differ by more than their vertical offset.
        mask[top + 5, x + (idx % width)] = 255
        x += width + gap
    return mask


def encode_png(image: np.ndarray) -> bytes:
    ok, buffer = cv.imencode(".png", image)
    assert ok
    return buffer.tobytes()


def dictionary_for(mask: np.ndarray, label: str, config: Optional[SegmentationConfig] = None) -> FingerprintDictionary:
    segmentation = GlyphSegmenter(config or SegmentationConfig()).segment(mask)
    assert segmentation.valid
    return FingerprintDictionary.from_mapping(
        {extract_fingerprint(glyph): char for glyph, char in zip(segmentation.glyphs, label)}
    )


@pytest.fixture
def six_glyph_mask() -> np.ndarray:
    return draw_mask([20, 18, 22, 20, 19, 21])


@pytest.fixture
def wrapped_mask() -> np.ndarray:
    # Narrow leading fragment, five glyphs, trailing fragment touching the edge.
    return draw_mask([8, 20, 18, 22, 20, 19, 10], right_margin=0)


@pytest.fixture
def png_bytes() -> Callable[[np.ndarray], bytes]:
    return encode_png


@pytest.fixture
def make_dictionary() -> Callable[..., FingerprintDictionary]:
    return dictionary_for


@pytest.fixture
def make_mask() -> Callable[..., np.ndarray]:
    return draw_mask


def as_bgr(mask: np.ndarray) -> np.ndarray:
    return cv.cvtColor(mask, cv.COLOR_GRAY2BGR)


@pytest.fixture
def to_bgr() -> Callable[[np.ndarray], np.ndarray]:
    return as_bgr
