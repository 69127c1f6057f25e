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

"""Grayscale conversion and binarisation of decoded captcha images."""

from __future__ import annotations

import cv2 as cv
import numpy as np

from .config import NormalizationConfig
from .errors import DecodeError
from .utils import BLACK, WHITE


def _to_8bit(image: np.ndarray) -> np.ndarray:
    if image.dtype == np.uint8:
        return image
    if image.dtype == np.uint16:
        return (image >> 8).astype(np.uint8)
    raise DecodeError(f"error decoding image: unsupported pixel depth {image.dtype}")


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Return a new single-channel uint8 luma image.

    Colour input is expected in OpenCV channel order (BGR/BGRA). Transparent
    pixels are composited over black, matching a premultiplied decode.
    """

    image = _to_8bit(image)
    if image.ndim == 2:
        return image.copy()
    if image.ndim != 3:
        raise DecodeError(f"error decoding image: expected 2-D or 3-D pixels, got {image.ndim} dimensions")

    channels = image.shape[2]
    if channels == 1:
        return image[:, :, 0].copy()
    if channels == 3:
        return cv.cvtColor(image, cv.COLOR_BGR2GRAY)
    if channels == 4:
        alpha = image[:, :, 3:4].astype(np.float32) / 255.0
        premultiplied = np.rint(image[:, :, :3].astype(np.float32) * alpha).astype(np.uint8)
        return cv.cvtColor(premultiplied, cv.COLOR_BGR2GRAY)
    raise DecodeError(f"error decoding image: unsupported channel count {channels}")


def threshold(gray: np.ndarray, level: int) -> np.ndarray:
    """Binarise ``gray``: black where luma <= ``level``, white elsewhere."""

    if gray.ndim != 2:
        raise ValueError("Expected single-channel grayscale input")
    return np.where(gray <= level, BLACK, WHITE).astype(np.uint8)


def crop_to_ink(mask: np.ndarray) -> np.ndarray:
    """Crop ``mask`` to the tightest box around its black pixels.

    A mask without ink is returned as an unchanged copy.
    """

    rows, cols = np.nonzero(mask == BLACK)
    if rows.size == 0:
        return mask.copy()
    return mask[rows.min():rows.max() + 1, cols.min():cols.max() + 1].copy()


def normalise(image: np.ndarray, config: NormalizationConfig) -> np.ndarray:
    return threshold(to_grayscale(image), config.threshold_level)
