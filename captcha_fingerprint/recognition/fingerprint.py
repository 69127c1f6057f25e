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

"""Glyph fingerprints used as dictionary keys."""

from __future__ import annotations

import zlib

import numpy as np

from ..errors import EncodingError
from ..utils import BLACK

_INK = ord("1")
_PAPER = ord("0")


def glyph_bits(glyph: np.ndarray) -> bytes:
    """Serialise ``glyph`` row by row as ASCII ``1`` (black) / ``0`` (other)."""

    if glyph.ndim != 2:
        raise ValueError("Expected a single-channel glyph image")
    return np.where(glyph == BLACK, _INK, _PAPER).astype(np.uint8).tobytes(order="C")


def extract_fingerprint(glyph: np.ndarray) -> str:
    """Return the lowercase hex of the zlib-compressed glyph bit string.

    Any pixel-level difference, including a one pixel shift, changes the key.
    """

    bits = glyph_bits(glyph)
    try:
        compressor = zlib.compressobj(zlib.Z_BEST_COMPRESSION)
        payload = compressor.compress(bits) + compressor.flush()
    except (zlib.error, MemoryError) as exc:
        raise EncodingError(f"failed to compress glyph bits: {exc}") from exc
    return payload.hex()
