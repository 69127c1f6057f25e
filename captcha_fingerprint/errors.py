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

"""Exception types raised by the solver."""

from __future__ import annotations


class CaptchaError(Exception):
    """Base class for solver failures."""


class DecodeError(CaptchaError, ValueError):
    """Input bytes are not a decodable raster image."""


class SegmentationGeometryError(CaptchaError):
    """Glyph images cannot be combined, e.g. mismatched heights."""


class EncodingError(CaptchaError):
    """The fingerprint compressor failed."""
