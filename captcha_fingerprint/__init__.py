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

"""Dictionary-based captcha solver built on exact glyph fingerprints."""

from .config import (
    NormalizationConfig,
    ResolverConfig,
    SegmentationConfig,
    SolverConfig,
    load_config_overrides_from_file,
    load_solver_config,
)
from .domain import CAPTCHA_ALPHABET, CAPTCHA_LENGTH, is_glyph_label, normalise_captcha_label
from .errors import CaptchaError, DecodeError, EncodingError, SegmentationGeometryError
from .pipeline import CaptchaSolver, SolveResult, solve
from .recognition import FingerprintDictionary, FingerprintResolver, extract_fingerprint, load_dictionary

__all__ = [
    "CAPTCHA_ALPHABET",
    "CAPTCHA_LENGTH",
    "CaptchaError",
    "CaptchaSolver",
    "DecodeError",
    "EncodingError",
    "FingerprintDictionary",
    "FingerprintResolver",
    "NormalizationConfig",
    "ResolverConfig",
    "SegmentationConfig",
    "SegmentationGeometryError",
    "SolveResult",
    "SolverConfig",
    "extract_fingerprint",
    "is_glyph_label",
    "load_config_overrides_from_file",
    "load_dictionary",
    "load_solver_config",
    "normalise_captcha_label",
    "solve",
]
