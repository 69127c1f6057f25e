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

"""Domain knowledge about the captcha labels."""

from __future__ import annotations

import string
from typing import Optional

CAPTCHA_ALPHABET = frozenset(string.ascii_uppercase)
CAPTCHA_LENGTH = 6


def is_glyph_label(text: str) -> bool:
    """Return ``True`` for a single upper-case captcha letter."""

    return len(text) == 1 and text in CAPTCHA_ALPHABET


def normalise_captcha_label(text: str, length: int = CAPTCHA_LENGTH) -> Optional[str]:
    """Return the canonical label encoded in a file stem such as ``aabtre``.

    Labelled captcha files are named after their solution; anything that is not
    ``length`` alphabet letters once upper-cased is rejected.
    """

    if not text:
        return None
    cleaned = text.strip().upper()
    if len(cleaned) != length:
        return None
    if not all(ch in CAPTCHA_ALPHABET for ch in cleaned):
        return None
    return cleaned
