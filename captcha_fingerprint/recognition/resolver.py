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

"""Exact-match fingerprint resolution."""

from __future__ import annotations

from typing import Iterable, List

from ..config import DEFAULT_SENTINEL
from .dictionary import FingerprintDictionary


class FingerprintResolver:
    def __init__(self, dictionary: FingerprintDictionary, sentinel: str = DEFAULT_SENTINEL) -> None:
        if len(sentinel) != 1:
            raise ValueError(f"sentinel must be a single character, got {sentinel!r}")
        self.dictionary = dictionary
        self.sentinel = sentinel

    def resolve(self, fingerprint: str) -> str:
        """Return the stored character, or the sentinel for unknown glyphs."""

        character = self.dictionary.lookup(fingerprint)
        return self.sentinel if character is None else character

    def resolve_all(self, fingerprints: Iterable[str]) -> List[str]:
        return [self.resolve(fingerprint) for fingerprint in fingerprints]
