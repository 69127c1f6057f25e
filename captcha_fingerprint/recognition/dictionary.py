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

"""Read-only fingerprint to character lookup table.

The table is a JSON object mapping lowercase hex fingerprints to one-character
labels. It is loaded once, explicitly, and shared read-only between solver
calls; replacing it means building a new instance, never editing one.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Set, Union

from ..config import ResolverConfig

logger = logging.getLogger(__name__)

# One handle per resolved dictionary file, shared for the process lifetime.
_DICTIONARY_CACHE: Dict[Path, "FingerprintDictionary"] = {}
_DICTIONARY_CACHE_LOCK = threading.Lock()

_HEX_KEY = re.compile(r"^(?:[0-9a-f]{2})+$")


def _clean_entries(raw: Mapping[object, object], origin: str) -> Dict[str, str]:
    entries: Dict[str, str] = {}
    skipped = 0
    for key, value in raw.items():
        if not isinstance(key, str) or not _HEX_KEY.match(key):
            skipped += 1
            continue
        if not isinstance(value, str) or len(value) != 1:
            skipped += 1
            continue
        entries[key] = value
    if skipped:
        logger.warning("Skipped %d malformed dictionary entries from %s", skipped, origin)
    return entries


class FingerprintDictionary:
    """Immutable mapping from fingerprint to printed character."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Mapping[str, str]] = None) -> None:
        self._entries: Mapping[str, str] = MappingProxyType(dict(entries or {}))

    @classmethod
    def empty(cls) -> "FingerprintDictionary":
        return cls()

    @classmethod
    def from_mapping(cls, raw: Mapping[object, object], origin: str = "<mapping>") -> "FingerprintDictionary":
        return cls(_clean_entries(raw, origin))

    @classmethod
    def from_json_text(cls, text: Union[str, bytes], origin: str = "<text>") -> "FingerprintDictionary":
        try:
            raw = json.loads(text)
        except (ValueError, UnicodeDecodeError) as exc:
            logger.warning("Ignoring malformed dictionary %s: %s", origin, exc)
            return cls.empty()
        if not isinstance(raw, dict):
            logger.warning("Ignoring dictionary %s: expected a JSON object, got %s", origin, type(raw).__name__)
            return cls.empty()
        return cls.from_mapping(raw, origin)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "FingerprintDictionary":
        file_path = Path(path)
        try:
            data = file_path.read_bytes()
        except OSError as exc:
            logger.warning("Dictionary %s unavailable (%s); every glyph will resolve to the sentinel", file_path, exc)
            return cls.empty()
        dictionary = cls.from_json_text(data, origin=str(file_path))
        logger.info("Loaded %d fingerprints from %s", len(dictionary), file_path)
        return dictionary

    def lookup(self, fingerprint: str) -> Optional[str]:
        return self._entries.get(fingerprint)

    def characters(self) -> Set[str]:
        """Alphabet of labels present in the table."""

        return set(self._entries.values())

    def as_mapping(self) -> Mapping[str, str]:
        return self._entries

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"FingerprintDictionary({len(self)} entries)"


def load_dictionary(config: ResolverConfig) -> FingerprintDictionary:
    """Load the dictionary configured in ``config``; never raises on bad data."""

    return FingerprintDictionary.from_json_file(config.dictionary_path)


def shared_dictionary(path: Union[str, Path]) -> FingerprintDictionary:
    """Return the process-wide dictionary for ``path``, loading it on first use.

    Later edits to the file are not picked up; load a fresh
    :class:`FingerprintDictionary` to swap tables.
    """

    key = Path(path).resolve()
    with _DICTIONARY_CACHE_LOCK:
        dictionary = _DICTIONARY_CACHE.get(key)
        if dictionary is None:
            dictionary = FingerprintDictionary.from_json_file(key)
            _DICTIONARY_CACHE[key] = dictionary
    return dictionary
