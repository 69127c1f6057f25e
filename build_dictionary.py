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

"""Build the fingerprint dictionary from per-letter glyph folders."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Union

from captcha_fingerprint import DecodeError, extract_fingerprint, is_glyph_label
from captcha_fingerprint.io_utils import list_subdirectories, load_image, save_text
from captcha_fingerprint.preprocess import to_grayscale

logger = logging.getLogger(__name__)


def build_dictionary(training_dir: Union[str, Path]) -> Dict[str, str]:
    """
    Fingerprint every glyph PNG stored under ``training_dir/<letter>/``.

    Args:
        training_dir: Directory produced by ``split_glyphs.py``

    Returns:
        Mapping of fingerprint to letter. A fingerprint seen under two letters
        keeps the first letter in alphabetical order.
    """
    mapping: Dict[str, str] = {}
    conflicts = 0
    for letter_dir in list_subdirectories(Path(training_dir)):
        letter = letter_dir.name
        if not is_glyph_label(letter):
            continue
        for glyph_path in sorted(letter_dir.glob("*.png")):
            try:
                glyph = to_grayscale(load_image(glyph_path))
            except DecodeError as exc:
                logger.warning("Skipping unreadable glyph %s: %s", glyph_path, exc)
                continue
            fingerprint = extract_fingerprint(glyph)
            existing = mapping.setdefault(fingerprint, letter)
            if existing != letter:
                conflicts += 1
                logger.warning("Glyph %s already labelled %r; keeping the earlier label", glyph_path, existing)
    if conflicts:
        logger.warning("%d conflicting glyph labels ignored", conflicts)
    return mapping


def write_dictionary(mapping: Dict[str, str], path: Union[str, Path]) -> Path:
    """Write ``mapping`` as an indented JSON object with stable key order."""

    output_path = Path(path)
    save_text(output_path, json.dumps(mapping, indent="\t", sort_keys=True) + "\n")
    return output_path


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Build the fingerprint dictionary from labelled glyph folders")
    parser.add_argument("input", type=str, help="Directory with one sub-folder per letter")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("data/training_data.json"),
        help="Destination JSON file",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    entries = build_dictionary(args.input)
    destination = write_dictionary(entries, args.output)
    print(f"Extracted {len(entries)} fingerprints and saved to {destination}")
