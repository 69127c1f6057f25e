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

"""Cut labelled captchas into per-letter glyph images for dictionary building."""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from captcha_fingerprint import (
    CaptchaSolver,
    DecodeError,
    FingerprintDictionary,
    load_config_overrides_from_file,
    load_solver_config,
    normalise_captcha_label,
)
from captcha_fingerprint.io_utils import collect_images, ensure_dir, save_image


def run_split_glyphs(
    captcha_dir: Union[str, Path],
    output_dir: Union[str, Path],
    config: Optional[Mapping[str, object]] = None,
) -> Dict[str, int]:
    """
    Split labelled captchas into one PNG per glyph, grouped by letter.

    Captcha files must be named after their solution (``AABTRE.jpg``). Glyphs
    are written to ``output_dir/<letter>/<uuid>.png``. Files with an invalid
    label or a rejected segmentation are skipped.

    Args:
        captcha_dir: Directory of labelled captcha images
        output_dir: Root directory for the per-letter folders
        config: Optional configuration dictionary to override defaults

    Returns:
        Dictionary mapping each captcha file name to the number of glyphs saved
    """
    overrides = dict(config or {})
    solver_cfg = load_solver_config(overrides, base_path=Path.cwd())
    # Only segmentation is needed, so skip loading the dictionary.
    solver = CaptchaSolver(solver_cfg, dictionary=FingerprintDictionary.empty())
    root = ensure_dir(Path(output_dir))

    saved: Dict[str, int] = {}
    for image_path in collect_images(Path(captcha_dir)):
        label = normalise_captcha_label(image_path.stem, solver_cfg.segmentation.glyph_count)
        if label is None:
            print(f"Invalid captcha file name: {image_path.name}")
            saved[image_path.name] = 0
            continue
        try:
            segmentation = solver.segment(image_path.read_bytes())
        except DecodeError as exc:
            print(f"Failed to split {image_path.name}: {exc}")
            saved[image_path.name] = 0
            continue
        if not segmentation.valid:
            saved[image_path.name] = 0
            continue
        for letter, glyph in zip(label, segmentation.glyphs):
            save_image(root / letter / f"{uuid.uuid4()}.png", glyph)
        saved[image_path.name] = len(segmentation.glyphs)
    return saved


if __name__ == "__main__":
    import argparse
    import logging

    parser = argparse.ArgumentParser(description="Split labelled captchas into per-letter glyph images")
    parser.add_argument("input", type=str, help="Directory of captchas named after their solution")
    parser.add_argument("output", type=str, help="Directory receiving <letter>/ sub-folders")
    parser.add_argument("--config", type=str, default=None, help="Optional config overrides file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    overrides = None
    if args.config:
        try:
            overrides = load_config_overrides_from_file(args.config)
        except FileNotFoundError:
            print(f"Config overrides not found: {args.config}")
        except Exception as exc:
            print(f"Failed to parse overrides {args.config}: {exc}")

    summary = run_split_glyphs(args.input, args.output, overrides)
    total = sum(summary.values())
    print(f"Saved {total} glyphs from {len(summary)} captchas")
