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

"""Solve one captcha image or every image in a directory."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from captcha_fingerprint import CaptchaSolver, DecodeError, load_config_overrides_from_file, load_solver_config
from captcha_fingerprint.io_utils import collect_images, ensure_dir, save_text


def run_solve(
    input_path: Union[str, Path],
    config: Optional[Mapping[str, object]] = None,
    write_output: bool = False,
) -> Dict[str, Optional[str]]:
    """
    Solve captcha images with the configured fingerprint dictionary.

    Args:
        input_path: Image file or directory of images
        config: Optional configuration dictionary to override defaults
        write_output: Also write ``<stem>.txt`` files under ``output_root/solve``

    Returns:
        Dictionary mapping image names to the six-character guess, or None when
        the file could not be decoded

    Example:
        >>> results = run_solve("captchas/AABTRE.jpg", {"dictionary": "training_data.json"})
        >>> print(results["AABTRE.jpg"])
        'AABTRE'
    """
    overrides = dict(config or {})
    solver_cfg = load_solver_config(overrides, base_path=Path.cwd())
    solver = CaptchaSolver(solver_cfg)
    output_dir = ensure_dir(solver_cfg.output_dir("solve")) if write_output else None

    results: Dict[str, Optional[str]] = {}
    for image_path in collect_images(Path(input_path)):
        try:
            text = solver.solve_file(image_path)
        except DecodeError as exc:
            print(f"Skipped {image_path.name}: {exc}")
            results[image_path.name] = None
            continue
        results[image_path.name] = text
        if output_dir is not None:
            save_text(output_dir / f"{image_path.stem}.txt", text + "\n")
    return results


if __name__ == "__main__":
    import argparse
    import logging

    parser = argparse.ArgumentParser(description="Solve captcha images via the fingerprint dictionary")
    parser.add_argument("input", type=str, help="Directory or image path")
    parser.add_argument("--config", type=str, default=None, help="Optional config overrides file")
    parser.add_argument("--dictionary", type=str, default=None, help="Fingerprint dictionary JSON file")
    parser.add_argument("--write", action="store_true", help="Write one text file per image under the output root")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    overrides: Dict[str, object] = {}
    if args.config:
        try:
            overrides = load_config_overrides_from_file(args.config)
        except FileNotFoundError:
            print(f"Config overrides not found: {args.config}")
        except Exception as exc:
            print(f"Failed to parse overrides {args.config}: {exc}")
    if args.dictionary:
        overrides["dictionary_path"] = args.dictionary

    summary = run_solve(args.input, overrides, write_output=args.write)
    for name, text in summary.items():
        if text is None:
            print(f"{name}: undecodable")
        else:
            print(f"{name}: \"{text}\"")
