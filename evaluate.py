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

"""Measure solver accuracy on captchas named after their solution."""

from __future__ import annotations

import shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union

from captcha_fingerprint import (
    CaptchaSolver,
    DecodeError,
    load_config_overrides_from_file,
    load_solver_config,
    normalise_captcha_label,
)
from captcha_fingerprint.io_utils import collect_images, ensure_dir


@dataclass
class EvaluationSummary:
    total: int = 0
    successes: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        return self.successes / self.total if self.total else 0.0


def _solve_one(solver: CaptchaSolver, image_path: Path) -> Tuple[Path, Optional[str], Optional[str]]:
    try:
        return image_path, solver.solve_file(image_path), None
    except DecodeError as exc:
        return image_path, None, str(exc)


def run_evaluation(
    captcha_dir: Union[str, Path],
    config: Optional[Mapping[str, object]] = None,
    workers: int = 1,
    failed_dir: Optional[Union[str, Path]] = None,
) -> EvaluationSummary:
    """
    Solve every labelled captcha and compare against its file name.

    Args:
        captcha_dir: Directory of captchas named ``<SOLUTION>.<ext>``
        config: Optional configuration dictionary to override defaults
        workers: Number of threads sharing the one read-only solver
        failed_dir: If given, wrongly solved images are moved here

    Returns:
        EvaluationSummary with counts and the ``(file, guess)`` failures
    """
    overrides = dict(config or {})
    solver_cfg = load_solver_config(overrides, base_path=Path.cwd())
    solver = CaptchaSolver(solver_cfg)
    length = solver_cfg.segmentation.glyph_count

    image_paths = [
        path for path in collect_images(Path(captcha_dir)) if normalise_captcha_label(path.stem, length) is not None
    ]
    with ThreadPoolExecutor(max_workers=max(1, int(workers))) as pool:
        outcomes = list(pool.map(lambda path: _solve_one(solver, path), image_paths))

    summary = EvaluationSummary()
    move_to = ensure_dir(Path(failed_dir)) if failed_dir is not None else None
    for image_path, guess, error in outcomes:
        if error is not None:
            summary.errors.append((image_path.name, error))
            continue
        summary.total += 1
        if guess == normalise_captcha_label(image_path.stem, length):
            summary.successes += 1
            continue
        summary.failures.append((image_path.name, guess or ""))
        if move_to is not None:
            shutil.move(str(image_path), str(move_to / image_path.name))
    return summary


if __name__ == "__main__":
    import argparse
    import logging

    parser = argparse.ArgumentParser(description="Evaluate the solver on labelled captchas")
    parser.add_argument("input", type=str, help="Directory of captchas named after their solution")
    parser.add_argument("--config", type=str, default=None, help="Optional config overrides file")
    parser.add_argument("--dictionary", type=str, default=None, help="Fingerprint dictionary JSON file")
    parser.add_argument("--workers", type=int, default=1, help="Number of concurrent solver threads")
    parser.add_argument("--failed-dir", type=str, default=None, help="Move wrongly solved images here")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    overrides = {}
    if args.config:
        try:
            overrides = load_config_overrides_from_file(args.config)
        except FileNotFoundError:
            print(f"Config overrides not found: {args.config}")
        except Exception as exc:
            print(f"Failed to parse overrides {args.config}: {exc}")
    if args.dictionary:
        overrides["dictionary_path"] = args.dictionary

    result = run_evaluation(args.input, overrides, workers=args.workers, failed_dir=args.failed_dir)
    for name, guess in result.failures:
        print(f"{name} -> {guess}")
    for name, error in result.errors:
        print(f"{name}: {error}")
    print(
        f"Processed {result.total} files with success rate: "
        f"{result.successes}/{result.total} ({result.success_rate * 100:.2f}%)"
    )
