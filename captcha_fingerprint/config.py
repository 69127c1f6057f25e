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

"""Configuration helpers for the captcha solver."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

WRAP_MERGE_SLOTS = ("first", "last")
DEFAULT_SENTINEL = "-"


def _strip_inline_comment(value: str) -> str:
    if "#" not in value:
        return value.strip()
    return value.split("#", 1)[0].strip()


def _parse_override_value(value: str, key: str = "") -> object:
    text = _strip_inline_comment(value)
    if not text:
        return ""
    if "sentinel" in key.lower() or "slot" in key.lower():
        return text
    lowered = text.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    try:
        if any(sep in text for sep in (".", "e", "E")):
            return float(text)
        return int(text)
    except ValueError:
        return text


def load_config_overrides_from_file(path: Union[str, Path], *, allow_missing: bool = False) -> Dict[str, object]:
    """Parse a minimal ``key: value`` override file (no JSON required)."""

    file_path = Path(path)
    if not file_path.exists():
        if allow_missing:
            return {}
        raise FileNotFoundError(f"Config file not found: {file_path}")

    overrides: Dict[str, object] = {}
    with file_path.open("r", encoding="utf-8") as handle:
        for raw_line in handle:
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if ":" not in line:
                continue
            key, value = line.split(":", 1)
            key = key.strip()
            overrides[key] = _parse_override_value(value, key)
    return overrides


@dataclass
class NormalizationConfig:
    # Only near-pure black survives; tuned to the captcha's anti-aliasing.
    threshold_level: int = 1


@dataclass
class SegmentationConfig:
    max_glyph_width: int = 33
    min_first_glyph_width: int = 14
    glyph_count: int = 6
    blank_glyph_width: int = 200
    blank_glyph_height: int = 70
    crop_to_ink: bool = False
    wrap_merge_slot: str = "first"

    @property
    def accepted_box_counts(self) -> tuple:
        return (self.glyph_count, self.glyph_count + 1)


@dataclass
class ResolverConfig:
    dictionary_path: Path = Path("data/training_data.json")
    sentinel: str = DEFAULT_SENTINEL


@dataclass
class SolverConfig:
    output_root: Path = Path("output")
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)

    def output_dir(self, name: str) -> Path:
        return self.output_root / name


def _pop_first(keys: Iterable[str], source: Dict[str, object], default: object) -> Any:
    for key in keys:
        if key in source:
            return source.pop(key)
    return default


def _ensure_path(value: object, base_path: Path) -> Path:
    path = Path(str(value))
    if not path.is_absolute():
        path = base_path / path
    return path


def _ensure_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _validate(config: SolverConfig) -> None:
    norm = config.normalization
    seg = config.segmentation
    if not 0 <= norm.threshold_level <= 255:
        raise ValueError(f"threshold_level must be within [0, 255], got {norm.threshold_level}")
    for name in ("max_glyph_width", "min_first_glyph_width", "glyph_count", "blank_glyph_width", "blank_glyph_height"):
        if getattr(seg, name) <= 0:
            raise ValueError(f"{name} must be positive, got {getattr(seg, name)}")
    if seg.wrap_merge_slot not in WRAP_MERGE_SLOTS:
        raise ValueError(f"wrap_merge_slot must be one of {WRAP_MERGE_SLOTS}, got {seg.wrap_merge_slot!r}")
    if len(config.resolver.sentinel) != 1:
        raise ValueError(f"sentinel must be a single character, got {config.resolver.sentinel!r}")


def load_solver_config(config_dict: Optional[Dict[str, object]], base_path: Optional[Path] = None) -> SolverConfig:
    data = dict(config_dict or {})
    base = Path(base_path or Path.cwd())

    output_root = _ensure_path(_pop_first(["output_root", "output_dir"], data, "output"), base)

    normalization = NormalizationConfig(
        threshold_level=int(_pop_first(["threshold_level", "threshold", "mono_weight"], data, 1)),
    )

    segmentation = SegmentationConfig(
        max_glyph_width=int(_pop_first(["max_glyph_width", "max_letter_width"], data, 33)),
        min_first_glyph_width=int(_pop_first(["min_first_glyph_width", "min_letter_width"], data, 14)),
        glyph_count=int(_pop_first(["glyph_count", "captcha_length"], data, 6)),
        blank_glyph_width=int(_pop_first(["blank_glyph_width", "blank_width"], data, 200)),
        blank_glyph_height=int(_pop_first(["blank_glyph_height", "blank_height"], data, 70)),
        crop_to_ink=_ensure_bool(_pop_first(["crop_to_ink", "cut_white"], data, False)),
        wrap_merge_slot=str(_pop_first(["wrap_merge_slot"], data, "first")).strip().lower(),
    )

    resolver = ResolverConfig(
        dictionary_path=_ensure_path(
            _pop_first(["dictionary_path", "dictionary", "training_data"], data, "data/training_data.json"), base
        ),
        sentinel=str(_pop_first(["sentinel"], data, DEFAULT_SENTINEL)),
    )

    config = SolverConfig(
        output_root=output_root,
        normalization=normalization,
        segmentation=segmentation,
        resolver=resolver,
    )
    _validate(config)
    return config
