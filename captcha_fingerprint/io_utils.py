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

"""Input/output helpers."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Iterable, List, Union

import cv2 as cv
import numpy as np

from .errors import DecodeError

_IMAGE_PATTERNS = ("*.jpg", "*.jpeg", "*.png", "*.bmp")

ImageSource = Union[bytes, bytearray, memoryview, BinaryIO]


def collect_images(path: Path) -> List[Path]:
    """Return sorted image paths under ``path`` (supports individual files)."""

    if path.is_file():
        return [path]
    if not path.exists():
        raise FileNotFoundError(f"Input path does not exist: {path}")
    files: List[Path] = []
    for pattern in _IMAGE_PATTERNS:
        files.extend(path.glob(pattern))
    return sorted(files)


def read_image_bytes(source: ImageSource) -> bytes:
    """Drain ``source`` (raw bytes or a binary stream) into a bytes object."""

    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    read = getattr(source, "read", None)
    if read is None:
        raise TypeError(f"Expected bytes or a binary stream, got {type(source).__name__}")
    data = read()
    if isinstance(data, str):
        raise TypeError("Image stream must be opened in binary mode")
    return bytes(data)


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes, keeping channels and depth as stored."""

    if not data:
        raise DecodeError("error decoding image: empty input")
    buffer = np.frombuffer(data, dtype=np.uint8)
    try:
        image = cv.imdecode(buffer, cv.IMREAD_UNCHANGED)
    except cv.error as exc:
        raise DecodeError(f"error decoding image: {exc}") from exc
    if image is None or image.size == 0:
        raise DecodeError("error decoding image: unsupported or corrupt data")
    return image


def load_image(path: Path) -> np.ndarray:
    """Read and decode the image stored at ``path``."""

    return decode_image(Path(path).read_bytes())


def save_image(path: Path, image: np.ndarray) -> None:
    """Write ``image`` to ``path`` ensuring parent directories exist."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if not cv.imwrite(str(path), image):
        raise RuntimeError(f"Failed to save image: {path}")


def ensure_dir(path: Path) -> Path:
    """Create ``path`` (and parents) if needed and return it for chaining."""

    path.mkdir(parents=True, exist_ok=True)
    return path


def save_text(path: Path, content: str) -> None:
    """Persist UTF-8 text to ``path`` with directory creation."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def list_subdirectories(path: Path) -> Iterable[Path]:
    """Yield sorted immediate sub-directories under ``path`` (empty if missing)."""

    if not path.exists():
        return []
    return sorted(p for p in path.iterdir() if p.is_dir())
