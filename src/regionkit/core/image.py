"""
Source image container and codec boundaries.

Images travel between the engine and its collaborators as base64 payloads
tagged with a mime type. They are decoded into NumPy arrays (OpenCV channel
order) once at load time and encoded again only when handed back out.
"""

from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Tuple

import cv2
import numpy as np


logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"

_EXTENSIONS: Dict[str, str] = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
}

_DATA_URL = re.compile(r"^data:(?P<mime>[^;,]+);base64,(?P<data>.*)$", re.DOTALL)


class ImageCodecError(RuntimeError):
    """Raised when an image cannot be encoded for transport."""


class DecodeFailure(ImageCodecError):
    """Raised when base64 or image bytes cannot be decoded."""


def _extension_for(mime_type: str) -> str:
    try:
        return _EXTENSIONS[mime_type.lower()]
    except KeyError:
        raise ImageCodecError(f"Unsupported image mime type: {mime_type}") from None


def _normalise_depth(pixels: np.ndarray) -> np.ndarray:
    if pixels.dtype == np.uint8:
        return pixels
    if pixels.dtype == np.uint16:
        return (pixels // 257).astype(np.uint8)
    return np.clip(pixels, 0, 255).astype(np.uint8)


def decode_bytes(raw: bytes) -> np.ndarray:
    """Decode encoded image bytes into an 8-bit array, keeping any alpha channel."""
    if not raw:
        raise DecodeFailure("Image payload is empty")
    buffer = np.frombuffer(raw, dtype=np.uint8)
    pixels = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    if pixels is None:
        raise DecodeFailure(f"Could not decode image payload ({len(raw)} bytes)")
    return _normalise_depth(pixels)


@dataclass(frozen=True, eq=False)
class SourceImage:
    """Immutable decoded image plus the mime type it travels with."""

    pixels: np.ndarray
    mime_type: str = DEFAULT_MIME_TYPE

    def __post_init__(self) -> None:
        if self.pixels.ndim not in (2, 3):
            raise ValueError(f"Expected a 2D or 3D pixel array, got shape {self.pixels.shape}")
        if self.pixels.ndim == 3 and self.pixels.shape[2] not in (1, 3, 4):
            raise ValueError(f"Unsupported channel count: {self.pixels.shape[2]}")
        pixels = np.array(self.pixels, dtype=np.uint8, copy=True)
        if pixels.ndim == 3 and pixels.shape[2] == 1:
            pixels = np.ascontiguousarray(pixels[..., 0])
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    # ------------------------------------------------------------------
    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])

    # ------------------------------------------------------------------
    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> "SourceImage":
        return cls(decode_bytes(raw), mime_type)

    @classmethod
    def from_base64(cls, data: str, mime_type: str = DEFAULT_MIME_TYPE) -> "SourceImage":
        try:
            # Line-wrapped payloads (MIME style) are accepted
            raw = base64.b64decode("".join(data.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecodeFailure(f"Malformed base64 image payload: {exc}") from exc
        return cls.from_bytes(raw, mime_type)

    @classmethod
    def from_data_url(cls, url: str) -> "SourceImage":
        match = _DATA_URL.match(url.strip())
        if match is None:
            raise DecodeFailure("Invalid data URL format")
        return cls.from_base64(match.group("data"), match.group("mime"))

    @classmethod
    def from_path(cls, path: Path | str) -> "SourceImage":
        path = Path(path)
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise DecodeFailure(f"Failed to read image {path}: {exc}") from exc
        mime_type = mimetypes.guess_type(path.name)[0] or DEFAULT_MIME_TYPE
        image = cls.from_bytes(raw, mime_type)
        logger.debug("Loaded %s (%dx%d, %s)", path, image.width, image.height, mime_type)
        return image

    # ------------------------------------------------------------------
    def to_bytes(self) -> bytes:
        ok, encoded = cv2.imencode(_extension_for(self.mime_type), self.pixels)
        if not ok:
            raise ImageCodecError(f"OpenCV failed to encode image as {self.mime_type}")
        return encoded.tobytes()

    def to_base64(self) -> str:
        return base64.b64encode(self.to_bytes()).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    def save(self, path: Path | str) -> Path:
        path = Path(path)
        path.write_bytes(self.to_bytes())
        return path

    def with_pixels(self, pixels: np.ndarray) -> "SourceImage":
        return SourceImage(pixels, self.mime_type)
