"""Pytest configuration and fixtures for cutout tests."""

import struct
import zlib
from collections.abc import Callable
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from cutout.config import get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    """Isolate tests from CUTOUT_* variables in the environment."""
    for name in ("CUTOUT_ORIGIN", "CUTOUT_JOBS", "CUTOUT_OUTPUT_DIR", "CUTOUT_LOG_LEVEL", "CUTOUT_JPEG_QUALITY"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def gradient_image(width: int, height: int, mode: str = "RGB") -> Image.Image:
    """Create an image where every pixel encodes its own (x, y) position."""
    img = Image.new("RGB", (width, height))
    img.putdata([(x % 256, y % 256, (x * 7 + y * 13) % 256) for y in range(height) for x in range(width)])
    return img if mode == "RGB" else img.convert(mode)


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Factory that writes a gradient image to tmp_path and returns its path."""

    def _make(name: str = "page.png", size: tuple[int, int] = (10, 10), mode: str = "RGB") -> Path:
        path = tmp_path / name
        gradient_image(*size, mode=mode).save(path, format=Image.registered_extensions()[path.suffix.lower()])
        return path

    return _make


@pytest.fixture
def bad_image(tmp_path: Path) -> Path:
    """A file with an image extension that does not contain an image."""
    path = tmp_path / "broken.png"
    path.write_bytes(b"this is not an image")
    return path


def _png_chunk(cid: bytes, body: bytes) -> bytes:
    return struct.pack(">I", len(body)) + cid + body + struct.pack(">I", zlib.crc32(cid + body))


@pytest.fixture
def corrupt_png(tmp_path: Path) -> Path:
    """A PNG whose pixel data is split across two chunks, the second with a garbled chunk type.

    The header parses, so Image.open succeeds and the failure only surfaces
    while loading pixel data.
    """
    buffer = BytesIO()
    gradient_image(64, 64).save(buffer, format="PNG")
    data = buffer.getvalue()

    chunks = []
    pos = 8
    while pos < len(data):
        (length,) = struct.unpack(">I", data[pos : pos + 4])
        chunks.append((data[pos + 4 : pos + 8], data[pos + 8 : pos + 8 + length]))
        pos += length + 12

    header = next(body for cid, body in chunks if cid == b"IHDR")
    pixels = b"".join(body for cid, body in chunks if cid == b"IDAT")
    half = len(pixels) // 2

    path = tmp_path / "corrupt.png"
    path.write_bytes(
        data[:8]
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", pixels[:half])
        + _png_chunk(b"I\x11AT", pixels[half:])
        + _png_chunk(b"IEND", b"")
    )
    return path
