"""Image decoding, encoding and output naming using Pillow."""

import logging
import struct
from io import BytesIO
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from PIL import Image

from .errors import DecodeError, EncodeError

logger = logging.getLogger(__name__)

# Extension used when an input file name has none
DEFAULT_EXTENSION: Final[str] = "png"

# Errors Pillow raises for truncated or corrupt input
DECODE_ERRORS: Final[tuple[type[Exception], ...]] = (
    OSError,
    ValueError,
    SyntaxError,
    EOFError,
    struct.error,
    Image.DecompressionBombError,
)

# Formats that take a ``quality`` save parameter
QUALITY_FORMATS: Final[frozenset[str]] = frozenset({"JPEG", "WEBP"})


@runtime_checkable
class ImageCodec(Protocol):
    """Protocol for the codec used by the batch orchestrator.

    All codecs must implement this interface to be interchangeable.
    """

    def decode(self, path: Path) -> Image.Image:
        """Read and fully decode an image file.

        Raises:
            DecodeError: If the file is unreadable or not a supported image
        """
        ...

    def encode(self, image: Image.Image, format_hint: str) -> bytes:
        """Encode an image in the format implied by a file extension.

        Raises:
            EncodeError: If the image cannot be encoded in that format
        """
        ...

    def write(self, data: bytes, path: Path) -> None:
        """Write encoded bytes to a file, replacing any existing file.

        Raises:
            EncodeError: If the file cannot be written
        """
        ...


def format_for_extension(extension: str) -> str:
    """Map a file extension (with or without the dot) to a Pillow format name.

    Raises:
        EncodeError: If Pillow has no format registered for the extension
    """
    ext = extension.lower()
    if not ext.startswith("."):
        ext = f".{ext}"

    fmt = Image.registered_extensions().get(ext)
    if fmt is None:
        raise EncodeError(f"No image format registered for extension '{ext}'")
    return fmt


def output_path_for(input_path: Path, capture_name: str, output_dir: Path | None = None) -> Path:
    """Build the output path ``<basename>_<capture_name>.<ext>`` for an input.

    ``basename`` is the input file name without its final extension. Inputs
    without an extension (or with an empty stem, like ``.hidden``) use
    ``png``.

    Args:
        input_path: Input image path
        capture_name: Capture name
        output_dir: Directory for the output (default: the input's directory)

    Returns:
        Output file path

    Raises:
        EncodeError: If the capture name contains a path separator

    Example:
        >>> output_path_for(Path("scans/page.tif"), "left")
        PosixPath('scans/page_left.tif')
    """
    if "/" in capture_name or "\\" in capture_name:
        raise EncodeError(f"Capture name '{capture_name}' must not contain a path separator")

    stem, dot, ext = input_path.name.rpartition(".")
    if not dot or not stem or not ext:
        stem, ext = input_path.name, DEFAULT_EXTENSION

    parent = output_dir if output_dir is not None else input_path.parent
    return parent / f"{stem}_{capture_name}.{ext}"


class PillowCodec:
    """Codec backed by Pillow.

    Decoded images keep their source mode; encoding never converts color.
    """

    def __init__(self, jpeg_quality: int = 95):
        """Initialize codec.

        Args:
            jpeg_quality: Quality for JPEG and WebP outputs (1-95)

        Raises:
            ValueError: If jpeg_quality is out of range
        """
        if not 1 <= jpeg_quality <= 95:
            raise ValueError(f"Invalid JPEG quality: {jpeg_quality}")
        self.jpeg_quality = jpeg_quality

    def decode(self, path: Path) -> Image.Image:
        """Open an image and load its pixel data into memory.

        The caller owns the returned image and should close it when done.
        """
        try:
            image = Image.open(path)
        except DECODE_ERRORS as e:
            raise DecodeError(f"Unable to open image '{path}': {e}", path=path) from e

        try:
            image.load()
        except DECODE_ERRORS as e:
            image.close()
            raise DecodeError(f"Unable to decode image '{path}': {e}", path=path) from e

        logger.debug(f"Decoded {path} ({image.width}x{image.height}, {image.mode}, {image.format})")
        return image

    def encode(self, image: Image.Image, format_hint: str) -> bytes:
        """Encode an image using the format registered for ``format_hint``.

        Args:
            image: Image to encode
            format_hint: File extension, e.g. ``".png"`` or ``"jpg"``

        Returns:
            Encoded image bytes
        """
        fmt = format_for_extension(format_hint)
        params = {"quality": self.jpeg_quality} if fmt in QUALITY_FORMATS else {}

        buffer = BytesIO()
        try:
            image.save(buffer, format=fmt, **params)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"Unable to encode {image.mode} image as {fmt}: {e}") from e
        return buffer.getvalue()

    def write(self, data: bytes, path: Path) -> None:
        """Write bytes to ``path``, creating parent directories if needed."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise EncodeError(f"Unable to save image to '{path}': {e}", path=path) from e
