"""Exception types raised while parsing, validating and extracting captures."""

from pathlib import Path

from .models import ErrorKind, NormalizedRect


class CutoutError(Exception):
    """Base exception for cutout errors."""

    kind: ErrorKind | None = None


class CaptureSpecError(CutoutError):
    """Raised when a capture specification cannot be accepted.

    These errors are fatal to the whole run: they are raised before any
    image is decoded.
    """

    def __init__(self, message: str, spec: str, field: str | None = None):
        super().__init__(message)
        self.spec = spec
        self.field = field


class MalformedSpecError(CaptureSpecError):
    """Raised when capture text does not match ``<name>:<x>x<y>:<width>x<height>``."""

    kind = ErrorKind.MALFORMED_SPEC


class InvalidDimensionsError(CaptureSpecError):
    """Raised when a capture has a zero width or height."""

    kind = ErrorKind.INVALID_DIMENSIONS


class DuplicateCaptureNameError(MalformedSpecError):
    """Raised when two captures in one run share a name."""

    pass


class InvalidOriginError(CutoutError):
    """Raised when an origin name is not one of the accepted aliases."""

    pass


class OutOfBoundsError(CutoutError):
    """Raised when a capture rectangle does not fit inside an image."""

    kind = ErrorKind.OUT_OF_BOUNDS

    def __init__(
        self,
        message: str,
        capture_name: str | None = None,
        image_size: tuple[int, int] | None = None,
        rect: NormalizedRect | None = None,
    ):
        super().__init__(message)
        self.capture_name = capture_name
        self.rect = rect
        self.image_size = image_size


class CodecError(CutoutError):
    """Base exception for image decode/encode failures."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


class DecodeError(CodecError):
    """Raised when an input file cannot be read or is not a supported image."""

    kind = ErrorKind.DECODE


class EncodeError(CodecError):
    """Raised when a cropped image cannot be encoded or written."""

    kind = ErrorKind.ENCODE
