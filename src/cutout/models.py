"""Data models for capture specifications and extraction results.

Coordinate System Notes:
- CaptureSpec offsets are relative to the run's Origin (top-left or bottom-left)
- NormalizedRect is always top-left based (0,0 = top-left corner), in pixels
- With a bottom-left origin, ``y`` is the distance from the bottom edge of the
  image to the bottom edge of the capture
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Origin(str, Enum):
    """Coordinate convention used to interpret a capture's ``x``/``y``."""

    TOP_LEFT = "tl"
    BOTTOM_LEFT = "bl"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CaptureSpec:
    """A named rectangle request, applied to every input image.

    Attributes:
        name: Capture name, used to build output filenames
        x: Left offset in pixels
        y: Vertical offset in pixels (meaning depends on the Origin)
        width: Region width in pixels (> 0)
        height: Region height in pixels (> 0)
    """

    name: str
    x: int
    y: int
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.name}:{self.x}x{self.y}:{self.width}x{self.height}"


@dataclass(frozen=True)
class NormalizedRect:
    """Capture bounds in top-left pixel coordinates for one image.

    ``top`` may be negative when a bottom-left capture is taller than the
    image; bounds are enforced by ``cutout.extraction``.
    """

    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        """Right edge (exclusive) in pixels."""
        return self.left + self.width

    @property
    def bottom(self) -> int:
        """Bottom edge (exclusive) in pixels."""
        return self.top + self.height

    def to_box(self) -> tuple[int, int, int, int]:
        """Return ``(left, top, right, bottom)`` as expected by ``Image.crop``."""
        return (self.left, self.top, self.right, self.bottom)


class ErrorKind(str, Enum):
    """Failure categories reported for an (image, capture) pair."""

    MALFORMED_SPEC = "malformed_spec"
    INVALID_DIMENSIONS = "invalid_dimensions"
    OUT_OF_BOUNDS = "out_of_bounds"
    DECODE = "decode"
    ENCODE = "encode"


@dataclass
class Timings:
    """Timing information collected in verbose mode, in milliseconds."""

    decode_ms: float
    crop_encode_ms: float | None = None


@dataclass
class ExtractionResult:
    """Outcome of one (input file, capture) pair.

    A decode failure is reported once per input file with ``capture_name``
    set to None, standing in for every capture of that file.
    """

    input_path: Path
    capture_name: str | None
    output_path: Path | None = None
    rect: NormalizedRect | None = None
    image_size: tuple[int, int] | None = None
    error_kind: ErrorKind | None = None
    message: str | None = None
    timings: Timings | None = None

    @property
    def ok(self) -> bool:
        """True if the pair was extracted (or validated, in a dry run)."""
        return self.error_kind is None

    @classmethod
    def success(
        cls,
        input_path: Path,
        capture_name: str,
        output_path: Path,
        rect: NormalizedRect,
        image_size: tuple[int, int] | None = None,
        timings: Timings | None = None,
    ) -> "ExtractionResult":
        return cls(
            input_path=input_path,
            capture_name=capture_name,
            output_path=output_path,
            rect=rect,
            image_size=image_size,
            timings=timings,
        )

    @classmethod
    def failure(
        cls,
        input_path: Path,
        capture_name: str | None,
        error_kind: ErrorKind,
        message: str,
        rect: NormalizedRect | None = None,
        image_size: tuple[int, int] | None = None,
        timings: Timings | None = None,
    ) -> "ExtractionResult":
        return cls(
            input_path=input_path,
            capture_name=capture_name,
            rect=rect,
            image_size=image_size,
            error_kind=error_kind,
            message=message,
            timings=timings,
        )


@dataclass
class BatchReport:
    """Ordered results of a batch run.

    Results are kept in input order: files as given, then captures as given.
    """

    results: list[ExtractionResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True only if every attempted pair succeeded."""
        return all(result.ok for result in self.results)

    @property
    def failures(self) -> list[ExtractionResult]:
        return [result for result in self.results if not result.ok]

    @property
    def succeeded(self) -> list[ExtractionResult]:
        return [result for result in self.results if result.ok]

    def extend(self, results: list[ExtractionResult]) -> "BatchReport":
        """Append one unit's results, preserving order."""
        self.results.extend(results)
        return self
