"""Extract named rectangular regions from batches of images."""

from cutout.batch import run_batch
from cutout.codec import ImageCodec, PillowCodec, output_path_for
from cutout.coordinates import normalize
from cutout.errors import (
    CaptureSpecError,
    CutoutError,
    DecodeError,
    DuplicateCaptureNameError,
    EncodeError,
    InvalidDimensionsError,
    InvalidOriginError,
    MalformedSpecError,
    OutOfBoundsError,
)
from cutout.extraction import check_bounds, extract
from cutout.models import (
    BatchReport,
    CaptureSpec,
    ErrorKind,
    ExtractionResult,
    NormalizedRect,
    Origin,
    Timings,
)
from cutout.parsing import parse_capture_spec, parse_capture_specs, parse_origin

try:
    from cutout._version import __version__, __version_tuple__
except ImportError:
    __version__ = "0.0.0+unknown"
    __version_tuple__ = (0, 0, 0, "unknown", "unknown")

__all__ = [
    "__version__",
    "__version_tuple__",
    # Models
    "BatchReport",
    "CaptureSpec",
    "ErrorKind",
    "ExtractionResult",
    "NormalizedRect",
    "Origin",
    "Timings",
    # Errors
    "CaptureSpecError",
    "CutoutError",
    "DecodeError",
    "DuplicateCaptureNameError",
    "EncodeError",
    "InvalidDimensionsError",
    "InvalidOriginError",
    "MalformedSpecError",
    "OutOfBoundsError",
    # Parsing
    "parse_capture_spec",
    "parse_capture_specs",
    "parse_origin",
    # Geometry
    "normalize",
    "check_bounds",
    "extract",
    # Codec
    "ImageCodec",
    "PillowCodec",
    "output_path_for",
    # Orchestration
    "run_batch",
]
