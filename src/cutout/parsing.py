"""Parsing of capture specifications and origin names.

Capture grammar: ``<name>:<x>x<y>:<width>x<height>``

Example:
    >>> parse_capture_spec("left:200x300:1200x1850")
    CaptureSpec(name='left', x=200, y=300, width=1200, height=1850)
"""

import logging
from collections.abc import Iterable
from typing import Final

from .errors import (
    DuplicateCaptureNameError,
    InvalidDimensionsError,
    InvalidOriginError,
    MalformedSpecError,
)
from .models import CaptureSpec, Origin

logger = logging.getLogger(__name__)

SPEC_FORMAT: Final[str] = "<name>:<x>x<y>:<width>x<height>"

# Capture names become part of an output file name
NAME_SEPARATORS: Final[tuple[str, ...]] = ("/", "\\")

ORIGIN_ALIASES: Final[dict[str, Origin]] = {
    "tl": Origin.TOP_LEFT,
    "top-left": Origin.TOP_LEFT,
    "top_left": Origin.TOP_LEFT,
    "bl": Origin.BOTTOM_LEFT,
    "bottom-left": Origin.BOTTOM_LEFT,
    "bottom_left": Origin.BOTTOM_LEFT,
}


def parse_capture_spec(token: str) -> CaptureSpec:
    """Parse a single capture specification.

    No bounds checking happens here: the same spec is applied to images of
    different sizes.

    Args:
        token: Capture text, e.g. ``"left:200x300:1200x1850"``

    Returns:
        Parsed CaptureSpec

    Raises:
        MalformedSpecError: If the text does not match the grammar
        InvalidDimensionsError: If width or height is zero
    """
    fields = token.split(":")
    if len(fields) != 3:
        raise MalformedSpecError(
            f"Invalid capture spec '{token}': expected 3 ':'-separated fields, "
            f"got {len(fields)}. Expected format: {SPEC_FORMAT}",
            spec=token,
        )

    name, offset, size = fields
    if not name:
        raise MalformedSpecError(
            f"Invalid capture spec '{token}': capture name is empty", spec=token, field="name"
        )
    if any(sep in name for sep in NAME_SEPARATORS):
        raise MalformedSpecError(
            f"Invalid capture spec '{token}': capture name '{name}' must not contain a path separator",
            spec=token,
            field="name",
        )

    x, y = _parse_pair(offset, token, "x/y offset")
    width, height = _parse_pair(size, token, "width/height")

    if width == 0 or height == 0:
        raise InvalidDimensionsError(
            f"Width and height must be positive in capture spec '{token}' (got {width}x{height})",
            spec=token,
            field="width/height",
        )

    return CaptureSpec(name=name, x=x, y=y, width=width, height=height)


def _parse_pair(raw: str, token: str, label: str) -> tuple[int, int]:
    """Parse ``<a>x<b>`` into two non-negative integers."""
    parts = raw.split("x")
    if len(parts) != 2:
        raise MalformedSpecError(
            f"Invalid {label} '{raw}' in capture spec '{token}': "
            "expected two integers separated by 'x'",
            spec=token,
            field=label,
        )

    values = []
    for part in parts:
        # Digits only: rejects signs, whitespace and non-ASCII numerals
        if not (part.isascii() and part.isdigit()):
            raise MalformedSpecError(
                f"Failed to parse {label} value '{part}' in capture spec '{token}'",
                spec=token,
                field=label,
            )
        values.append(int(part))

    return values[0], values[1]


def parse_capture_specs(tokens: Iterable[str]) -> list[CaptureSpec]:
    """Parse a list of capture specifications in order.

    Args:
        tokens: Capture texts, one per ``--capture`` occurrence

    Returns:
        Parsed specs, in the order given

    Raises:
        MalformedSpecError: If any token is malformed
        InvalidDimensionsError: If any token has a zero width or height
        DuplicateCaptureNameError: If two tokens share a capture name
    """
    specs: list[CaptureSpec] = []
    seen: dict[str, str] = {}

    for token in tokens:
        spec = parse_capture_spec(token)
        if spec.name in seen:
            raise DuplicateCaptureNameError(
                f"Duplicate capture name '{spec.name}' in '{seen[spec.name]}' and '{token}': "
                "outputs would overwrite each other",
                spec=token,
                field="name",
            )
        seen[spec.name] = token
        specs.append(spec)
        logger.debug(f"Parsed capture {spec}")

    return specs


def parse_origin(value: str | Origin) -> Origin:
    """Resolve an origin name or alias to an Origin.

    Accepts ``tl``, ``top-left``, ``top_left``, ``bl``, ``bottom-left`` and
    ``bottom_left``, case-insensitively, ignoring surrounding whitespace.

    Raises:
        InvalidOriginError: If the value is not a recognized alias
    """
    if isinstance(value, Origin):
        return value

    origin = ORIGIN_ALIASES.get(value.strip().lower())
    if origin is None:
        accepted = ", ".join(ORIGIN_ALIASES)
        raise InvalidOriginError(f"Invalid origin '{value}'. Supported values: {accepted}")
    return origin
