"""Coordinate conversion from a capture's origin to top-left pixel coordinates.

Only the vertical axis depends on the origin. With a bottom-left origin the
capture's ``y`` is the distance from the image's bottom edge to the capture's
bottom edge, so the top row is ``image_height - y - height``.

Normalization never checks bounds: a rectangle that starts above the image
(negative top) or runs past its right/bottom edge is returned as-is and
rejected by ``cutout.extraction.check_bounds``.
"""

from .models import CaptureSpec, NormalizedRect, Origin
from .parsing import parse_origin


def normalize(spec: CaptureSpec, origin: Origin | str, image_height: int) -> NormalizedRect:
    """Convert a capture to top-left coordinates for an image of a given height.

    Args:
        spec: Capture specification
        origin: Coordinate convention of ``spec.x``/``spec.y`` (an Origin or alias)
        image_height: Height of the target image in pixels

    Returns:
        NormalizedRect in top-left pixel coordinates (may be out of bounds)

    Raises:
        InvalidOriginError: If ``origin`` is not a recognized alias

    Example:
        >>> # 20px strip flush with the bottom of a 100px-tall image
        >>> spec = CaptureSpec(name="footer", x=0, y=0, width=50, height=20)
        >>> normalize(spec, Origin.BOTTOM_LEFT, image_height=100).top
        80
    """
    if parse_origin(origin) is Origin.BOTTOM_LEFT:
        top = image_height - spec.y - spec.height
    else:
        top = spec.y

    return NormalizedRect(left=spec.x, top=top, width=spec.width, height=spec.height)
