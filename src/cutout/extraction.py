"""Bounds validation and cropping of decoded images."""

from PIL import Image

from .errors import OutOfBoundsError
from .models import NormalizedRect


def check_bounds(
    rect: NormalizedRect,
    image_width: int,
    image_height: int,
    capture_name: str | None = None,
) -> None:
    """Check that a rectangle lies fully inside an image.

    Args:
        rect: Rectangle in top-left pixel coordinates
        image_width: Image width in pixels
        image_height: Image height in pixels
        capture_name: Capture name, used in error messages

    Raises:
        OutOfBoundsError: If the rectangle starts outside the image or
            extends past its right or bottom edge
    """
    label = f"Capture '{capture_name}'" if capture_name else "Capture"
    size = (image_width, image_height)

    # A negative top means a bottom-left capture taller than y + image height
    if rect.top < 0 or rect.left < 0:
        raise OutOfBoundsError(
            f"{label} origin ({rect.left}, {rect.top}) is outside image bounds "
            f"{image_width}x{image_height}",
            capture_name=capture_name,
            image_size=size,
            rect=rect,
        )

    if rect.right > image_width or rect.bottom > image_height:
        raise OutOfBoundsError(
            f"{label} rectangle ({rect.left}, {rect.top}, {rect.width}x{rect.height}) "
            f"exceeds image bounds {image_width}x{image_height}",
            capture_name=capture_name,
            image_size=size,
            rect=rect,
        )


def extract(image: Image.Image, rect: NormalizedRect, capture_name: str | None = None) -> Image.Image:
    """Crop a rectangle out of an image.

    The result is a new image of size ``rect.width`` x ``rect.height`` with
    the source's mode (no color conversion).

    Raises:
        OutOfBoundsError: If the rectangle does not fit inside the image
    """
    check_bounds(rect, image.width, image.height, capture_name)
    return image.crop(rect.to_box())
