"""
Crop-region geometry: from handle centers to a pixel rectangle.

The crop rect is built from the extreme coordinates of opposing corners
rather than from individual handle labels, so it stays well-formed even
while a handle sits exactly on an opposing handle's line.  The displayed
rect is then scaled into original-pixel space with the image/view ratio.
"""

import logging

from image_cropper.config import PIXEL_TOLERANCE
from image_cropper.errors import CropFailure, DegenerateFrame
from image_cropper.models import CropQuad, Point2D, Rect, Size2D

logger = logging.getLogger(__name__)


def compute_crop_rect(quad: CropQuad, frame: Rect) -> Rect:
    """Return the crop rectangle in displayed-image space (relative to the frame origin)."""
    min_x = min(quad.top_left.x, quad.bottom_left.x) - frame.x
    max_x = max(quad.top_right.x, quad.bottom_right.x) - frame.x
    min_y = min(quad.top_left.y, quad.top_right.y) - frame.y
    max_y = max(quad.bottom_left.y, quad.bottom_right.y) - frame.y
    # Crossed edges collapse to an empty rect
    return Rect(Point2D(min_x, min_y), Size2D(max(0.0, max_x - min_x), max(0.0, max_y - min_y)))


def image_view_scale(displayed_size: Size2D, original_pixel_size: Size2D) -> float:
    """Pixels per displayed point.

    Aspect fit scales both axes uniformly, so the two ratios only differ by
    rounding on the non-binding dimension; the larger one is used.
    """
    if displayed_size.is_empty:
        raise DegenerateFrame(
            f"Displayed image has no extent ({displayed_size.width} x {displayed_size.height})"
        )
    return max(
        original_pixel_size.width / displayed_size.width,
        original_pixel_size.height / displayed_size.height,
    )


def map_to_pixel_space(rect: Rect, displayed_size: Size2D, original_pixel_size: Size2D) -> Rect:
    """Scale a displayed-image rect into original-pixel space.

    Raises CropFailure if the result is empty or falls outside the image by
    more than ``PIXEL_TOLERANCE``.  Overshoot within the tolerance is snapped
    back onto the image bounds.
    """
    factor = image_view_scale(displayed_size, original_pixel_size)
    pixel_rect = rect.scaled(factor)

    if pixel_rect.width <= 0 or pixel_rect.height <= 0:
        raise CropFailure(
            f"Crop area is empty ({pixel_rect.width:.1f} x {pixel_rect.height:.1f} px)"
        )

    if (
        pixel_rect.min_x < -PIXEL_TOLERANCE
        or pixel_rect.min_y < -PIXEL_TOLERANCE
        or pixel_rect.max_x > original_pixel_size.width + PIXEL_TOLERANCE
        or pixel_rect.max_y > original_pixel_size.height + PIXEL_TOLERANCE
    ):
        raise CropFailure(
            f"Crop area ({pixel_rect.min_x:.1f}, {pixel_rect.min_y:.1f}, "
            f"{pixel_rect.max_x:.1f}, {pixel_rect.max_y:.1f}) lies outside the "
            f"{original_pixel_size.width:g} x {original_pixel_size.height:g} image"
        )

    left = max(0.0, pixel_rect.min_x)
    top = max(0.0, pixel_rect.min_y)
    right = min(original_pixel_size.width, pixel_rect.max_x)
    bottom = min(original_pixel_size.height, pixel_rect.max_y)
    if right <= left or bottom <= top:
        raise CropFailure(f"Crop area is empty after snapping onto the image ({left}, {top}, {right}, {bottom})")
    snapped = Rect.from_edges(left, top, right, bottom)
    if snapped != pixel_rect:
        logger.debug("Snapped crop rect %s onto image bounds -> %s", pixel_rect, snapped)
    return snapped


def crop_pixel_rect(quad: CropQuad, frame: Rect, original_pixel_size: Size2D) -> Rect:
    """Handle centers to original-pixel crop rect, end to end."""
    return map_to_pixel_space(compute_crop_rect(quad, frame), frame.size, original_pixel_size)
