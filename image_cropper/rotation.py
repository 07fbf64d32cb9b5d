"""
Handle remapping for quarter-turn rotations.

When the image turns 90° clockwise its displayed frame swaps width and
height, so every handle is rotated around the frame center and its distance
from the center rescaled.  The handles also change roles: whatever was the
bottom-left corner becomes the top-left one, and so on around the quad.
"""

import math

from image_cropper.models import CropQuad, HandleId, Point2D, Size2D

# Which old handle each new handle is rotated from (90° clockwise)
QUARTER_TURN_SOURCES = {
    HandleId.TOP_LEFT: HandleId.BOTTOM_LEFT,
    HandleId.TOP_RIGHT: HandleId.TOP_LEFT,
    HandleId.BOTTOM_RIGHT: HandleId.TOP_RIGHT,
    HandleId.BOTTOM_LEFT: HandleId.BOTTOM_RIGHT,
}


def rotate_point_around_center(
    origin: Point2D,
    target: Point2D,
    resize_percentage: float,
    angle: float = math.pi / 2,
) -> Point2D:
    """Rotate *target* around *origin* by *angle* and scale its radius.

    Angles follow screen coordinates (y grows downwards), so a positive
    angle turns clockwise on screen.
    """
    dx = target.x - origin.x
    dy = target.y - origin.y
    radius = math.hypot(dx, dy)
    azimuth = math.atan2(dy, dx) + angle
    return Point2D(
        origin.x + radius * math.cos(azimuth) * resize_percentage,
        origin.y + radius * math.sin(azimuth) * resize_percentage,
    )


def resize_percentage(previous_displayed: Size2D, new_displayed: Size2D) -> float:
    """Radius scale between two displayed frames across a quarter turn.

    The new frame's width lies along the old frame's height, hence the
    cross ratio.
    """
    return new_displayed.width / previous_displayed.height


def remap_handles(quad: CropQuad, origin: Point2D, resize: float) -> CropQuad:
    """Rotate all four handles a quarter turn clockwise around *origin*."""
    return CropQuad(**{
        handle.value: rotate_point_around_center(origin, quad[source], resize)
        for handle, source in QUARTER_TURN_SOURCES.items()
    })
