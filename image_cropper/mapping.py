"""
Coordinate mapping between view space, the displayed-image frame and
original pixels.

``compute_aspect_fit_frame`` is the single source of truth for where the
image is drawn inside its container.  Everything else converts through the
frame's percentage space.
"""

from image_cropper.config import DEFAULT_INSET_DIVISOR
from image_cropper.errors import DegenerateFrame
from image_cropper.models import CropQuad, Point2D, Rect, Size2D


# =============================================================================
# Percentage space
# =============================================================================
def percentage_of(point: Point2D, size: Size2D) -> Point2D:
    """Express a point as a fraction of a size: (x / width, y / height)."""
    if size.width == 0 or size.height == 0:
        raise DegenerateFrame(f"Cannot take percentage of a {size.width} x {size.height} size")
    return Point2D(point.x / size.width, point.y / size.height)


def scale(point: Point2D, size: Size2D) -> Point2D:
    """Inverse of ``percentage_of``: (x * width, y * height)."""
    return Point2D(point.x * size.width, point.y * size.height)


# =============================================================================
# Aspect-fit layout
# =============================================================================
def compute_aspect_fit_frame(image_size: Size2D, container_size: Size2D) -> Rect:
    """Return the rect the image occupies when aspect-fit into the container.

    The image is scaled to the container's width unless that makes it taller
    than the container, in which case height is the binding dimension.  The
    result is centered on both axes.
    """
    if image_size.is_empty:
        raise DegenerateFrame(f"Image has no extent ({image_size.width} x {image_size.height})")
    if container_size.is_empty:
        raise DegenerateFrame(
            f"Container has no extent ({container_size.width} x {container_size.height})"
        )

    height_ratio = image_size.height / image_size.width
    height = min(container_size.width * height_ratio, container_size.height)
    width = height / height_ratio

    horizontal_inset = (container_size.width - width) / 2
    vertical_inset = max(0.0, (container_size.height - height) / 2)
    return Rect(Point2D(horizontal_inset, vertical_inset), Size2D(width, height))


def default_handles(frame: Rect, container_size: Size2D) -> CropQuad:
    """Place the four handles a fixed inset inside the frame corners."""
    inset = container_size.width / DEFAULT_INSET_DIVISOR
    # Opposing handles may meet but never cross on very flat or narrow images
    inset = min(inset, frame.width / 2, frame.height / 2)
    return CropQuad(
        top_left=Point2D(frame.min_x + inset, frame.min_y + inset),
        top_right=Point2D(frame.max_x - inset, frame.min_y + inset),
        bottom_left=Point2D(frame.min_x + inset, frame.max_y - inset),
        bottom_right=Point2D(frame.max_x - inset, frame.max_y - inset),
    )


# =============================================================================
# View <-> pixel conversion
# =============================================================================
def display_to_image(point: Point2D, frame: Rect, image_size: Size2D) -> Point2D:
    """Map a view-space point to original-pixel coordinates."""
    return scale(percentage_of(point - frame.origin, frame.size), image_size)


def image_to_display(point: Point2D, frame: Rect, image_size: Size2D) -> Point2D:
    """Map an original-pixel point to view-space coordinates."""
    return scale(percentage_of(point, image_size), frame.size) + frame.origin
