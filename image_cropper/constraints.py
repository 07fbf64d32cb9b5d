"""
Drag constraints for the four crop handles.

A dragged handle is clamped independently on each axis: it may not leave the
displayed-image frame, and it may not cross the handles on the opposing side.
Because every drag respects both limits, the quadrilateral keeps its
left/right and top/bottom ordering without any global re-validation.
"""

from image_cropper.models import CropQuad, HandleId, Point2D, Rect


def _clamp_low_side(proposed: float, low: float, high: float) -> float:
    """Clamp for a handle on the minimum side of an axis (left or top)."""
    return max(low, min(proposed, high))


def _clamp_high_side(proposed: float, low: float, high: float) -> float:
    """Clamp for a handle on the maximum side of an axis (right or bottom)."""
    return min(high, max(proposed, low))


def axis_limits(handle: HandleId, quad: CropQuad, bounds: Rect) -> tuple[tuple[float, float], tuple[float, float]]:
    """Return the ``((x_low, x_high), (y_low, y_high))`` range the handle may occupy."""
    left_limit = min(quad.top_right.x, quad.bottom_right.x)
    right_limit = max(quad.top_left.x, quad.bottom_left.x)
    top_limit = min(quad.bottom_left.y, quad.bottom_right.y)
    bottom_limit = max(quad.top_left.y, quad.top_right.y)

    if handle.is_left:
        x_range = (bounds.min_x, left_limit)
    else:
        x_range = (right_limit, bounds.max_x)

    if handle.is_top:
        y_range = (bounds.min_y, top_limit)
    else:
        y_range = (bottom_limit, bounds.max_y)

    return x_range, y_range


def solve_handle_position(handle: HandleId, quad: CropQuad, delta: Point2D, bounds: Rect) -> Point2D:
    """Return the new center for *handle* after moving it by *delta*.

    Only the dragged handle moves; the other three centers are read as
    limits.  *bounds* is the displayed-image frame in view space.
    """
    current = quad[handle]
    proposed = current + delta
    (x_low, x_high), (y_low, y_high) = axis_limits(handle, quad, bounds)

    clamp_x = _clamp_low_side if handle.is_left else _clamp_high_side
    clamp_y = _clamp_low_side if handle.is_top else _clamp_high_side
    return Point2D(
        clamp_x(proposed.x, x_low, x_high),
        clamp_y(proposed.y, y_low, y_high),
    )


def apply_drag(handle: HandleId, quad: CropQuad, delta: Point2D, bounds: Rect) -> CropQuad:
    """Return *quad* with *handle* moved by *delta*, subject to the drag constraints."""
    return quad.with_handle(handle, solve_handle_position(handle, quad, delta, bounds))


def restore_ordering(quad: CropQuad) -> CropQuad:
    """Snap left handles onto the nearest right handle and top handles onto the nearest bottom one.

    Only moves handles that have crossed, e.g. a collapsed edge that came
    back from rotation a rounding error out of order.
    """
    right_limit = min(quad.top_right.x, quad.bottom_right.x)
    bottom_limit = min(quad.bottom_left.y, quad.bottom_right.y)
    return CropQuad(**{
        handle.value: Point2D(
            min(point.x, right_limit) if handle.is_left else point.x,
            min(point.y, bottom_limit) if handle.is_top else point.y,
        )
        for handle, point in quad.items()
    })


def clamp_to_frame(quad: CropQuad, bounds: Rect) -> CropQuad:
    """Pull every handle center inside *bounds*, keeping left/right and top/bottom order."""
    clamped = CropQuad(**{handle.value: bounds.clamp(point) for handle, point in quad.items()})
    return restore_ordering(clamped)
