"""
Data models shared by the geometry engine and the Qt shell.

Point2D, Size2D and Rect are plain value types; which coordinate space a
value lives in (view, displayed image, original pixels, or normalized
percentages) is decided by whoever produced it.  CropQuad holds the four
handle centers in view space, and EditableImage pairs an opaque image handle
with its pixel size.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator

from image_cropper.config import GEOMETRY_TOLERANCE


# =============================================================================
# Value types
# =============================================================================
@dataclass(frozen=True)
class Point2D:
    """Real-valued coordinate."""
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Point2D") -> "Point2D":
        return Point2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point2D") -> "Point2D":
        return Point2D(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> "Point2D":
        return Point2D(self.x * factor, self.y * factor)

    __rmul__ = __mul__


@dataclass(frozen=True)
class Size2D:
    """Real-valued extent, never negative."""
    width: float = 0.0
    height: float = 0.0

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Size2D extents must be >= 0, got {self.width} x {self.height}")

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def transposed(self) -> "Size2D":
        return Size2D(self.height, self.width)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned box in a declared coordinate space."""
    origin: Point2D = Point2D()
    size: Size2D = Size2D()

    @classmethod
    def from_edges(cls, min_x: float, min_y: float, max_x: float, max_y: float) -> "Rect":
        return cls(Point2D(min_x, min_y), Size2D(max_x - min_x, max_y - min_y))

    @property
    def x(self) -> float:
        return self.origin.x

    @property
    def y(self) -> float:
        return self.origin.y

    @property
    def width(self) -> float:
        return self.size.width

    @property
    def height(self) -> float:
        return self.size.height

    @property
    def min_x(self) -> float:
        return self.origin.x

    @property
    def max_x(self) -> float:
        return self.origin.x + self.size.width

    @property
    def min_y(self) -> float:
        return self.origin.y

    @property
    def max_y(self) -> float:
        return self.origin.y + self.size.height

    @property
    def center(self) -> Point2D:
        return Point2D(self.origin.x + self.size.width / 2, self.origin.y + self.size.height / 2)

    def contains(self, point: Point2D, tolerance: float = GEOMETRY_TOLERANCE) -> bool:
        return (
            self.min_x - tolerance <= point.x <= self.max_x + tolerance
            and self.min_y - tolerance <= point.y <= self.max_y + tolerance
        )

    def clamp(self, point: Point2D) -> Point2D:
        """Pull a point onto the closest position inside the rect."""
        return Point2D(
            max(self.min_x, min(point.x, self.max_x)),
            max(self.min_y, min(point.y, self.max_y)),
        )

    def scaled(self, factor: float) -> "Rect":
        return Rect(
            Point2D(self.origin.x * factor, self.origin.y * factor),
            Size2D(self.size.width * factor, self.size.height * factor),
        )


# =============================================================================
# Handles
# =============================================================================
class HandleId(Enum):
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"

    @property
    def is_left(self) -> bool:
        return self in (HandleId.TOP_LEFT, HandleId.BOTTOM_LEFT)

    @property
    def is_top(self) -> bool:
        return self in (HandleId.TOP_LEFT, HandleId.TOP_RIGHT)


@dataclass(frozen=True)
class CropQuad:
    """The four handle centers, in view space."""
    top_left: Point2D
    top_right: Point2D
    bottom_left: Point2D
    bottom_right: Point2D

    def __getitem__(self, handle: HandleId) -> Point2D:
        return getattr(self, handle.value)

    def with_handle(self, handle: HandleId, point: Point2D) -> "CropQuad":
        centers = {h.value: self[h] for h in HandleId}
        centers[handle.value] = point
        return CropQuad(**centers)

    def items(self) -> Iterator[tuple[HandleId, Point2D]]:
        for handle in HandleId:
            yield handle, self[handle]

    def outline(self) -> tuple[Point2D, Point2D, Point2D, Point2D]:
        """Centers in drawing order: TL, TR, BR, BL."""
        return self.top_left, self.top_right, self.bottom_right, self.bottom_left

    def is_well_formed(self, tolerance: float = GEOMETRY_TOLERANCE) -> bool:
        """True if no left handle is right of a right handle and no top handle below a bottom one."""
        lefts = (self.top_left.x, self.bottom_left.x)
        rights = (self.top_right.x, self.bottom_right.x)
        tops = (self.top_left.y, self.top_right.y)
        bottoms = (self.bottom_left.y, self.bottom_right.y)
        return (
            max(lefts) <= min(rights) + tolerance
            and max(tops) <= min(bottoms) + tolerance
        )


# =============================================================================
# Image
# =============================================================================
@dataclass(frozen=True)
class EditableImage:
    """Opaque image handle plus its size in pixels."""
    image: Any
    size: Size2D
