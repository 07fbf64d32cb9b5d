"""
Events consumed by ``CropSession`` and the capabilities it talks to.

The session never touches a UI toolkit.  Whatever shell hosts it delivers
already-decoded events (``EventSource``), receives a ``RenderFrame`` after
every mutating operation (``RenderSink``), and supplies the pixel operations
(``ImageCodec``).  This module is Qt-free.
"""

from dataclasses import dataclass
from typing import Any, Protocol, Union

from image_cropper.models import CropQuad, EditableImage, HandleId, Point2D, Rect, Size2D


# =============================================================================
# Events
# =============================================================================
@dataclass(frozen=True)
class DragBegin:
    handle: HandleId


@dataclass(frozen=True)
class DragChanged:
    delta: Point2D  # movement since the previous DragChanged, in view space


@dataclass(frozen=True)
class DragEnded:
    pass


@dataclass(frozen=True)
class RotateRequested:
    pass


@dataclass(frozen=True)
class CropRequested:
    pass


@dataclass(frozen=True)
class ContainerResized:
    size: Size2D


CropEvent = Union[DragBegin, DragChanged, DragEnded, RotateRequested, CropRequested, ContainerResized]


# =============================================================================
# Render instructions
# =============================================================================
@dataclass(frozen=True)
class RenderFrame:
    """Geometry to draw: dashed quad outline plus the dimmed mask around it.

    ``mask_rect`` is the displayed-image frame; the quad is cut out of it
    with an even-odd fill.
    """
    quad: CropQuad
    mask_rect: Rect
    image: EditableImage

    @property
    def outline(self) -> tuple[Point2D, Point2D, Point2D, Point2D]:
        return self.quad.outline()


# =============================================================================
# Capabilities
# =============================================================================
class ImageCodec(Protocol):
    """Pixel operations on an opaque image handle."""

    def crop(self, image: Any, pixel_rect: Rect) -> EditableImage:
        """Return the cropped image or raise CropFailure."""
        ...

    def rotate(self, image: Any, radians: float) -> EditableImage | None:
        """Return the rotated image or raise RotateFailure."""
        ...


class RenderSink(Protocol):
    def consume(self, frame: RenderFrame) -> None:
        ...


class EventSource(Protocol):
    """Anything that turns input into events for ``CropSession.handle_event``."""

    def connect_session(self, session: Any) -> None:
        ...
