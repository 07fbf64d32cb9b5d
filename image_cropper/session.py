"""
Crop session: the orchestrator behind the interactive crop editor.

``CropSession`` owns the editable image, the displayed-image frame and the
four handle centers, and sequences drag, rotate and crop operations through
the pure geometry modules.  It runs synchronously on the thread that
delivers events.  Every public operation returns an ``OperationResult``;
errors raised underneath are logged and handed back, never propagated.

State machine::

    IDLE --begin_drag--> DRAGGING --end_drag--> IDLE
    IDLE --rotate/crop--> BUSY (codec call in flight) --> IDLE
"""

import logging
from enum import Enum
from typing import Callable

from image_cropper.config import ROTATION_STEP
from image_cropper.constraints import apply_drag, clamp_to_frame
from image_cropper.errors import (
    CropFailure,
    CropperError,
    DegenerateFrame,
    InvalidTransition,
    OperationResult,
    RotateFailure,
    SessionBusy,
)
from image_cropper.events import (
    ContainerResized,
    CropEvent,
    CropRequested,
    DragBegin,
    DragChanged,
    DragEnded,
    ImageCodec,
    RenderFrame,
    RenderSink,
    RotateRequested,
)
from image_cropper.geometry import compute_crop_rect, crop_pixel_rect
from image_cropper.mapping import compute_aspect_fit_frame, default_handles
from image_cropper.models import CropQuad, EditableImage, HandleId, Point2D, Rect, Size2D
from image_cropper.rotation import remap_handles, resize_percentage

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    BUSY = "busy"


class CropSession:
    """Owns crop state and applies drag, rotate and crop operations to it."""

    def __init__(
        self,
        codec: ImageCodec,
        image: EditableImage,
        container_size: Size2D | None = None,
        render_sink: RenderSink | None = None,
        log: logging.Logger | None = None,
    ):
        self._codec = codec
        self._image = image
        self._render_sink = render_sink
        self._log = log or logger

        self._container_size: Size2D | None = None
        self._frame: Rect | None = None
        self._handles: CropQuad | None = None
        self._active_handle: HandleId | None = None
        self._busy = False

        if container_size is not None:
            self.resize_container(container_size)

    # --- Read-only state ---

    @property
    def state(self) -> SessionState:
        if self._busy:
            return SessionState.BUSY
        if self._active_handle is not None:
            return SessionState.DRAGGING
        return SessionState.IDLE

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def active_handle(self) -> HandleId | None:
        return self._active_handle

    @property
    def handles(self) -> CropQuad | None:
        return self._handles

    @property
    def frame(self) -> Rect | None:
        return self._frame

    @property
    def image(self) -> EditableImage:
        return self._image

    @property
    def container_size(self) -> Size2D | None:
        return self._container_size

    def set_render_sink(self, sink: RenderSink | None):
        self._render_sink = sink
        self._emit()

    # --- Layout ---

    def resize_container(self, size: Size2D) -> OperationResult:
        """Recompute the displayed frame for a new container size and reset the handles."""
        try:
            self._require_not_busy("resize")
        except CropperError as exc:
            return self._fail("resize", exc)

        if size == self._container_size and self._frame is not None:
            return OperationResult.success(self._frame)

        self._container_size = size
        self._active_handle = None
        try:
            frame = compute_aspect_fit_frame(self._image.size, size)
        except DegenerateFrame as exc:
            self._frame = None
            self._handles = None
            return self._fail("resize", exc)

        self._frame = frame
        self._handles = default_handles(frame, size)
        self._log.debug("Container resized to %s -> frame %s", size, frame)
        self._emit()
        return OperationResult.success(frame)

    def reset(self) -> OperationResult:
        """Put the handles back on the default inset quadrilateral."""
        try:
            self._require_idle("reset")
            frame = self._require_frame()
        except CropperError as exc:
            return self._fail("reset", exc)
        self._handles = default_handles(frame, self._container_size)
        self._emit()
        return OperationResult.success(self._handles)

    # --- Dragging ---

    def begin_drag(self, handle: HandleId) -> OperationResult:
        try:
            self._require_not_busy("begin_drag")
            self._require_frame()
            if self._active_handle is not None:
                raise InvalidTransition(
                    f"Cannot drag {handle.value} while {self._active_handle.value} is active"
                )
        except CropperError as exc:
            return self._fail("begin_drag", exc)
        self._active_handle = handle
        return OperationResult.success(handle)

    def update_drag(self, delta: Point2D) -> OperationResult:
        """Move the active handle by *delta*, clamped so the quad cannot invert."""
        try:
            self._require_not_busy("update_drag")
            if self._active_handle is None:
                raise InvalidTransition("No handle is being dragged")
            frame = self._require_frame()
        except CropperError as exc:
            return self._fail("update_drag", exc)

        self._handles = apply_drag(self._active_handle, self._handles, delta, frame)
        self._emit()
        return OperationResult.success(self._handles[self._active_handle])

    def end_drag(self) -> OperationResult:
        if self._active_handle is None:
            return self._fail("end_drag", InvalidTransition("No handle is being dragged"))
        handle, self._active_handle = self._active_handle, None
        return OperationResult.success(handle)

    # --- Image operations ---

    def rotate(self) -> OperationResult:
        """Turn the image a quarter turn clockwise, carrying the handles along."""
        try:
            self._require_idle("rotate")
            frame = self._require_frame()
            rotated = self._run_codec(self._codec.rotate, RotateFailure, self._image.image, ROTATION_STEP)
            if rotated is None or rotated.size.is_empty:
                raise RotateFailure("Codec returned no rotated image")
            new_frame = compute_aspect_fit_frame(rotated.size, self._container_size)
        except CropperError as exc:
            return self._fail("rotate", exc)

        resize = resize_percentage(frame.size, new_frame.size)
        handles = remap_handles(self._handles, new_frame.center, resize)

        self._image = rotated
        self._frame = new_frame
        self._handles = clamp_to_frame(handles, new_frame)
        self._log.debug("Rotated image to %s, handle radius scaled by %.4f", rotated.size, resize)
        self._emit()
        return OperationResult.success(rotated)

    def crop(self) -> OperationResult:
        """Crop the image to the handles' rectangle and start over on the result."""
        try:
            self._require_idle("crop")
            frame = self._require_frame()
            pixel_rect = crop_pixel_rect(self._handles, frame, self._image.size)
            cropped = self._run_codec(self._codec.crop, CropFailure, self._image.image, pixel_rect)
            if cropped is None or cropped.size.is_empty:
                raise CropFailure("Codec returned no cropped image")
            new_frame = compute_aspect_fit_frame(cropped.size, self._container_size)
        except CropperError as exc:
            return self._fail("crop", exc)

        self._image = cropped
        self._frame = new_frame
        self._handles = default_handles(new_frame, self._container_size)
        self._log.debug("Cropped %s to %s", pixel_rect, cropped.size)
        self._emit()
        return OperationResult.success(cropped)

    # --- Previews ---

    def crop_rect(self) -> OperationResult:
        """Current crop rect in displayed-image space."""
        try:
            frame = self._require_frame()
        except CropperError as exc:
            return self._fail("crop_rect", exc, level=logging.DEBUG)
        return OperationResult.success(compute_crop_rect(self._handles, frame))

    def pixel_crop_rect(self) -> OperationResult:
        """Current crop rect in original-pixel space."""
        try:
            frame = self._require_frame()
            rect = crop_pixel_rect(self._handles, frame, self._image.size)
        except CropperError as exc:
            return self._fail("pixel_crop_rect", exc, level=logging.DEBUG)
        return OperationResult.success(rect)

    # --- Event dispatch ---

    def handle_event(self, event: CropEvent) -> OperationResult:
        if isinstance(event, DragBegin):
            return self.begin_drag(event.handle)
        if isinstance(event, DragChanged):
            return self.update_drag(event.delta)
        if isinstance(event, DragEnded):
            return self.end_drag()
        if isinstance(event, RotateRequested):
            return self.rotate()
        if isinstance(event, CropRequested):
            return self.crop()
        if isinstance(event, ContainerResized):
            return self.resize_container(event.size)
        return self._fail("handle_event", InvalidTransition(f"Unsupported event {event!r}"))

    # --- Internals ---

    def _require_not_busy(self, operation: str):
        if self._busy:
            raise SessionBusy(f"Cannot {operation} while an image operation is in progress")

    def _require_idle(self, operation: str):
        self._require_not_busy(operation)
        if self._active_handle is not None:
            raise InvalidTransition(f"Cannot {operation} while dragging {self._active_handle.value}")

    def _require_frame(self) -> Rect:
        if self._frame is None or self._handles is None:
            raise DegenerateFrame("No displayed image frame")
        return self._frame

    def _run_codec(self, operation: Callable, failure_type: type[CropperError], *args):
        """Call into the codec with the session locked."""
        self._busy = True
        try:
            return operation(*args)
        except CropperError:
            raise
        except Exception as exc:
            name = getattr(operation, "__name__", repr(operation))
            self._log.error("Image codec raised during %s", name, exc_info=True)
            raise failure_type(str(exc)) from exc
        finally:
            self._busy = False

    def _fail(self, operation: str, error: CropperError, level: int = logging.WARNING) -> OperationResult:
        self._log.log(level, "%s failed: %s: %s", operation, type(error).__name__, error)
        return OperationResult.failure(error)

    def _emit(self):
        if self._render_sink is None or self._frame is None or self._handles is None:
            return
        self._render_sink.consume(RenderFrame(self._handles, self._frame, self._image))
