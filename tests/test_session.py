"""Tests for the CropSession orchestrator and its state machine."""

import logging
import math
import random

import pytest

from image_cropper.errors import (
    CropFailure,
    DegenerateFrame,
    InvalidTransition,
    OperationResult,
    RotateFailure,
    SessionBusy,
)
from image_cropper.events import (
    ContainerResized,
    CropRequested,
    DragBegin,
    DragChanged,
    DragEnded,
    RotateRequested,
)
from image_cropper.models import HandleId, Point2D, Rect, Size2D
from image_cropper.session import CropSession, SessionState

from conftest import FakeCodec, assert_point, editable


def test_initial_layout_and_default_handles(session, sink):
    assert session.state is SessionState.IDLE
    assert session.frame == Rect(Point2D(0, 200), Size2D(400, 400))
    assert session.handles.top_left == Point2D(40, 240)
    assert session.handles.bottom_right == Point2D(360, 560)
    assert len(sink.frames) == 1
    assert sink.last.mask_rect == session.frame
    assert sink.last.outline == (
        Point2D(40, 240), Point2D(360, 240), Point2D(360, 560), Point2D(40, 560),
    )


def test_session_without_container_has_no_frame(codec):
    session = CropSession(codec, editable(400, 400))

    assert session.frame is None
    result = session.begin_drag(HandleId.TOP_LEFT)
    assert not result.ok
    assert isinstance(result.error, DegenerateFrame)


def test_drag_moves_active_handle_and_renders(session, sink):
    assert session.begin_drag(HandleId.TOP_LEFT).ok
    assert session.state is SessionState.DRAGGING
    assert session.active_handle is HandleId.TOP_LEFT

    result = session.update_drag(Point2D(10, 20))

    assert result.ok
    assert result.value == Point2D(50, 260)
    assert session.handles.top_left == Point2D(50, 260)
    assert sink.last.quad == session.handles

    assert session.end_drag().ok
    assert session.state is SessionState.IDLE


def test_drag_past_opposing_handle_is_clamped(session):
    session.begin_drag(HandleId.TOP_LEFT)
    session.update_drag(Point2D(1000, 0))

    assert session.handles.top_left.x == session.handles.top_right.x
    assert session.handles.is_well_formed(tolerance=0.0)


def test_update_drag_without_begin_is_rejected(session):
    before = session.handles

    result = session.update_drag(Point2D(5, 5))

    assert not result.ok
    assert isinstance(result.error, InvalidTransition)
    assert session.handles == before


def test_only_one_handle_may_be_dragged(session):
    session.begin_drag(HandleId.TOP_LEFT)

    result = session.begin_drag(HandleId.BOTTOM_RIGHT)

    assert not result.ok
    assert isinstance(result.error, InvalidTransition)
    assert session.active_handle is HandleId.TOP_LEFT


def test_end_drag_while_idle_is_rejected(session):
    assert isinstance(session.end_drag().error, InvalidTransition)


def test_rotate_and_crop_are_rejected_while_dragging(session, codec):
    session.begin_drag(HandleId.TOP_LEFT)

    assert isinstance(session.rotate().error, InvalidTransition)
    assert isinstance(session.crop().error, InvalidTransition)
    assert codec.rotate_calls == []
    assert codec.crop_calls == []


def test_crop_replaces_image_and_resets_handles(session, codec, sink):
    frames_before = len(sink.frames)

    result = session.crop()

    assert result.ok
    (_, pixel_rect), = codec.crop_calls
    assert pixel_rect == Rect(Point2D(40, 40), Size2D(320, 320))
    assert session.image.size == Size2D(320, 320)
    assert session.image.image.label == "cropped"
    assert session.frame == Rect(Point2D(0, 200), Size2D(400, 400))
    assert session.handles.top_left == Point2D(40, 240)
    assert len(sink.frames) == frames_before + 1
    assert sink.last.image is session.image


def test_crop_maps_to_original_pixels(codec):
    session = CropSession(codec, editable(1200, 1200), Size2D(400, 800))

    session.crop()

    (_, pixel_rect), = codec.crop_calls
    assert pixel_rect == Rect(Point2D(120, 120), Size2D(960, 960))


def test_zero_width_crop_fails_without_touching_state(session, codec, sink):
    session.begin_drag(HandleId.TOP_LEFT)
    session.update_drag(Point2D(1000, 0))
    session.end_drag()
    session.begin_drag(HandleId.BOTTOM_LEFT)
    session.update_drag(Point2D(1000, 0))
    session.end_drag()
    handles, image, frames = session.handles, session.image, len(sink.frames)

    result = session.crop()

    assert not result.ok
    assert isinstance(result.error, CropFailure)
    assert codec.crop_calls == []
    assert session.handles == handles
    assert session.image is image
    assert len(sink.frames) == frames


def test_codec_crop_failure_keeps_state(session, codec, sink):
    codec.fail_crop = True
    handles, image, frames = session.handles, session.image, len(sink.frames)

    result = session.crop()

    assert not result.ok
    assert isinstance(result.error, CropFailure)
    assert session.handles == handles
    assert session.image is image
    assert len(sink.frames) == frames
    assert session.state is SessionState.IDLE


def test_unexpected_codec_error_is_reported_as_crop_failure(session, codec, caplog):
    codec.crop_exception = OSError("truncated file")

    with caplog.at_level(logging.WARNING):
        result = session.crop()

    assert isinstance(result.error, CropFailure)
    assert "truncated file" in result.message
    assert isinstance(result.error.__cause__, OSError)
    assert not session.is_busy
    assert "crop failed" in caplog.text


def test_rotate_swaps_image_and_carries_handles(codec, sink):
    session = CropSession(codec, editable(400, 200), Size2D(400, 800), render_sink=sink)
    before = session.handles

    result = session.rotate()

    assert result.ok
    (_, radians), = codec.rotate_calls
    assert radians == pytest.approx(math.pi / 2)
    assert session.image.size == Size2D(200, 400)
    assert session.frame == Rect(Point2D(0, 0), Size2D(400, 800))
    # Old bottom-left (40, 460) becomes the new top-left, radius doubled
    assert before.bottom_left == Point2D(40, 460)
    assert_point(session.handles.top_left, Point2D(80, 80))
    assert_point(session.handles.bottom_right, Point2D(320, 720))
    assert session.handles.is_well_formed()
    assert all(session.frame.contains(p) for _, p in session.handles.items())
    assert sink.last.image is session.image


def test_rotate_four_times_restores_handles(codec):
    session = CropSession(codec, editable(640, 480), Size2D(500, 700))
    session.begin_drag(HandleId.BOTTOM_RIGHT)
    session.update_drag(Point2D(-37, -12))
    session.end_drag()
    original = session.handles

    for _ in range(4):
        assert session.rotate().ok

    assert session.image.size == Size2D(640, 480)
    for handle, point in original.items():
        assert_point(session.handles[handle], point, abs_tol=1e-6)


@pytest.mark.parametrize("attr", ["fail_rotate", "rotate_returns_none"])
def test_rotate_failure_keeps_state(session, codec, attr):
    setattr(codec, attr, True)
    handles, image, frame = session.handles, session.image, session.frame

    result = session.rotate()

    assert isinstance(result.error, RotateFailure)
    assert session.handles == handles
    assert session.image is image
    assert session.frame == frame


def test_degenerate_resize_disables_geometry(session, codec):
    result = session.resize_container(Size2D(0, 800))

    assert isinstance(result.error, DegenerateFrame)
    assert session.frame is None
    assert isinstance(session.begin_drag(HandleId.TOP_LEFT).error, DegenerateFrame)
    assert isinstance(session.crop().error, DegenerateFrame)
    assert isinstance(session.rotate().error, DegenerateFrame)
    assert codec.crop_calls == []

    assert session.resize_container(Size2D(400, 800)).ok
    assert session.handles.top_left == Point2D(40, 240)


def test_resize_resets_handles(session):
    session.begin_drag(HandleId.TOP_LEFT)
    session.update_drag(Point2D(10, 10))
    session.end_drag()

    session.resize_container(Size2D(800, 400))

    assert session.frame == Rect(Point2D(200, 0), Size2D(400, 400))
    assert session.handles.top_left == Point2D(280, 80)


def test_resize_to_same_size_keeps_handles(session):
    session.begin_drag(HandleId.TOP_LEFT)
    session.update_drag(Point2D(10, 10))
    session.end_drag()
    handles = session.handles

    assert session.resize_container(Size2D(400, 800)).ok
    assert session.handles == handles


def test_reset_restores_default_quad(session):
    default = session.handles
    session.begin_drag(HandleId.BOTTOM_RIGHT)
    session.update_drag(Point2D(-50, -50))
    session.end_drag()

    assert session.reset().ok
    assert session.handles == default


def test_operations_rejected_while_codec_in_flight(sink):
    attempts = {}

    class ReentrantCodec(FakeCodec):
        def crop(self, image, pixel_rect):
            attempts["drag"] = session.begin_drag(HandleId.TOP_LEFT)
            attempts["rotate"] = session.rotate()
            attempts["state"] = session.state
            return super().crop(image, pixel_rect)

    session = CropSession(ReentrantCodec(), editable(400, 400), Size2D(400, 800), render_sink=sink)

    assert session.crop().ok
    assert isinstance(attempts["drag"].error, SessionBusy)
    assert isinstance(attempts["rotate"].error, SessionBusy)
    assert attempts["state"] is SessionState.BUSY
    assert session.state is SessionState.IDLE


def test_handle_event_dispatch(session, codec, sink):
    assert session.handle_event(DragBegin(HandleId.TOP_RIGHT)).ok
    assert session.handle_event(DragChanged(Point2D(-10, 0))).ok
    assert session.handle_event(DragEnded()).ok
    assert session.handles.top_right == Point2D(350, 240)

    assert session.handle_event(RotateRequested()).ok
    assert len(codec.rotate_calls) == 1
    assert session.handle_event(CropRequested()).ok
    assert len(codec.crop_calls) == 1
    assert session.handle_event(ContainerResized(Size2D(300, 300))).ok
    assert session.container_size == Size2D(300, 300)


def test_unknown_event_is_rejected(session):
    assert isinstance(session.handle_event(object()).error, InvalidTransition)


def test_crop_rect_previews(session):
    assert session.crop_rect().value == Rect(Point2D(40, 40), Size2D(320, 320))
    assert session.pixel_crop_rect().value == Rect(Point2D(40, 40), Size2D(320, 320))


def test_injected_logger_receives_failures(codec):
    log = logging.getLogger("tests.crop_session")
    records = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            records.append(record)

    handler = ListHandler()
    log.addHandler(handler)
    try:
        session = CropSession(codec, editable(0, 100), Size2D(400, 400), log=log)
    finally:
        log.removeHandler(handler)

    assert session.frame is None
    assert [r.levelno for r in records] == [logging.WARNING]
    assert "DegenerateFrame" in records[0].getMessage()


def drag(session, handle, dx, dy):
    assert session.begin_drag(handle).ok
    assert session.update_drag(Point2D(dx, dy)).ok
    assert session.end_drag().ok


def assert_quad_valid(session):
    assert session.handles.is_well_formed(tolerance=0.0), session.handles
    assert all(session.frame.contains(p) for _, p in session.handles.items())


@pytest.mark.parametrize(
    "image_size, container, drags",
    [
        (
            Size2D(2027, 2466),
            Size2D(1224.03, 1313.24),
            [(HandleId.TOP_LEFT, 1666.07, -372.48), (HandleId.BOTTOM_LEFT, 1187.86, -395.94)],
        ),
        (Size2D(400, 200), Size2D(400, 800), [(HandleId.TOP_LEFT, 1000, 0), (HandleId.BOTTOM_LEFT, 1000, 0)]),
        (Size2D(640, 480), Size2D(500, 700), [(HandleId.TOP_LEFT, 0, 1000), (HandleId.TOP_RIGHT, 0, 1000)]),
        (Size2D(333, 777), Size2D(901.7, 412.3), [(HandleId.BOTTOM_RIGHT, -1000, -1000)]),
        (Size2D(1921, 1081), Size2D(1366.6, 767.9), [(HandleId.TOP_RIGHT, -5000, 5000)]),
    ],
)
def test_rotating_collapsed_quad_keeps_results_well_formed(codec, image_size, container, drags):
    session = CropSession(codec, editable(image_size.width, image_size.height), container)
    for handle, dx, dy in drags:
        drag(session, handle, dx, dy)

    for _ in range(4):
        assert session.rotate().ok
        assert_quad_valid(session)

        rect = session.crop_rect()
        assert rect.ok
        assert rect.value.width >= 0 and rect.value.height >= 0

        pixel = session.pixel_crop_rect()
        assert pixel.ok or isinstance(pixel.error, CropFailure)

    result = session.crop()
    assert result.ok or isinstance(result.error, CropFailure)


@pytest.mark.parametrize("seed", range(5))
def test_random_edit_sequences_always_return_results(codec, seed):
    rng = random.Random(seed)
    session = CropSession(
        codec,
        editable(rng.randint(1, 4000), rng.randint(1, 4000)),
        Size2D(rng.uniform(50, 2000), rng.uniform(50, 2000)),
    )

    for _ in range(200):
        action = rng.choice(["drag", "drag", "drag", "rotate", "crop"])
        if action == "drag":
            handle = rng.choice(list(HandleId))
            session.begin_drag(handle)
            delta = Point2D(rng.uniform(-3000, 3000), rng.uniform(-3000, 3000))
            result = session.update_drag(delta)
            session.end_drag()
        elif action == "rotate":
            result = session.rotate()
        else:
            result = session.crop()

        assert isinstance(result, OperationResult)
        assert session.state is SessionState.IDLE
        assert_quad_valid(session)
        assert session.crop_rect().ok
        assert isinstance(session.pixel_crop_rect(), OperationResult)
