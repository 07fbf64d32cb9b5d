"""Shared fakes and fixtures for the crop-session tests."""

import pytest

from image_cropper.errors import CropFailure, RotateFailure
from image_cropper.models import EditableImage, Point2D, Rect, Size2D
from image_cropper.session import CropSession


class FakeImage:
    """Stand-in image handle that only knows its size."""

    def __init__(self, width: float, height: float, label: str = "image"):
        self.width = width
        self.height = height
        self.label = label

    def __repr__(self):
        return f"FakeImage({self.label}, {self.width}x{self.height})"


def editable(width: float, height: float, label: str = "image") -> EditableImage:
    return EditableImage(FakeImage(width, height, label), Size2D(width, height))


class FakeCodec:
    """Records calls and returns size-correct fake images."""

    def __init__(self):
        self.crop_calls: list[tuple[FakeImage, Rect]] = []
        self.rotate_calls: list[tuple[FakeImage, float]] = []
        self.fail_crop = False
        self.fail_rotate = False
        self.rotate_returns_none = False
        self.crop_exception: Exception | None = None

    def crop(self, image, pixel_rect):
        self.crop_calls.append((image, pixel_rect))
        if self.crop_exception is not None:
            raise self.crop_exception
        if self.fail_crop:
            raise CropFailure("codec rejected the rect")
        return editable(round(pixel_rect.width), round(pixel_rect.height), "cropped")

    def rotate(self, image, radians):
        self.rotate_calls.append((image, radians))
        if self.fail_rotate:
            raise RotateFailure("codec could not rotate")
        if self.rotate_returns_none:
            return None
        return editable(image.height, image.width, "rotated")


class RecordingSink:
    def __init__(self):
        self.frames = []

    def consume(self, frame):
        self.frames.append(frame)

    @property
    def last(self):
        return self.frames[-1]


@pytest.fixture
def codec():
    return FakeCodec()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def session(codec, sink):
    """A 400x400 image shown in a 400x800 container."""
    return CropSession(codec, editable(400, 400), Size2D(400, 800), render_sink=sink)


def assert_point(actual: Point2D, expected: Point2D, abs_tol: float = 1e-6):
    assert actual.x == pytest.approx(expected.x, abs=abs_tol)
    assert actual.y == pytest.approx(expected.y, abs=abs_tol)
