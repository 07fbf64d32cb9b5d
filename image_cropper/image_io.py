"""
Qt-free image I/O and the Pillow-backed image codec.

``PillowCodec`` implements the ``ImageCodec`` capability used by
``CropSession`` on ``PIL.Image.Image`` handles.  The module also opens
images (including PSD through psd-tools), saves results and generates
unique output paths.
"""

import logging
import math
from pathlib import Path

from PIL import Image
from psd_tools import PSDImage

from image_cropper.config import (
    JPEG_QUALITY_DEFAULT,
    JPEG_QUALITY_MAX,
    JPEG_QUALITY_MIN,
    OUTPUT_FORMATS,
    PNG_COMPRESS_LEVEL,
)
from image_cropper.errors import CropFailure, RotateFailure
from image_cropper.models import EditableImage, Rect, Size2D

logger = logging.getLogger(__name__)

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None

# Clockwise quarter turns on screen -> Pillow transpose (Pillow's ROTATE_* turn counter-clockwise)
_QUARTER_TURN_TRANSPOSE = {
    1: Image.Transpose.ROTATE_270,
    2: Image.Transpose.ROTATE_180,
    3: Image.Transpose.ROTATE_90,
}


def to_editable(image: Image.Image) -> EditableImage:
    """Wrap a PIL image together with its pixel size."""
    return EditableImage(image, Size2D(image.width, image.height))


# =============================================================================
# Codec
# =============================================================================
class PillowCodec:
    """Crop and rotate ``PIL.Image.Image`` handles."""

    def crop(self, image: Image.Image, pixel_rect: Rect) -> EditableImage:
        """Crop to *pixel_rect*, rounded to whole pixels and clipped to the image."""
        left = max(0, round(pixel_rect.min_x))
        top = max(0, round(pixel_rect.min_y))
        right = min(image.width, round(pixel_rect.max_x))
        bottom = min(image.height, round(pixel_rect.max_y))
        if right <= left or bottom <= top:
            raise CropFailure(
                f"Crop box ({left}, {top}, {right}, {bottom}) is empty for a "
                f"{image.width} x {image.height} image"
            )
        cropped = image.crop((left, top, right, bottom))
        logger.debug("Cropped %dx%d image to box %s", image.width, image.height, (left, top, right, bottom))
        return to_editable(cropped)

    def rotate(self, image: Image.Image, radians: float) -> EditableImage:
        """Rotate by *radians*, positive meaning clockwise on screen.

        Quarter turns are lossless transposes; any other angle is resampled
        onto an expanded canvas.
        """
        if not math.isfinite(radians):
            raise RotateFailure(f"Cannot rotate by {radians} radians")

        turns = radians / (math.pi / 2)
        quarter_turns = round(turns)
        if math.isclose(turns, quarter_turns, abs_tol=1e-9):
            transpose = _QUARTER_TURN_TRANSPOSE.get(quarter_turns % 4)
            rotated = image.transpose(transpose) if transpose is not None else image.copy()
        else:
            rotated = image.rotate(
                -math.degrees(radians),
                resample=Image.Resampling.BICUBIC,
                expand=True,
            )
        return to_editable(rotated)


# =============================================================================
# Files
# =============================================================================
def open_image(path: Path) -> Image.Image:
    """Open an image file, using psd-tools for PSD and Pillow for the rest."""
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return psd.composite()
    with Image.open(path) as img:
        img.load()
        return img.copy() if img.mode in ("RGB", "RGBA", "L") else img.convert("RGBA")


def save_image(
    image: Image.Image,
    out_path: Path,
    fmt: str = "PNG",
    jpeg_quality: int = JPEG_QUALITY_DEFAULT,
    compress_level: int = PNG_COMPRESS_LEVEL,
) -> Path:
    """Save *image* without overwriting anything; returns the path written."""
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format {fmt!r} (expected one of {OUTPUT_FORMATS})")

    out_path.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "JPEG":
        out_path = unique_path(out_path.with_suffix(".jpg"))
        quality = max(JPEG_QUALITY_MIN, min(JPEG_QUALITY_MAX, int(jpeg_quality)))
        image.convert("RGB").save(str(out_path), "JPEG", quality=quality, optimize=True)
    else:
        out_path = unique_path(out_path.with_suffix(".png"))
        image.save(str(out_path), "PNG", compress_level=compress_level)
    logger.info("Saved %dx%d image to %s", image.width, image.height, out_path)
    return out_path


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
