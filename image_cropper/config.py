"""
Application constants and configuration.

Geometry constants drive the crop session (default handle inset, rotation
step, tolerances).  Styling constants are read by the Qt canvas only, and
the export settings by ``image_io.save_image``.  Logging defaults are
consumed by ``logging_config.setup_logging``.
"""

import math

# =============================================================================
# APP IDENTITY
# =============================================================================
APP_NAME = "image-cropper"

# =============================================================================
# GEOMETRY
# =============================================================================
# Default handles sit container_width / DEFAULT_INSET_DIVISOR inside the frame
DEFAULT_INSET_DIVISOR = 10

# One press of "Rotate" turns the image a quarter turn clockwise
ROTATION_STEP = math.pi / 2

# Pixel rects may overshoot the image bounds by this much before a crop fails
PIXEL_TOLERANCE = 0.5

# Slack for comparing handle coordinates after floating-point round trips
GEOMETRY_TOLERANCE = 1e-9

# =============================================================================
# CANVAS STYLING
# =============================================================================
# Handle hit area (pixels in screen coordinates); the drawn knob is half of it
HANDLE_SIZE = 64
HANDLE_ICON_SIZE = 32

# Darkened area outside the crop quadrilateral
MASK_OPACITY = 0.5

# Dashed crop outline
OUTLINE_WIDTH = 2
OUTLINE_DASH = (4, 4)

# Nudge amounts (pixels in screen coordinates)
NUDGE_SMALL = 1
NUDGE_LARGE = 10

# =============================================================================
# FILE HANDLING & EXPORT
# =============================================================================
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tiff", ".tif", ".webp", ".psd"}

# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9

# JPEG export defaults
JPEG_QUALITY_DEFAULT = 95
JPEG_QUALITY_MIN = 1
JPEG_QUALITY_MAX = 100

# Output format options
OUTPUT_FORMATS = ["PNG", "JPEG"]
OUTPUT_FORMAT_DEFAULT = "PNG"

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL_ENV = "IMAGE_CROPPER_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"
