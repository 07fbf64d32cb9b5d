"""Interactive crop-and-rotate editor built on a Qt-free geometry core."""

__version__ = "1.0.0"
