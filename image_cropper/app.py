"""
Application entry point.

Usage:
    python -m image_cropper [IMAGE]
    image-cropper [IMAGE]          (after pip install)
"""

import sys
from pathlib import Path

from PyQt6.QtWidgets import QApplication

from image_cropper.config import APP_NAME
from image_cropper.logging_config import setup_logging
from image_cropper.main_window import MainWindow


def main():
    setup_logging()
    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)

    window = MainWindow()
    window.show()
    if len(sys.argv) > 1:
        window.load_image(Path(sys.argv[1]))

    try:
        sys.exit(app.exec())
    except (SystemExit, KeyboardInterrupt):
        pass


if __name__ == "__main__":
    main()
