"""
Main application window.

Hosts the crop canvas, loads images in the background, routes the
Rotate / Crop / Reset actions to the ``CropSession`` and saves the result.
"""

import logging
from pathlib import Path

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel,
    QFileDialog, QMessageBox, QStatusBar, QToolBar, QComboBox, QApplication,
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeySequence, QShortcut

from image_cropper.config import IMAGE_EXTENSIONS, OUTPUT_FORMATS, OUTPUT_FORMAT_DEFAULT
from image_cropper.crop_widget import CropCanvas, ImageLoaderThread
from image_cropper.errors import OperationResult
from image_cropper.events import CropRequested, RotateRequested
from image_cropper.image_io import PillowCodec, save_image, to_editable
from image_cropper.session import CropSession

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Image Cropper")
        self.setMinimumSize(600, 500)

        # Screen-aware startup size, clamped to 80% of screen
        preferred_w, preferred_h = 1024, 900
        screen = QApplication.primaryScreen()
        if screen is not None:
            avail = screen.availableGeometry()
            preferred_w = min(preferred_w, int(avail.width() * 0.8))
            preferred_h = min(preferred_h, int(avail.height() * 0.8))
        self.resize(preferred_w, preferred_h)

        self._codec = PillowCodec()
        self._session: CropSession | None = None
        self._image_path: Path | None = None
        self._loader: ImageLoaderThread | None = None

        self._build_ui()
        self._update_button_states()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        self._build_toolbar()

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(4, 4, 4, 4)

        self._canvas = CropCanvas()
        self._canvas.crop_changed.connect(self._update_crop_info)
        self._canvas.operation_failed.connect(self._on_operation_failed)
        layout.addWidget(self._canvas, stretch=1)

        self._crop_info_label = QLabel("Crop: —")
        layout.addWidget(self._crop_info_label)

        buttons = QHBoxLayout()
        self._btn_crop = QPushButton("Crop")
        self._btn_crop.clicked.connect(self._crop)
        buttons.addWidget(self._btn_crop)
        self._btn_rotate = QPushButton("Rotate")
        self._btn_rotate.clicked.connect(self._rotate)
        buttons.addWidget(self._btn_rotate)
        layout.addLayout(buttons)

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._status.showMessage("Open an image to begin.")

        # --- Keyboard Shortcuts ---
        QShortcut(QKeySequence(Qt.Key.Key_C), self, self._crop)
        QShortcut(QKeySequence(Qt.Key.Key_R), self, self._rotate)
        QShortcut(QKeySequence(Qt.Key.Key_Escape), self, self._reset)

    def _build_toolbar(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        act_open = QAction("📂 Open Image", self)
        act_open.setShortcut(QKeySequence.StandardKey.Open)
        act_open.triggered.connect(self._select_image)
        toolbar.addAction(act_open)

        act_save = QAction("💾 Save As…", self)
        act_save.setShortcut(QKeySequence.StandardKey.Save)
        act_save.triggered.connect(self._save)
        toolbar.addAction(act_save)
        self._act_save = act_save

        toolbar.addSeparator()
        toolbar.addWidget(QLabel(" Format: "))
        self._format_combo = QComboBox()
        self._format_combo.addItems(OUTPUT_FORMATS)
        self._format_combo.setCurrentText(OUTPUT_FORMAT_DEFAULT)
        toolbar.addWidget(self._format_combo)

        toolbar.addSeparator()
        act_reset = QAction("↺ Reset Handles", self)
        act_reset.triggered.connect(self._reset)
        toolbar.addAction(act_reset)
        self._act_reset = act_reset

    # =========================================================================
    # Image loading
    # =========================================================================

    def _select_image(self):
        patterns = " ".join(f"*{ext}" for ext in sorted(IMAGE_EXTENSIONS))
        start = str(self._image_path.parent if self._image_path else Path.home())
        path, _ = QFileDialog.getOpenFileName(self, "Open Image", start, f"Images ({patterns})")
        if not path:
            return
        self.load_image(Path(path))

    def load_image(self, path: Path):
        self._image_path = path
        self._canvas.connect_session(None)
        self._session = None
        self._canvas.set_loading(True)
        self._update_button_states()

        # Cancel any previous loader
        if self._loader is not None:
            try:
                self._loader.finished.disconnect()
                self._loader.error.disconnect()
            except (TypeError, RuntimeError):
                pass  # Already disconnected or destroyed
            if self._loader.isRunning():
                self._loader.quit()
                self._loader.wait(500)

        self._loader = ImageLoaderThread(path, self)
        self._loader.finished.connect(lambda image, p=path: self._on_image_loaded(p, image))
        self._loader.error.connect(self._on_image_load_error)
        self._loader.start()

    def _on_image_loaded(self, path: Path, image):
        """Called when background image loading completes."""
        if path != self._image_path:
            return  # User opened another file before loading finished
        self._session = CropSession(self._codec, to_editable(image))
        self._canvas.connect_session(self._session)
        self._status.showMessage(f"{path.name}  ({image.width}×{image.height})")
        logger.info("Loaded %s (%dx%d)", path, image.width, image.height)
        self._update_button_states()

    def _on_image_load_error(self, error: str):
        """Called when background image loading fails."""
        self._canvas.set_loading(False)
        logger.error("Failed to load %s: %s", self._image_path, error)
        self._status.showMessage(f"Failed to load image: {error}")

    # =========================================================================
    # Crop actions
    # =========================================================================

    def _rotate(self):
        if self._session is None:
            return
        self._report(self._session.handle_event(RotateRequested()), "Rotated")

    def _crop(self):
        if self._session is None:
            return
        self._report(self._session.handle_event(CropRequested()), "Cropped")

    def _reset(self):
        if self._session is None:
            return
        self._report(self._session.reset(), "Handles reset")

    def _report(self, result: OperationResult, done: str):
        if not result.ok:
            self._on_operation_failed(result.message)
            return
        size = self._session.image.size
        self._status.showMessage(f"{done}: image is now {size.width:g}×{size.height:g}")

    def _on_operation_failed(self, message: str):
        self._status.showMessage(f"⚠ {message}")

    def _update_crop_info(self):
        if self._session is None:
            self._crop_info_label.setText("Crop: —")
            return
        result = self._session.pixel_crop_rect()
        if not result.ok:
            self._crop_info_label.setText("Crop: —")
            return
        rect = result.value
        self._crop_info_label.setText(
            f"Crop: {round(rect.width)}×{round(rect.height)}  "
            f"Position: ({round(rect.x)}, {round(rect.y)})"
        )

    def _update_button_states(self):
        has_session = self._session is not None
        self._btn_crop.setEnabled(has_session)
        self._btn_rotate.setEnabled(has_session)
        self._act_save.setEnabled(has_session)
        self._act_reset.setEnabled(has_session)

    # =========================================================================
    # Saving
    # =========================================================================

    def _save(self):
        if self._session is None or self._image_path is None:
            return
        fmt = self._format_combo.currentText()
        default = self._image_path.with_name(f"{self._image_path.stem}-cropped")
        path, _ = QFileDialog.getSaveFileName(self, "Save Cropped Image", str(default))
        if not path:
            return
        try:
            out_path = save_image(self._session.image.image, Path(path), fmt)
        except (OSError, ValueError) as exc:
            logger.error("Could not save %s: %s", path, exc)
            QMessageBox.critical(self, "Save Failed", f"Could not save image:\n{exc}")
            return
        self._status.showMessage(f"Saved: {out_path}")
