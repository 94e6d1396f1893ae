"""Mosaic session: the state one user works on, and the operations on it.

A session holds the configuration, the selected source image and its
grid-sized intermediate, the tile catalog, and the last rendered canvas.
Every operation takes the session lock for its whole duration, so one
operation runs at a time.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import numpy as np
from PIL import Image

from tile_mosaic.assembler import MosaicResult, assemble_mosaic
from tile_mosaic.catalog import Catalog, build_catalog
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import InputError, PreconditionError
from tile_mosaic.image_io import load_image, resize_to_fill, save_canvas

logger = logging.getLogger(__name__)


class MosaicSession:
    """Stateful driver for select → rebuild → refresh → export."""

    def __init__(self, config: MosaicConfig | None = None) -> None:
        self._lock = threading.RLock()
        self.cancel = threading.Event()
        self.config = config or MosaicConfig()
        self.source: Image.Image | None = None
        self.intermediate: np.ndarray | None = None
        self.catalog: Catalog | None = None
        self.result: MosaicResult | None = None

    @property
    def canvas(self) -> np.ndarray | None:
        return self.result.canvas if self.result is not None else None

    # -- source image ------------------------------------------------------

    def select_image(self, path: str | Path) -> np.ndarray:
        """Load *path* as the source image and derive the intermediate grid."""
        path = Path(path)
        with self._lock:
            try:
                source = load_image(path)
            except (OSError, ValueError) as exc:
                msg = f"Failed to open input image {path}: {exc}"
                raise InputError(msg) from exc
            self.config = self.config.updated(input_path=path)
            logger.info("Selected image %s (%dx%d)", path, *source.size)
            return self.use_image(source)

    def use_image(self, image: Image.Image) -> np.ndarray:
        """Adopt an already decoded image as the source."""
        with self._lock:
            self.source = image.convert("RGBA")
            return self.reload_image()

    def reload_image(self) -> np.ndarray:
        """Re-derive the intermediate grid from the current source."""
        with self._lock:
            if self.source is None:
                msg = "No input image selected"
                raise InputError(msg)
            w, h = self.config.grid_size
            self.intermediate = resize_to_fill(self.source, w, h)
            logger.info("Intermediate image %dx%d", w, h)
            return self.intermediate

    # -- catalog -----------------------------------------------------------

    def select_library(self, path: str | Path) -> None:
        with self._lock:
            self.config = self.config.updated(library_path=Path(path))
            logger.info("Selected library %s", path)

    def rebuild_catalog(self, path: str | Path | None = None) -> Catalog:
        """Replace the catalog with a fresh scan of the library folder."""
        with self._lock:
            if path is not None:
                self.select_library(path)
            if self.config.library_path is None:
                msg = "No library folder selected"
                raise InputError(msg)
            self.cancel.clear()
            self.catalog = build_catalog(
                self.config.library_path,
                subpixel_size=self.config.subpixel_size,
                extensions=self.config.SUPPORTED_EXTENSIONS,
                cancel=self.cancel,
            )
            return self.catalog

    # -- matching ----------------------------------------------------------

    def refresh(self) -> np.ndarray:
        """Run one matching + assembly pass and keep the canvas."""
        with self._lock:
            if self.intermediate is None:
                msg = "Cannot build a mosaic without an intermediate image; select an image first"
                raise PreconditionError(msg)
            if self.catalog is None:
                msg = "Cannot build a mosaic without a tile catalog; rebuild the catalog first"
                raise PreconditionError(msg)
            cfg = self.config
            if self.catalog.subpixel_size != cfg.subpixel_size:
                msg = (
                    f"Catalog thumbnails are {self.catalog.subpixel_size}px but "
                    f"subpixel_size is {cfg.subpixel_size}; rebuild the catalog first"
                )
                raise PreconditionError(msg)
            self.cancel.clear()
            self.result = assemble_mosaic(
                self.intermediate,
                self.catalog,
                threshold=cfg.unique_threshold,
                unique=cfg.prioritize_unique,
                subpixel_size=cfg.subpixel_size,
                color_space=cfg.color_space,
                cancel=self.cancel,
            )
            return self.result.canvas

    def export(self, path: str | Path | None = None) -> Path:
        """Save the current canvas as PNG and return where it went."""
        with self._lock:
            if self.result is None:
                msg = "Nothing to export; refresh the mosaic first"
                raise PreconditionError(msg)
            target = Path(path) if path is not None else self.config.output_path
            try:
                save_canvas(self.result.canvas, target)
            except OSError as exc:
                msg = f"Failed to save output image {target}: {exc}"
                raise InputError(msg) from exc
            logger.info("Exported mosaic to %s", target)
            return target

    # -- configuration -----------------------------------------------------

    def get_config(self) -> MosaicConfig:
        with self._lock:
            return self.config

    def set_config(self, config: MosaicConfig) -> None:
        """Replace the configuration and refresh state that depends on it.

        A new grid size re-derives the intermediate image. A new
        subpixel size invalidates the catalog's thumbnails, so the catalog
        is rebuilt when a library is selected and dropped otherwise.
        """
        with self._lock:
            old = self.config
            logger.debug("Old config: %s", old)
            logger.debug("New config: %s", config)
            self.config = config

            if config.grid_size != old.grid_size and self.source is not None:
                self.reload_image()

            if (
                self.catalog is not None
                and config.subpixel_size != self.catalog.subpixel_size
            ):
                self.catalog = None
                if config.library_path is not None:
                    self.rebuild_catalog()

    def update_config(self, **changes: object) -> MosaicConfig:
        with self._lock:
            self.set_config(self.config.updated(**changes))
            return self.config
