"""Tile catalog: the library of candidate images a mosaic is built from.

A catalog is built from one folder. Each usable file becomes a
:class:`Tile` carrying its average colour and a fixed-size thumbnail.
Files that cannot be decoded or have no visible pixels are logged and
skipped; the rebuild itself only fails when the folder is unusable.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from tile_mosaic.color_utils import RGB, average_color
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import InputError, MosaicCancelled
from tile_mosaic.image_io import make_thumbnail

logger = logging.getLogger(__name__)

Averager = Callable[[Path], RGB | None]
Thumbnailer = Callable[[Path, int], np.ndarray]


@dataclass(frozen=True, eq=False)
class Tile:
    """One library image reduced to what matching and assembly need.

    Attributes:
        index:     Position in the catalog; stable for one catalog generation.
        path:      Source file.
        avg_color: Average (r, g, b) of the source.
        thumbnail: Read-only (S, S, 4) uint8 RGBA block.
    """

    index: int
    path: Path
    avg_color: RGB
    thumbnail: np.ndarray


class Catalog:
    """Ordered, immutable collection of tiles sharing one thumbnail size."""

    def __init__(self, tiles: Iterable[Tile] = (), subpixel_size: int = 16) -> None:
        self._tiles = tuple(tiles)
        self.subpixel_size = subpixel_size
        for i, tile in enumerate(self._tiles):
            if tile.index != i:
                msg = f"Tile index {tile.index} at position {i}; indices must be sequential"
                raise ValueError(msg)
        colors = np.array([t.avg_color for t in self._tiles], dtype=np.float64)
        self._colors = colors.reshape(-1, 3)
        self._colors.setflags(write=False)

    def __len__(self) -> int:
        return len(self._tiles)

    def __iter__(self) -> Iterator[Tile]:
        return iter(self._tiles)

    def __getitem__(self, index: int) -> Tile:
        return self._tiles[index]

    def __bool__(self) -> bool:
        return bool(self._tiles)

    def __repr__(self) -> str:
        return f"Catalog({len(self)} tiles, subpixel_size={self.subpixel_size})"

    @property
    def colors(self) -> np.ndarray:
        """(N, 3) float64 average colours in catalog order."""
        return self._colors

    @classmethod
    def from_colors(
        cls,
        colors: Iterable[RGB],
        subpixel_size: int = 16,
    ) -> Catalog:
        """Build a catalog of solid-colour tiles without touching the disk.

        Handy for previews and tests; each tile's thumbnail is filled with
        its own average colour.
        """
        tiles = []
        for i, color in enumerate(colors):
            r, g, b = (int(c) for c in color)
            thumb = np.empty((subpixel_size, subpixel_size, 4), dtype=np.uint8)
            thumb[:] = (r, g, b, 255)
            thumb.setflags(write=False)
            tiles.append(Tile(i, Path(f"<solid {r},{g},{b}>"), (r, g, b), thumb))
        return cls(tiles, subpixel_size)


def collect_images(folder: Path, extensions: frozenset[str]) -> list[Path]:
    """Image files directly inside *folder*, sorted by path."""
    if not folder.exists():
        msg = f"Library folder does not exist: {folder}"
        raise InputError(msg)
    if not folder.is_dir():
        msg = f"Library path is not a folder: {folder}"
        raise InputError(msg)
    try:
        entries = list(folder.iterdir())
    except OSError as exc:
        msg = f"Cannot read library folder {folder}: {exc}"
        raise InputError(msg) from exc
    return sorted(
        f for f in entries
        if f.is_file() and f.suffix.lower() in extensions
    )


def build_catalog(
    folder: str | Path,
    subpixel_size: int = 16,
    extensions: frozenset[str] = MosaicConfig.SUPPORTED_EXTENSIONS,
    averager: Averager = average_color,
    thumbnailer: Thumbnailer = make_thumbnail,
    cancel: threading.Event | None = None,
) -> Catalog:
    """Scan *folder* and build a fresh catalog.

    Args:
        folder:        Library folder (not searched recursively).
        subpixel_size: Thumbnail side length.
        extensions:    Lower-case suffixes to consider.
        averager:      Returns a file's average colour or ``None``.
        thumbnailer:   Returns a (S, S, 4) uint8 thumbnail for a file.
        cancel:        Checked before each file; when set the scan stops
                       with :class:`MosaicCancelled`.

    Returns:
        Catalog with sequential indices in sorted path order.

    Raises:
        InputError: The folder is missing or unreadable.
    """
    folder = Path(folder)
    files = collect_images(folder, extensions)
    logger.info("Scanning %d candidate files in %s …", len(files), folder)

    t0 = time.perf_counter()
    tiles: list[Tile] = []
    skipped = 0
    for path in files:
        if cancel is not None and cancel.is_set():
            raise MosaicCancelled(f"Catalog rebuild of {folder} cancelled")

        logger.debug("Processing %s", path.name)
        try:
            avg = averager(path)
            if avg is None:
                logger.warning("Skipping %s: no visible pixels", path.name)
                skipped += 1
                continue
            thumb = thumbnailer(path, subpixel_size)
        except (OSError, ValueError) as exc:
            logger.warning("Skipping %s: %s", path.name, exc)
            skipped += 1
            continue

        r, g, b = (int(c) for c in avg)
        tiles.append(Tile(len(tiles), path, (r, g, b), thumb))

    logger.info(
        "Catalog ready: %d tiles, %d skipped  (%.1f s)",
        len(tiles), skipped, time.perf_counter() - t0,
    )
    return Catalog(tiles, subpixel_size)
