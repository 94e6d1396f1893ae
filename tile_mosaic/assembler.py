"""Drive the matcher over a grid and compose the mosaic canvas."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from tile_mosaic.catalog import Catalog
from tile_mosaic.errors import MosaicCancelled
from tile_mosaic.matcher import MatchStats, TileMatcher

logger = logging.getLogger(__name__)

# Cells with alpha at or below this (0-255) are left empty.
ALPHA_CUTOFF = 125


@dataclass
class MosaicResult:
    """Outcome of one matching + assembly pass.

    Attributes:
        matches: Row-major catalog index per cell, ``None`` for empty cells.
        canvas:  (H*S, W*S, 4) uint8 RGBA mosaic.
        stats:   Matcher counters.
        skipped: Cells left empty because they were transparent.
    """

    matches: list[int | None]
    canvas: np.ndarray
    stats: MatchStats = field(default_factory=MatchStats)
    skipped: int = 0


def _as_rgba(intermediate: np.ndarray) -> np.ndarray:
    """Normalise a grid image to (H, W, 4); missing alpha means opaque."""
    arr = np.asarray(intermediate)
    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, np.newaxis], 3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        msg = f"Expected an (H, W), (H, W, 3) or (H, W, 4) image, got {arr.shape}"
        raise ValueError(msg)
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=arr.dtype)
        arr = np.concatenate([arr, alpha], axis=2)
    return arr


def match_grid(
    intermediate: np.ndarray,
    matcher: TileMatcher,
    cancel: threading.Event | None = None,
) -> tuple[list[int | None], int]:
    """Match every cell of *intermediate* in row-major order.

    Visiting order decides which cells deplete the pool first, so rows
    are the outer loop and columns the inner one.

    Returns:
        (matches, skipped) - one entry per cell and the count of
        transparent cells that were never offered to the matcher.
    """
    grid = _as_rgba(intermediate)
    h, w = grid.shape[:2]
    results: list[int | None] = []
    skipped = 0

    for y in range(h):
        if cancel is not None and cancel.is_set():
            raise MosaicCancelled(f"Matching cancelled at row {y}/{h}")
        logger.debug("Matching row %d/%d  (%.0f%%)", y + 1, h, y / h * 100)
        for x in range(w):
            r, g, b, a = (int(v) for v in grid[y, x])
            if a <= ALPHA_CUTOFF:
                results.append(None)
                skipped += 1
            else:
                results.append(matcher.find((r, g, b)))

    return results, skipped


def compose_canvas(
    matches: Sequence[int | None],
    grid_width: int,
    grid_height: int,
    catalog: Catalog,
    subpixel_size: int,
) -> np.ndarray:
    """Blit each matched tile's thumbnail into a transparent canvas.

    Returns:
        (grid_height*S, grid_width*S, 4) uint8 RGBA array. Cells without a
        match stay fully transparent.
    """
    if len(matches) != grid_width * grid_height:
        msg = (
            f"Expected {grid_width * grid_height} matches for a "
            f"{grid_width}x{grid_height} grid, got {len(matches)}"
        )
        raise ValueError(msg)

    s = subpixel_size
    canvas = np.zeros((grid_height * s, grid_width * s, 4), dtype=np.uint8)

    for i, index in enumerate(matches):
        if index is None:
            continue
        thumb = catalog[index].thumbnail
        if thumb.shape != (s, s, 4):
            msg = (
                f"Tile {index} thumbnail is {thumb.shape}, "
                f"expected ({s}, {s}, 4); rebuild the catalog"
            )
            raise ValueError(msg)
        row, col = divmod(i, grid_width)
        canvas[row * s:(row + 1) * s, col * s:(col + 1) * s] = thumb

    return canvas


def assemble_mosaic(
    intermediate: np.ndarray,
    catalog: Catalog,
    threshold: float,
    unique: bool,
    subpixel_size: int | None = None,
    color_space: str = "rgb",
    cancel: threading.Event | None = None,
) -> MosaicResult:
    """Run one full matching pass with a fresh pool and build the canvas.

    Args:
        intermediate:  (H, W, 4) grid image (RGB or greyscale also accepted).
        catalog:       Tiles to choose from.
        threshold:     Exclusive distance bound for a match.
        unique:        Enable pool depletion on acceptance.
        subpixel_size: Block size; defaults to the catalog's thumbnail size.
        color_space:   ``"rgb"`` or ``"lab"``.
        cancel:        Checked once per row.
    """
    s = subpixel_size or catalog.subpixel_size
    h, w = np.asarray(intermediate).shape[:2]

    logger.info(
        "Matching %dx%d grid against %d tiles  (threshold=%s, unique=%s, %s)",
        w, h, len(catalog), threshold, unique, color_space,
    )
    t0 = time.perf_counter()
    matcher = TileMatcher(catalog, threshold, unique=unique, color_space=color_space)
    matches, skipped = match_grid(intermediate, matcher, cancel=cancel)
    logger.info(
        "Matching done: %d matched, %d unmatched, %d transparent, %d refills  (%.1f s)",
        matcher.stats.matches, matcher.stats.misses, skipped,
        matcher.stats.refills, time.perf_counter() - t0,
    )

    t0 = time.perf_counter()
    canvas = compose_canvas(matches, w, h, catalog, s)
    logger.info(
        "Canvas %dx%d ready  (%.1f s)",
        canvas.shape[1], canvas.shape[0], time.perf_counter() - t0,
    )
    return MosaicResult(matches, canvas, matcher.stats, skipped)
