"""Colour distance, colour-space conversion, and per-file colour averaging."""

from __future__ import annotations

import math
from collections.abc import Sequence
from pathlib import Path

import numpy as np
from PIL import Image
from skimage.color import rgb2lab

RGB = tuple[int, int, int]


def color_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Euclidean distance between the RGB parts of two colours.

    Only the first three channels are read, so RGBA tuples may be passed
    directly; alpha never contributes.
    """
    dr = float(a[0]) - float(b[0])
    dg = float(a[1]) - float(b[1])
    db = float(a[2]) - float(b[2])
    return math.sqrt(dr * dr + dg * dg + db * db)


def color_distances(colors: np.ndarray, target: Sequence[float]) -> np.ndarray:
    """Distance from every row of *colors* to *target*.

    Args:
        colors: (N, 3) array in any numeric dtype.
        target: One colour; extra channels beyond the third are ignored.

    Returns:
        (N,) float64 array, value-for-value equal to :func:`color_distance`.
    """
    c = np.asarray(colors, dtype=np.float64).reshape(-1, 3)
    t = np.asarray(target, dtype=np.float64)[:3]
    return np.sqrt(np.sum((c - t) ** 2, axis=1))


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert flat (N, 3) uint8 RGB → (N, 3) float64 CIELAB."""
    return rgb2lab(
        np.asarray(rgb, dtype=np.float64).reshape(1, -1, 3) / 255.0
    ).reshape(-1, 3)


def average_color(path: str | Path) -> RGB | None:
    """Mean RGB of an image file, ignoring fully transparent pixels.

    Returns ``None`` when the image has no visible pixels. Decoding
    failures propagate as ``OSError`` (Pillow's ``UnidentifiedImageError``
    is a subclass).
    """
    with Image.open(path) as img:
        rgba = np.asarray(img.convert("RGBA"), dtype=np.float64).reshape(-1, 4)

    visible = rgba[rgba[:, 3] > 0]
    if len(visible) == 0:
        return None
    mean = visible[:, :3].mean(axis=0)
    r, g, b = (int(round(v)) for v in mean)
    return r, g, b
