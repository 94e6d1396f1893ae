"""Image loading, resize-to-fill, thumbnails, export, and comparison grids."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont, ImageOps


def load_image(path: str | Path) -> Image.Image:
    """Open an image fully into memory as RGBA."""
    with Image.open(path) as img:
        return img.convert("RGBA")


def resize_to_fill(img: Image.Image, width: int, height: int) -> np.ndarray:
    """Scale and centre-crop *img* so it covers exactly ``width x height``.

    Returns:
        (height, width, 4) uint8 RGBA array.
    """
    fitted = ImageOps.fit(img.convert("RGBA"), (width, height), Image.LANCZOS)
    return np.array(fitted, dtype=np.uint8)


def make_thumbnail(path: str | Path, size: int) -> np.ndarray:
    """Load *path* and produce a read-only (size, size, 4) uint8 thumbnail."""
    thumb = resize_to_fill(load_image(path), size, size)
    thumb.setflags(write=False)
    return thumb


def save_canvas(canvas: np.ndarray, path: str | Path) -> None:
    """Write an RGBA canvas as PNG, creating parent folders as needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(canvas.astype(np.uint8)).save(path, format="PNG")


def make_comparison_grid(
    source: Image.Image,
    intermediate: np.ndarray,
    canvas: np.ndarray,
    output_path: str | Path,
) -> None:
    """Create a 3-panel comparison: Source | Intermediate | Mosaic.

    All panels are scaled to the canvas size; the intermediate grid is
    upscaled with nearest-neighbour so individual cells stay visible.
    """
    panel_h, panel_w = canvas.shape[:2]
    gh, gw = intermediate.shape[:2]
    label_height = 36

    background = (30, 30, 30)
    panels = [
        _flatten(ImageOps.fit(source.convert("RGBA"), (panel_w, panel_h), Image.LANCZOS), background),
        _flatten(Image.fromarray(intermediate).resize((panel_w, panel_h), Image.NEAREST), background),
        _flatten(Image.fromarray(canvas), background),
    ]
    labels = ["Source", f"Grid {gw}x{gh}", "Mosaic"]

    gap = 8
    total_w = len(panels) * panel_w + (len(panels) - 1) * gap
    total_h = panel_h + label_height

    grid = Image.new("RGB", (total_w, total_h), background)
    draw = ImageDraw.Draw(grid)

    try:
        font = ImageFont.truetype(
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 18,
        )
    except OSError:
        font = ImageFont.load_default()

    for i, (panel, label) in enumerate(zip(panels, labels, strict=True)):
        x = i * (panel_w + gap)
        grid.paste(panel, (x, label_height))

        bbox = draw.textbbox((0, 0), label, font=font)
        text_w = bbox[2] - bbox[0]
        tx = x + (panel_w - text_w) // 2
        draw.text((tx, 6), label, fill=(220, 220, 220), font=font)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    grid.save(output_path)


def _flatten(img: Image.Image, background: tuple[int, int, int]) -> Image.Image:
    """Composite an RGBA image over a solid background."""
    rgba = img.convert("RGBA")
    base = Image.new("RGBA", rgba.size, (*background, 255))
    return Image.alpha_composite(base, rgba).convert("RGB")
