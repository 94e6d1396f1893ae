"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

COLOR_SPACES = ("rgb", "lab")


@dataclass(frozen=True)
class MosaicConfig:
    """All tuneable parameters for a mosaic run.

    Attributes:
        intermediate_width:  Grid columns; the source is resized to fill this.
        intermediate_height: Grid rows.
        prioritize_unique:   Deplete matched tiles from the candidate pool so
                             they are not reused until the pool refills.
        unique_threshold:    Exclusive upper bound on the colour distance of
                             an accepted tile.
        subpixel_size:       Side length of each tile thumbnail / canvas block.
        color_space:         Distance metric - "rgb" or "lab" (perceptual).
        input_path:          Currently selected source image.
        library_path:        Currently selected tile library folder.
        output_path:         Default export target.
    """

    # Grid
    intermediate_width: int = 32
    intermediate_height: int = 32

    # Matching
    prioritize_unique: bool = True
    unique_threshold: float = 100
    color_space: str = "rgb"

    # Output
    subpixel_size: int = 16

    # Paths
    input_path: Path | None = None
    library_path: Path | None = None
    output_path: Path = field(default_factory=lambda: Path("output/mosaic.png"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp", ".jfif", ".gif"}
    )

    def __post_init__(self) -> None:
        if self.intermediate_width < 1 or self.intermediate_height < 1:
            msg = (
                "Grid dimensions must be positive, got "
                f"{self.intermediate_width}x{self.intermediate_height}"
            )
            raise ValueError(msg)
        if self.subpixel_size < 1:
            msg = f"subpixel_size must be positive, got {self.subpixel_size}"
            raise ValueError(msg)
        if self.unique_threshold < 0:
            msg = f"unique_threshold must be >= 0, got {self.unique_threshold}"
            raise ValueError(msg)
        if self.color_space not in COLOR_SPACES:
            msg = f"color_space must be one of {COLOR_SPACES}, got {self.color_space!r}"
            raise ValueError(msg)

    @property
    def grid_size(self) -> tuple[int, int]:
        """(width, height) of the intermediate grid."""
        return self.intermediate_width, self.intermediate_height

    def updated(self, **changes: object) -> MosaicConfig:
        """Return a validated copy with *changes* applied."""
        return replace(self, **changes)
