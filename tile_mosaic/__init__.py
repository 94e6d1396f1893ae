"""
Tile Mosaic Generator
=====================

Rebuild any image as a photomosaic from a folder of tile images.
Each grid cell gets the library tile whose average colour is closest,
within a threshold, with an optional uniqueness constraint that spends
tiles before reusing them.
"""

__version__ = "1.0.0"

from tile_mosaic.assembler import (
    ALPHA_CUTOFF,
    MosaicResult,
    assemble_mosaic,
    compose_canvas,
    match_grid,
)
from tile_mosaic.catalog import Catalog, Tile, build_catalog
from tile_mosaic.color_utils import average_color, color_distance, color_distances
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import InputError, MosaicCancelled, MosaicError, PreconditionError
from tile_mosaic.image_io import make_comparison_grid, resize_to_fill, save_canvas
from tile_mosaic.matcher import MAX_ATTEMPTS, CandidatePool, TileMatcher
from tile_mosaic.session import MosaicSession

__all__ = [
    "ALPHA_CUTOFF",
    "MAX_ATTEMPTS",
    "CandidatePool",
    "Catalog",
    "InputError",
    "MosaicCancelled",
    "MosaicConfig",
    "MosaicError",
    "MosaicResult",
    "MosaicSession",
    "PreconditionError",
    "Tile",
    "TileMatcher",
    "assemble_mosaic",
    "average_color",
    "build_catalog",
    "color_distance",
    "color_distances",
    "compose_canvas",
    "make_comparison_grid",
    "match_grid",
    "resize_to_fill",
    "save_canvas",
]
