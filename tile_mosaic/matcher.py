"""Greedy per-cell tile selection with an optional uniqueness constraint.

The candidate pool is the working subset of the catalog for one matching
pass. It is stored as an availability mask over the catalog, so its
contents are always the available tiles in catalog order, a refill is a
mask reset, and a removal clears one flag.

For every target colour the matcher scans the pool in order, keeping the
first tile whose distance is strictly below the best seen so far, starting
from the threshold itself. A threshold of 0 therefore never accepts
anything. When nothing is accepted the pool is refilled and the scan is
tried again, up to :data:`MAX_ATTEMPTS` scans in total.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from tile_mosaic.catalog import Catalog
from tile_mosaic.color_utils import color_distances, rgb_to_lab

logger = logging.getLogger(__name__)

# One scan of the current pool plus one retry after a refill.
MAX_ATTEMPTS = 2


class CandidatePool:
    """Availability mask over a catalog, in catalog order.

    A new pool is empty; the matcher fills it on first use.
    """

    def __init__(self, size: int) -> None:
        self._available = np.zeros(size, dtype=bool)

    def __len__(self) -> int:
        return int(np.count_nonzero(self._available))

    @property
    def capacity(self) -> int:
        return len(self._available)

    @property
    def mask(self) -> np.ndarray:
        """Read-only view of the availability flags."""
        view = self._available.view()
        view.setflags(write=False)
        return view

    def is_empty(self) -> bool:
        return not self._available.any()

    def refill(self) -> None:
        self._available[:] = True

    def remove(self, index: int) -> None:
        if not self._available[index]:
            msg = f"Tile {index} is not in the pool"
            raise KeyError(msg)
        self._available[index] = False

    def indices(self) -> np.ndarray:
        """Catalog indices currently in the pool, in pool order."""
        return np.flatnonzero(self._available)


@dataclass
class MatchStats:
    """Counters for one matching pass."""

    matches: int = 0
    misses: int = 0
    refills: int = 0


class TileMatcher:
    """Select tiles for target colours, one call per grid cell.

    A matcher owns one :class:`CandidatePool`; create a new matcher for
    every matching pass.

    Args:
        catalog:     Tiles to choose from. Read only.
        threshold:   Exclusive upper bound on an accepted distance.
        unique:      Remove accepted tiles from the pool until it refills.
        color_space: ``"rgb"`` or ``"lab"``.
    """

    def __init__(
        self,
        catalog: Catalog,
        threshold: float,
        unique: bool = False,
        color_space: str = "rgb",
    ) -> None:
        self.catalog = catalog
        self.threshold = float(threshold)
        self.unique = unique
        self.color_space = color_space
        self.pool = CandidatePool(len(catalog))
        self.stats = MatchStats()

        if color_space == "lab":
            self._colors = rgb_to_lab(catalog.colors) if len(catalog) else catalog.colors
        elif color_space == "rgb":
            self._colors = catalog.colors
        else:
            msg = f"Unknown colour space: {color_space!r}"
            raise ValueError(msg)

    def find(self, target: Sequence[float]) -> int | None:
        """Return the catalog index chosen for *target*, or ``None``."""
        if self.color_space == "lab":
            target = rgb_to_lab(np.asarray(target[:3], dtype=np.float64))[0]

        for attempt in range(MAX_ATTEMPTS):
            if attempt > 0 or self.pool.is_empty():
                self.pool.refill()
                self.stats.refills += 1

            best = self._scan(target)
            if best is not None:
                if self.unique:
                    self.pool.remove(best)
                self.stats.matches += 1
                return best

        self.stats.misses += 1
        return None

    def _scan(self, target: Sequence[float]) -> int | None:
        candidates = self.pool.indices()
        if len(candidates) == 0:
            return None
        dists = color_distances(self._colors[candidates], target)
        # argmin keeps the first of equal minima, which matches a strict
        # less-than scan seeded with the threshold.
        pos = int(np.argmin(dists))
        if dists[pos] < self.threshold:
            return int(candidates[pos])
        return None
