"""Exception types raised by the mosaic pipeline.

Per-file catalog failures and unmatched cells are not errors and never
surface as exceptions.
"""

from __future__ import annotations


class MosaicError(Exception):
    """Base class for all mosaic failures surfaced to the caller."""


class InputError(MosaicError):
    """A required input (source image, library folder) is missing or unreadable."""


class PreconditionError(MosaicError):
    """An operation was requested before the state it depends on exists."""


class MosaicCancelled(MosaicError):
    """A catalog rebuild or matching pass was cancelled cooperatively."""
