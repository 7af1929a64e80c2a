"""Error kinds raised by the duotone core.

All derive from ValueError so callers that already guard bad input with
``except ValueError`` keep working.
"""


class DuotoneError(ValueError):
    """Base class for core input errors."""


class InvalidColorFormat(DuotoneError):
    """Color string is not 3 or 6 hex digits (optionally #-prefixed)."""


class InvalidImage(DuotoneError):
    """Frame is not a non-empty (H, W, 4) uint8 RGBA array."""


class InvalidParameter(DuotoneError):
    """Numeric parameter outside its allowed domain."""
