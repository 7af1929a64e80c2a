"""Color helpers — hex <-> RGB conversion and scalar clamping."""

import numbers
import re
from typing import NamedTuple

from errors import InvalidColorFormat

HEX_PATTERN = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class RGB(NamedTuple):
    r: int
    g: int
    b: int


def clamp(value, lo, hi):
    """Clamp value into [lo, hi]."""
    return max(lo, min(value, hi))


def is_valid_hex(hex_str) -> bool:
    if not isinstance(hex_str, str):
        return False
    return HEX_PATTERN.match(hex_str.strip()) is not None


def _hex_digits(hex_str) -> str:
    """Return the 6-digit form of a hex color, without '#'."""
    if not isinstance(hex_str, str):
        raise InvalidColorFormat(
            f"Color must be a hex string, got {type(hex_str).__name__}"
        )
    m = HEX_PATTERN.match(hex_str.strip())
    if m is None:
        raise InvalidColorFormat(f"Invalid hex color: {hex_str!r}")
    digits = m.group(1)
    if len(digits) == 3:
        # CSS shorthand: "abc" -> "aabbcc"
        digits = "".join(c * 2 for c in digits)
    return digits.lower()


def hex_to_rgb(hex_str: str) -> RGB:
    """Parse '#rrggbb', 'rrggbb', '#rgb' or 'rgb' into an RGB triple.

    Raises:
        InvalidColorFormat: If the string is not 3 or 6 hex digits.
    """
    digits = _hex_digits(hex_str)
    return RGB(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def normalize_hex(hex_str: str) -> str:
    """Canonical lowercase '#rrggbb' form of a valid hex color."""
    return "#" + _hex_digits(hex_str)


def rgb_to_hex(rgb) -> str:
    r, g, b = (int(clamp(int(c), 0, 255)) for c in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def to_rgb(color) -> RGB:
    """Accept an RGB triple of 0..255 integers or a hex string."""
    if isinstance(color, str):
        return hex_to_rgb(color)
    try:
        r, g, b = color
    except (TypeError, ValueError):
        raise InvalidColorFormat(f"Expected RGB triple or hex string, got {color!r}")
    for c in (r, g, b):
        if isinstance(c, bool) or not isinstance(c, numbers.Integral) or not 0 <= c <= 255:
            raise InvalidColorFormat(f"RGB components must be integers 0..255, got {color!r}")
    return RGB(int(r), int(g), int(b))
