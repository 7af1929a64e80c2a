"""Pipeline settings — defaults, environment overrides, validation."""

import dataclasses
import logging
import math
import os
from dataclasses import dataclass

from effects.color import is_valid_hex

logger = logging.getLogger(__name__)

DEFAULT_MAX_LONGEST_EDGE = 1000
DEFAULT_MIN_SHORTEST_EDGE = 300
DEFAULT_CONTRAST_FACTOR = 1.5
DEFAULT_DARK_COLOR = "#1b602f"
DEFAULT_LIGHT_COLOR = "#f784c5"

ENV_PREFIX = "DUOTONE_"


@dataclass(frozen=True)
class PipelineSettings:
    """Externally supplied constants for one render."""

    max_longest_edge: int = DEFAULT_MAX_LONGEST_EDGE
    min_shortest_edge: int = DEFAULT_MIN_SHORTEST_EDGE
    contrast_factor: float = DEFAULT_CONTRAST_FACTOR
    dark_color: str = DEFAULT_DARK_COLOR
    light_color: str = DEFAULT_LIGHT_COLOR

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "PipelineSettings":
        """Build settings from DUOTONE_* variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        values = {}
        for f in dataclasses.fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            try:
                values[f.name] = _coerce(f.name, raw.strip())
            except ValueError:
                logger.warning(
                    "Ignoring unparseable %s%s=%r", ENV_PREFIX, f.name.upper(), raw
                )
        return cls(**values)

    def with_overrides(self, overrides: dict | None) -> "PipelineSettings":
        """Return a copy with known keys replaced. Unknown keys are ignored.

        Raises:
            ValueError: If overrides is not a mapping or a value cannot be
                converted to the field type.
        """
        if not overrides:
            return self
        if not isinstance(overrides, dict):
            raise ValueError(f"settings must be an object, got {type(overrides).__name__}")
        names = {f.name for f in dataclasses.fields(self)}
        changes = {
            k: _coerce(k, v) for k, v in overrides.items() if k in names and v is not None
        }
        return dataclasses.replace(self, **changes)

    def reset_colors(self) -> "PipelineSettings":
        """Restore the default dark/light pair."""
        return dataclasses.replace(
            self, dark_color=DEFAULT_DARK_COLOR, light_color=DEFAULT_LIGHT_COLOR
        )

    def validate(self) -> list[str]:
        """Validate settings. Returns list of error strings (empty = valid)."""
        errors = []
        if self.max_longest_edge <= 0:
            errors.append("'max_longest_edge' must be > 0")
        if self.min_shortest_edge <= 0:
            errors.append("'min_shortest_edge' must be > 0")
        if not math.isfinite(self.contrast_factor) or self.contrast_factor <= 0:
            errors.append("'contrast_factor' must be a finite number > 0")
        if not is_valid_hex(self.dark_color):
            errors.append(f"'dark_color' is not a hex color: {self.dark_color!r}")
        if not is_valid_hex(self.light_color):
            errors.append(f"'light_color' is not a hex color: {self.light_color!r}")
        return errors

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def _coerce(name: str, value):
    try:
        if name in ("max_longest_edge", "min_shortest_edge"):
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"{name} must be an integer, got {value}")
            return int(value)
        if name == "contrast_factor":
            return float(value)
    except TypeError:
        raise ValueError(f"{name} has invalid type {type(value).__name__}")
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a hex string, got {type(value).__name__}")
    return value
