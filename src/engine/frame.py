"""Frame helpers — RGBA uint8 arrays and their flat-buffer form."""

import numpy as np

from errors import InvalidImage

CHANNELS = 4


def validate_frame(frame) -> None:
    """Raise InvalidImage unless frame is a non-empty (H, W, 4) uint8 array."""
    if not isinstance(frame, np.ndarray):
        raise InvalidImage(f"Expected ndarray, got {type(frame).__name__}")
    if frame.dtype != np.uint8:
        raise InvalidImage(f"Expected uint8 frame, got {frame.dtype}")
    if frame.ndim != 3 or frame.shape[2] != CHANNELS:
        raise InvalidImage(f"Expected (H, W, 4) RGBA frame, got {frame.shape}")
    if frame.shape[0] == 0 or frame.shape[1] == 0:
        raise InvalidImage(f"Frame has zero dimension: {frame.shape}")


def frame_size(frame: np.ndarray) -> tuple[int, int]:
    """(width, height) of a frame."""
    return frame.shape[1], frame.shape[0]


def frame_from_buffer(pixels, width: int, height: int) -> np.ndarray:
    """Build an owned (H, W, 4) frame from a flat row-major RGBA buffer."""
    if width <= 0 or height <= 0:
        raise InvalidImage(f"Dimensions must be positive, got {width}x{height}")
    data = np.frombuffer(bytes(pixels), dtype=np.uint8)
    expected = width * height * CHANNELS
    if data.size != expected:
        raise InvalidImage(
            f"Buffer has {data.size} bytes, expected {expected} for {width}x{height} RGBA"
        )
    return data.reshape(height, width, CHANNELS).copy()


def frame_to_buffer(frame: np.ndarray) -> bytes:
    """Flatten a frame to row-major interleaved RGBA bytes."""
    return np.ascontiguousarray(frame).tobytes()


def store_u8(values: np.ndarray) -> np.ndarray:
    """Write float values the way an 8-bit clamped buffer stores them.

    Clamps to [0, 255], then rounds half to even.
    """
    out = np.clip(values, 0.0, 255.0)
    np.rint(out, out=out)
    return out.astype(np.uint8)
