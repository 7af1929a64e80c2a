"""Image decode/encode via Pillow — the host-side collaborator of the core."""

import base64
import io

import numpy as np
from PIL import Image, UnidentifiedImageError

from engine.frame import validate_frame
from errors import InvalidImage, InvalidParameter

FILE_TYPES = {"png": "PNG", "jpeg": "JPEG"}
FILE_EXTENSIONS = {"png": "png", "jpeg": "jpg"}
DEFAULT_JPEG_QUALITY = 92


def _to_rgba(img: Image.Image) -> np.ndarray:
    frame = np.array(img.convert("RGBA"), dtype=np.uint8)
    validate_frame(frame)
    return frame


def load_image(path: str) -> np.ndarray:
    """Decode an image file into an RGBA frame.

    Raises:
        InvalidImage: If Pillow cannot decode the file.
    """
    try:
        with Image.open(path) as img:
            return _to_rgba(img)
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImage(f"Cannot decode image: {type(e).__name__}") from e


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes into an RGBA frame."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return _to_rgba(img)
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImage(f"Cannot decode image: {type(e).__name__}") from e


def encode_image(
    frame: np.ndarray, file_type: str = "png", quality: int = DEFAULT_JPEG_QUALITY
) -> bytes:
    """Encode an RGBA frame. PNG keeps alpha; JPEG drops it.

    Raises:
        InvalidParameter: On an unknown file type or quality outside 1..100.
    """
    validate_frame(frame)
    fmt = FILE_TYPES.get(file_type)
    if fmt is None:
        raise InvalidParameter(
            f"Unsupported file type '{file_type}'. Allowed: {sorted(FILE_TYPES)}"
        )
    buf = io.BytesIO()
    if fmt == "JPEG":
        try:
            quality = int(quality)
        except (TypeError, ValueError):
            raise InvalidParameter(f"JPEG quality must be an integer, got {quality!r}")
        if not 1 <= quality <= 100:
            raise InvalidParameter(f"JPEG quality must be 1..100, got {quality}")
        img = Image.fromarray(np.ascontiguousarray(frame[:, :, :3]))  # RGBA → RGB
        img.save(buf, format="JPEG", quality=quality)
    else:
        Image.fromarray(np.ascontiguousarray(frame)).save(buf, format="PNG")
    return buf.getvalue()


def encode_base64(frame: np.ndarray, file_type: str = "png") -> str:
    """Encode a frame for JSON transport."""
    return base64.b64encode(encode_image(frame, file_type)).decode("ascii")
