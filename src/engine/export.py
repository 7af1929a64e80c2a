"""Export — write the three pipeline outputs to disk, like the download buttons."""

import logging
import os
import time

from engine.codec import DEFAULT_JPEG_QUALITY, FILE_EXTENSIONS, encode_image
from engine.pipeline import DuotoneResult
from errors import InvalidParameter

logger = logging.getLogger(__name__)

# (result attribute, filename prefix)
OUTPUTS = (
    ("resized", "original"),
    ("normal", "duotone_normal"),
    ("inverted", "duotone_inverted"),
)


def export_filename(prefix: str, file_type: str, timestamp_ms: int) -> str:
    """'<prefix>_<timestamp_ms>.<ext>' with 'jpg' for jpeg."""
    ext = FILE_EXTENSIONS.get(file_type)
    if ext is None:
        raise InvalidParameter(
            f"Unsupported file type '{file_type}'. Allowed: {sorted(FILE_EXTENSIONS)}"
        )
    return f"{prefix}_{timestamp_ms}.{ext}"


def export_result(
    result: DuotoneResult,
    output_dir: str,
    file_type: str = "png",
    quality: int = DEFAULT_JPEG_QUALITY,
    timestamp_ms: int | None = None,
) -> list[str]:
    """Encode and write all three outputs. Returns the written paths.

    Everything is encoded before the first write, so a bad file type or
    quality leaves no partial export behind.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    encoded = []
    for attr, prefix in OUTPUTS:
        name = export_filename(prefix, file_type, timestamp_ms)
        encoded.append((name, encode_image(getattr(result, attr), file_type, quality)))

    paths = []
    for name, data in encoded:
        path = os.path.join(output_dir, name)
        with open(path, "wb") as f:
            f.write(data)
        paths.append(path)

    logger.info("Exported %d files to %s", len(paths), output_dir)
    return paths
