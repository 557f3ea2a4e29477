"""Utility functions for file compression."""

import re
import time
from pathlib import Path
from typing import Callable, Optional, Union

SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/bmp": ".bmp",
    "image/tiff": ".tif",
    "application/pdf": ".pdf",
}


def parse_size(size_str: str) -> int:
    """
    Parse a human-readable size string to bytes.

    Args:
        size_str: Size string like "5MB", "800KB", "1.5GB"

    Returns:
        Size in bytes

    Raises:
        ValueError: If the size string is invalid
    """
    size_str = size_str.strip().upper()

    match = re.match(r'^([\d.]+)\s*(B|KB|MB|GB|K|M|G)?$', size_str)
    if not match:
        raise ValueError(f"Invalid size format: {size_str}. Use formats like '1MB', '800KB', '1.5GB'")

    try:
        value = float(match.group(1))
    except ValueError:
        raise ValueError(f"Invalid size format: {size_str}. Use formats like '1MB', '800KB', '1.5GB'")
    unit = match.group(2) or 'B'

    multipliers = {
        'B': 1,
        'K': 1024,
        'KB': 1024,
        'M': 1024 * 1024,
        'MB': 1024 * 1024,
        'G': 1024 * 1024 * 1024,
        'GB': 1024 * 1024 * 1024,
    }

    return int(value * multipliers[unit])


def format_size(size_bytes: int) -> str:
    """
    Format bytes to a human-readable string.

    Values are rounded to two decimals with trailing zeros dropped,
    so 1024 becomes "1 KB" and 1536 becomes "1.5 KB".

    Args:
        size_bytes: Size in bytes

    Returns:
        Human-readable size string
    """
    if size_bytes == 0:
        return "0 Bytes"

    index = 0
    while index < len(SIZE_UNITS) - 1 and size_bytes >= 1024 ** (index + 1):
        index += 1

    value = round(size_bytes / 1024 ** index, 2)
    return f"{value:g} {SIZE_UNITS[index]}"


def calculate_compression_ratio(original_size: int, compressed_size: int) -> float:
    """
    Calculate compression ratio.

    Args:
        original_size: Original file size in bytes
        compressed_size: Compressed file size in bytes

    Returns:
        Compression ratio (e.g., 0.65 means 65% reduction)
    """
    if original_size == 0:
        return 0.0
    return 1 - (compressed_size / original_size)


def extension_for(mime_type: str) -> str:
    """Return the file extension used when saving ``mime_type``."""
    return EXTENSIONS.get(mime_type.lower(), ".bin")


def export_filename(
    prefix: str,
    mime_type: str,
    clock: Callable[[], float] = time.time,
    label: Optional[str] = None,
) -> str:
    """
    Build a download filename stamped with the current time.

    Args:
        prefix: Leading name part, e.g. "compressed"
        mime_type: MIME type of the payload, selects the extension
        clock: Returns seconds since the epoch
        label: Optional trailing name part, e.g. the source file's stem

    Returns:
        Filename like "compressed_1700000000000.jpg" or
        "optimized_1700000000000_report.pdf"
    """
    stamp = f"{prefix}_{int(clock() * 1000)}"
    if label:
        stamp = f"{stamp}_{label}"
    return f"{stamp}{extension_for(mime_type)}"


def unique_path(path: Union[str, Path]) -> Path:
    """
    Return ``path``, or a sibling with a numeric suffix if it already exists.

    "out/a.pdf" becomes "out/a_1.pdf", then "out/a_2.pdf", and so on.
    """
    path = Path(path)
    candidate = path
    counter = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.stem}_{counter}{path.suffix}")
        counter += 1
    return candidate


def get_output_path(
    filename: str,
    output_path: Union[str, Path, None],
    output_dir: Union[str, Path, None] = None,
) -> Path:
    """
    Determine where an exported file is written.

    Args:
        filename: Generated export filename
        output_path: Explicit output path or None
        output_dir: Directory for the generated filename (default: cwd)

    Returns:
        Output file path
    """
    if output_path:
        return Path(output_path)

    return Path(output_dir or ".") / filename


def normalize_mime(mime_type: Optional[str]) -> str:
    """Lower-case a MIME type and strip any parameters."""
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()
