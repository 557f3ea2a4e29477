"""Data types shared by the intake, processing and export steps."""

import math
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .config import DEFAULT_MAX_DIMENSION, DEFAULT_MAX_SIZE_MB, DEFAULT_QUALITY
from .utils import calculate_compression_ratio, format_size, normalize_mime

PDF_MIME_TYPE = "application/pdf"


class Mode(str, Enum):
    """The two mutually exclusive modes: tab, intake target and result category."""
    IMAGE = "image"
    DOCUMENT = "document"

    @classmethod
    def parse(cls, value: Union["Mode", str]) -> "Mode":
        """Resolve a Mode from itself or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown mode: {value!r}. Use 'image' or 'document'")


@dataclass(frozen=True)
class SourceFile:
    """A file selected by the user. Immutable once created."""
    data: bytes
    mime_type: str
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def normalized_type(self) -> str:
        return normalize_mime(self.mime_type)

    @classmethod
    def from_path(cls, path: Union[str, Path], mime_type: Optional[str] = None) -> "SourceFile":
        """
        Read a file from disk.

        Args:
            path: File to read
            mime_type: Declared type; guessed from the filename when omitted

        Returns:
            SourceFile with the file's bytes
        """
        path = Path(path)
        if mime_type is None:
            mime_type, _ = mimetypes.guess_type(path.name)
        return cls(data=path.read_bytes(), mime_type=mime_type or "", filename=path.name)


@dataclass
class ProcessingConfig:
    """Image compression parameters, built fresh for every invocation."""
    max_size_mb: float = DEFAULT_MAX_SIZE_MB
    max_width_or_height: int = DEFAULT_MAX_DIMENSION
    quality: float = DEFAULT_QUALITY
    use_web_worker: bool = True

    def __post_init__(self):
        if not 0.0 <= self.quality <= 1.0:
            raise ValueError(f"Quality must be between 0 and 1, got {self.quality}")
        if not math.isfinite(self.max_size_mb) or self.max_size_mb <= 0:
            raise ValueError(f"Maximum size must be a positive number, got {self.max_size_mb}")
        if self.max_width_or_height <= 0:
            raise ValueError(
                f"Maximum dimension must be positive, got {self.max_width_or_height}"
            )

    @property
    def max_size_bytes(self) -> int:
        return int(self.max_size_mb * 1024 * 1024)

    def to_dict(self) -> dict:
        return {
            "max_size_mb": self.max_size_mb,
            "max_width_or_height": self.max_width_or_height,
            "quality": self.quality,
            "use_web_worker": self.use_web_worker,
        }


@dataclass(frozen=True)
class CompressedImageResult:
    """Output of one successful image compression."""
    data: bytes
    mime_type: str
    original_size: int

    @property
    def size(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "mime_type": self.mime_type,
            "original_size": self.original_size,
            "original_size_formatted": format_size(self.original_size),
            "size": self.size,
            "size_formatted": format_size(self.size),
            "compression_ratio": round(
                calculate_compression_ratio(self.original_size, self.size) * 100, 1
            ),
        }


@dataclass(frozen=True)
class OptimizedDocumentResult:
    """Output of one successful PDF load/save cycle."""
    data: bytes
    original_size: int
    mime_type: str = PDF_MIME_TYPE

    @property
    def size(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "mime_type": self.mime_type,
            "original_size": self.original_size,
            "original_size_formatted": format_size(self.original_size),
            "size": self.size,
            "size_formatted": format_size(self.size),
            "compression_ratio": round(
                calculate_compression_ratio(self.original_size, self.size) * 100, 1
            ),
        }
