"""
Local File Compressor

Shrinks images and structurally optimizes PDFs in memory, without
uploading them anywhere.
"""

__version__ = "1.0.0"
__author__ = "Local File Compressor Team"

from .document_optimizer import DocumentOptimizer
from .export import ExportArtifact, Exporter
from .image_compressor import ImageCompressor
from .intake import FileIntake, IntakeOutcome
from .models import (
    CompressedImageResult,
    Mode,
    OptimizedDocumentResult,
    ProcessingConfig,
    SourceFile,
)
from .state import AppState
from .utils import format_size
from .workspace import Workspace

__all__ = [
    "AppState",
    "CompressedImageResult",
    "DocumentOptimizer",
    "ExportArtifact",
    "Exporter",
    "FileIntake",
    "ImageCompressor",
    "IntakeOutcome",
    "Mode",
    "OptimizedDocumentResult",
    "ProcessingConfig",
    "SourceFile",
    "Workspace",
    "format_size",
]
