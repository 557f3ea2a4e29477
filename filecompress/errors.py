"""Exceptions raised by the file compressor."""


class CompressorError(Exception):
    """Base class for file compressor errors."""


class InvalidFileType(CompressorError):
    """The file's MIME type does not match the active mode."""


class ExternalProcessingFailure(CompressorError):
    """The image or document library failed to process the file."""


class InvalidDocument(ExternalProcessingFailure):
    """The bytes could not be loaded as a PDF document."""
