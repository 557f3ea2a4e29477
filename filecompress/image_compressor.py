"""Image recompression built on Pillow."""

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Tuple

from PIL import Image, ImageOps

from .config import MAX_ITERATIONS
from .errors import ExternalProcessingFailure
from .models import CompressedImageResult, ProcessingConfig, SourceFile
from .utils import format_size

logger = logging.getLogger(__name__)

JPEG_MIME_TYPE = "image/jpeg"


class ImageCompressor:
    """
    Shrinks raster images under a size ceiling and maximum dimension.

    The steps are:
    - Apply EXIF orientation
    - Downscale so neither side exceeds the configured maximum
    - Re-encode to JPEG at the configured quality
    - While the output is over the size ceiling, step dimensions and
      quality down by SCALE_STEP, keeping the smallest output

    The size ceiling is a best-effort target. The smallest encoding is
    returned when MAX_ITERATIONS runs out before reaching it.
    """

    SCALE_STEP = 0.95

    def __init__(self, max_iterations: int = MAX_ITERATIONS, max_workers: int = 2):
        self.max_iterations = max_iterations
        self.max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None

    def compress(self, source: SourceFile, config: ProcessingConfig) -> CompressedImageResult:
        """
        Compress an image.

        Args:
            source: Image to compress
            config: Size ceiling, maximum dimension and quality

        Returns:
            CompressedImageResult holding the encoded bytes

        Raises:
            ExternalProcessingFailure: If the image cannot be decoded or encoded
        """
        if config.use_web_worker:
            return self._worker_pool().submit(self._compress, source, config).result()
        return self._compress(source, config)

    def shutdown(self) -> None:
        """Stop the worker pool if one was started."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _worker_pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="image-compressor",
            )
        return self._executor

    def _compress(self, source: SourceFile, config: ProcessingConfig) -> CompressedImageResult:
        try:
            with Image.open(io.BytesIO(source.data)) as opened:
                image = ImageOps.exif_transpose(opened)
                image.load()
        except Exception as e:
            raise ExternalProcessingFailure(f"Cannot decode image {source.filename!r}: {e}") from e

        try:
            image, resized = self._fit_within(image, config.max_width_or_height)
            image = self._flatten(image)

            quality = config.quality
            best = self._encode(image, quality)
            iteration = 0

            while len(best) > config.max_size_bytes and iteration < self.max_iterations:
                iteration += 1
                quality *= self.SCALE_STEP
                new_size = (
                    max(1, int(image.width * self.SCALE_STEP)),
                    max(1, int(image.height * self.SCALE_STEP)),
                )
                if new_size != image.size:
                    image = image.resize(new_size, Image.Resampling.LANCZOS)
                    resized = True

                candidate = self._encode(image, quality)
                if len(candidate) < len(best):
                    best = candidate
        except Exception as e:
            raise ExternalProcessingFailure(f"Cannot encode image {source.filename!r}: {e}") from e

        if not resized and len(best) > source.size:
            logger.debug(
                "Re-encoded %s is larger than the source (%s > %s), keeping the source",
                source.filename, format_size(len(best)), format_size(source.size),
            )
            return CompressedImageResult(
                data=source.data,
                mime_type=source.normalized_type or JPEG_MIME_TYPE,
                original_size=source.size,
            )

        if len(best) > config.max_size_bytes:
            logger.info(
                "Could not reach %s for %s, best effort is %s",
                format_size(config.max_size_bytes), source.filename, format_size(len(best)),
            )

        return CompressedImageResult(data=best, mime_type=JPEG_MIME_TYPE, original_size=source.size)

    @staticmethod
    def _fit_within(image: Image.Image, max_dimension: int) -> Tuple[Image.Image, bool]:
        """Downscale so neither side exceeds ``max_dimension``."""
        width, height = image.size
        if width <= max_dimension and height <= max_dimension:
            return image, False

        if width > height:
            new_size = (max_dimension, max(1, int(height * (max_dimension / width))))
        else:
            new_size = (max(1, int(width * (max_dimension / height))), max_dimension)

        return image.resize(new_size, Image.Resampling.LANCZOS), True

    @staticmethod
    def _flatten(image: Image.Image) -> Image.Image:
        """Convert to RGB, compositing transparency onto white."""
        if image.mode in ("RGBA", "P", "LA"):
            background = Image.new("RGB", image.size, (255, 255, 255))
            if image.mode == "P":
                image = image.convert("RGBA")
            if image.mode in ("RGBA", "LA"):
                background.paste(image, mask=image.split()[-1])
                return background
            return image.convert("RGB")
        if image.mode != "RGB":
            return image.convert("RGB")
        return image

    @staticmethod
    def _encode(image: Image.Image, quality: float) -> bytes:
        buffer = io.BytesIO()
        image.save(
            buffer,
            format="JPEG",
            quality=max(1, min(95, int(round(quality * 100)))),
            optimize=True,
        )
        return buffer.getvalue()
