"""Settings and logging setup for the file compressor."""

import logging
import os
from dataclasses import dataclass

# Image compression defaults
DEFAULT_MAX_SIZE_MB = 1.0
DEFAULT_MAX_DIMENSION = 1920
DEFAULT_QUALITY = 0.5
MAX_ITERATIONS = 10

# Local server defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5000
DEFAULT_MAX_UPLOAD_MB = 100
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_WORKSPACE_TTL_MINUTES = 60

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


@dataclass
class Settings:
    """Runtime settings for the local web server."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    max_upload_mb: int = DEFAULT_MAX_UPLOAD_MB
    log_level: str = DEFAULT_LOG_LEVEL
    workspace_ttl_minutes: int = DEFAULT_WORKSPACE_TTL_MINUTES

    @property
    def max_content_length(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def workspace_ttl_seconds(self) -> int:
        return self.workspace_ttl_minutes * 60

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from FILECOMPRESS_* environment variables.

        Raises:
            ValueError: If a numeric variable is not an integer
        """
        return cls(
            host=os.environ.get("FILECOMPRESS_HOST", DEFAULT_HOST),
            port=int(os.environ.get("FILECOMPRESS_PORT", DEFAULT_PORT)),
            max_upload_mb=int(os.environ.get("FILECOMPRESS_MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB)),
            log_level=os.environ.get("FILECOMPRESS_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
            workspace_ttl_minutes=int(
                os.environ.get("FILECOMPRESS_WORKSPACE_TTL_MINUTES", DEFAULT_WORKSPACE_TTL_MINUTES)
            ),
        )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure root logging for the CLI and the web server."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
