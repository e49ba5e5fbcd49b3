"""Base types, exceptions, and options for compression middleware.

This module defines the algorithm identifiers, the immutable configuration
that a :class:`~hybridbuffer.middleware.compression.CompressionMiddleware`
carries, the option functions that build it, and the exception hierarchy
shared by every stream adapter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MIN_LEVEL = 1
MAX_LEVEL = 9
DEFAULT_LEVEL = 6
DEFAULT_CHUNK_SIZE = 64 * 1024  # 64KB


# =============================================================================
# Exceptions
# =============================================================================


class CompressionError(Exception):
    """Base exception for compression middleware errors.

    Attributes:
        algorithm: Algorithm that produced the error, if known.
        phase: Stream phase ("write", "close", "read") the error occurred in.
        fatal: True when the adapter could not be constructed at all.
    """

    fatal = False

    def __init__(
        self,
        message: str,
        algorithm: str | None = None,
        phase: str | None = None,
    ) -> None:
        self.algorithm = algorithm
        self.phase = phase
        prefix = ""
        if algorithm:
            prefix += f"[{algorithm}] "
        if phase:
            prefix += f"{phase}: "
        super().__init__(prefix + message)


class UnsupportedAlgorithmError(CompressionError):
    """Requested algorithm has no codec."""

    fatal = True

    def __init__(self, algorithm: Any, available: list[str] | None = None) -> None:
        self.available = available or []
        msg = f"Algorithm {algorithm!r} is not supported"
        if self.available:
            msg += f". Available: {', '.join(self.available)}"
        super().__init__(msg, str(algorithm))


class CodecInitError(CompressionError):
    """The codec refused to build a writer or reader.

    Raised for an invalid level reaching the codec, or a malformed,
    truncated or missing format header when opening a reader.
    """

    fatal = True


class CompressionConfigError(CompressionError):
    """Invalid compression configuration."""

    fatal = True


class StreamError(CompressionError):
    """Recoverable error raised while a stream is in use."""

    pass


class StreamWriteError(StreamError):
    """The sink rejected compressed output during a write."""

    def __init__(self, message: str, algorithm: str | None = None) -> None:
        super().__init__(message, algorithm, "write")


class StreamCloseError(StreamError):
    """Finalizing the compressed stream failed."""

    def __init__(self, message: str, algorithm: str | None = None) -> None:
        super().__init__(message, algorithm, "close")


class StreamReadError(StreamError):
    """The source failed while compressed input was being pulled."""

    def __init__(self, message: str, algorithm: str | None = None) -> None:
        super().__init__(message, algorithm, "read")


class DecompressionError(StreamError):
    """Corrupt or truncated data found after a valid header."""

    def __init__(self, message: str, algorithm: str | None = None) -> None:
        super().__init__(message, algorithm, "read")


class StreamClosedError(StreamError):
    """Operation attempted on a closed stream adapter."""

    pass


# =============================================================================
# Enums
# =============================================================================


class CompressionAlgorithm(str, Enum):
    """Supported compression algorithms."""

    GZIP = "gzip"  # RFC 1952: header, deflate body, CRC-32 + size trailer
    ZLIB = "zlib"  # RFC 1950: 2-byte header, deflate body, Adler-32 trailer

    @classmethod
    def coerce(cls, value: Any) -> Any:
        """Normalize a string name to an algorithm.

        Unknown values are returned unchanged so that dispatch, not
        construction, decides they are unsupported.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return value
        return value

    @property
    def extension(self) -> str:
        """Get file extension for this algorithm."""
        ext_map = {
            self.GZIP: ".gz",
            self.ZLIB: ".zz",
        }
        return ext_map[self]

    @classmethod
    def from_extension(cls, ext: str) -> "CompressionAlgorithm | None":
        """Get algorithm from file extension."""
        ext_map = {
            ".gz": cls.GZIP,
            ".gzip": cls.GZIP,
            ".zz": cls.ZLIB,
            ".zlib": cls.ZLIB,
        }
        return ext_map.get(ext.lower())


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class CompressionConfig:
    """Configuration carried by a compression middleware.

    Attributes:
        algorithm: Compression algorithm identifier.
        level: Compression level, 1 (fastest) to 9 (smallest).
        chunk_size: Bytes pulled from the source per read-side refill.
    """

    algorithm: Any = CompressionAlgorithm.GZIP
    level: int = DEFAULT_LEVEL
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def validate(self) -> None:
        """Validate configuration."""
        if not _is_int(self.level) or not MIN_LEVEL <= self.level <= MAX_LEVEL:
            raise CompressionConfigError(
                f"level must be in [{MIN_LEVEL}, {MAX_LEVEL}], got {self.level!r}"
            )
        if not _is_int(self.chunk_size) or self.chunk_size <= 0:
            raise CompressionConfigError("chunk_size must be positive")


Option = Callable[[CompressionConfig], CompressionConfig]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def with_level(level: int) -> Option:
    """Set the compression level (1-9, where 9 is best compression).

    Out-of-range or non-integer levels leave the configuration unchanged.
    """

    def apply(config: CompressionConfig) -> CompressionConfig:
        if _is_int(level) and MIN_LEVEL <= level <= MAX_LEVEL:
            return replace(config, level=level)
        logger.debug("Ignoring compression level %r, keeping %d", level, config.level)
        return config

    return apply


def with_chunk_size(size: int) -> Option:
    """Set how many compressed bytes a reader pulls from its source at once.

    Non-positive or non-integer sizes leave the configuration unchanged.
    """

    def apply(config: CompressionConfig) -> CompressionConfig:
        if _is_int(size) and size > 0:
            return replace(config, chunk_size=size)
        logger.debug("Ignoring chunk size %r, keeping %d", size, config.chunk_size)
        return config

    return apply


# =============================================================================
# Metrics
# =============================================================================


@dataclass
class StreamingMetrics:
    """Metrics for a single stream adapter.

    Attributes:
        bytes_in: Total input bytes.
        bytes_out: Total output bytes.
        chunks_processed: Number of write or refill calls handled.
        compression_ratio: Uncompressed to compressed size ratio.
        start_time: Time the adapter was created.
        end_time: Time the adapter was closed.
        errors: Number of errors encountered.
    """

    bytes_in: int = 0
    bytes_out: int = 0
    chunks_processed: int = 0
    compression_ratio: float = 0.0
    start_time: float = 0.0
    end_time: float = 0.0
    errors: int = 0

    def update_ratio(self, uncompressed: int, compressed: int) -> None:
        """Update compression ratio."""
        if compressed > 0:
            self.compression_ratio = uncompressed / compressed

    @property
    def duration_ms(self) -> float:
        """Get duration in milliseconds."""
        if self.end_time > self.start_time:
            return (self.end_time - self.start_time) * 1000
        return 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "bytes_in": self.bytes_in,
            "bytes_out": self.bytes_out,
            "chunks_processed": self.chunks_processed,
            "compression_ratio": round(self.compression_ratio, 2),
            "duration_ms": round(self.duration_ms, 2),
            "errors": self.errors,
        }
