"""Compression middleware for hybrid buffers.

Wraps a buffer's byte sink with a gzip or zlib compressing writer, and its
byte source with the matching decompressing reader. Output is the standard
format for the chosen algorithm with no framing of its own.

Features:
    - gzip (RFC 1952) and zlib (RFC 1950) via Python's codec modules
    - Levels 1-9, default 6; invalid levels are ignored, never fatal
    - Lazy, bounded-memory decompression
    - Per-stream metrics

Example:
    >>> from hybridbuffer.middleware.compression import (
    ...     CompressionAlgorithm,
    ...     CompressionMiddleware,
    ...     with_level,
    ... )
    >>>
    >>> middleware = CompressionMiddleware(CompressionAlgorithm.ZLIB, with_level(9))
    >>> with middleware.writer(sink) as writer:
    ...     for chunk in chunks:
    ...         writer.write(chunk)
    >>>
    >>> with middleware.reader(source) as reader:
    ...     data = reader.read()
"""

from hybridbuffer.middleware.compression.base import (
    # Constants
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LEVEL,
    MAX_LEVEL,
    MIN_LEVEL,
    # Enums
    CompressionAlgorithm,
    # Configuration
    CompressionConfig,
    Option,
    with_chunk_size,
    with_level,
    # Metrics
    StreamingMetrics,
    # Exceptions
    CodecInitError,
    CompressionConfigError,
    CompressionError,
    DecompressionError,
    StreamClosedError,
    StreamCloseError,
    StreamError,
    StreamReadError,
    StreamWriteError,
    UnsupportedAlgorithmError,
)
from hybridbuffer.middleware.compression.config import load_config_from_env
from hybridbuffer.middleware.compression.middleware import (
    CompressionMiddleware,
    list_algorithms,
)
from hybridbuffer.middleware.compression.streaming import (
    CompressingStreamWriter,
    DecompressingStreamReader,
    GzipStreamReader,
    GzipStreamWriter,
    ZlibStreamReader,
    ZlibStreamWriter,
)

__all__ = [
    # Constants
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_LEVEL",
    "MAX_LEVEL",
    "MIN_LEVEL",
    # Enums
    "CompressionAlgorithm",
    # Configuration
    "CompressionConfig",
    "Option",
    "with_chunk_size",
    "with_level",
    "load_config_from_env",
    # Metrics
    "StreamingMetrics",
    # Exceptions
    "CodecInitError",
    "CompressionConfigError",
    "CompressionError",
    "DecompressionError",
    "StreamClosedError",
    "StreamCloseError",
    "StreamError",
    "StreamReadError",
    "StreamWriteError",
    "UnsupportedAlgorithmError",
    # Middleware
    "CompressionMiddleware",
    "list_algorithms",
    # Streaming
    "CompressingStreamWriter",
    "DecompressingStreamReader",
    "GzipStreamReader",
    "GzipStreamWriter",
    "ZlibStreamReader",
    "ZlibStreamWriter",
]
