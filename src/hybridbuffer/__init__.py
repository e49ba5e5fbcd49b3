"""hybridbuffer - pluggable stream transforms for buffered storage."""

from hybridbuffer.middleware import Middleware, MiddlewareChain, StreamReader, StreamWriter
from hybridbuffer.middleware.compression import (
    CompressionAlgorithm,
    CompressionError,
    CompressionMiddleware,
    with_level,
)

__version__ = "0.1.0"

__all__ = [
    "CompressionAlgorithm",
    "CompressionError",
    "CompressionMiddleware",
    "Middleware",
    "MiddlewareChain",
    "StreamReader",
    "StreamWriter",
    "with_level",
    "__version__",
]
