"""Buffer middleware: transforms applied to data entering and leaving a buffer."""

from hybridbuffer.middleware.base import (
    ByteSink,
    ByteSource,
    Middleware,
    MiddlewareChain,
    StreamReader,
    StreamWriter,
)

__all__ = [
    "ByteSink",
    "ByteSource",
    "Middleware",
    "MiddlewareChain",
    "StreamReader",
    "StreamWriter",
]
