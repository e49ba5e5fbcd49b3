"""Compression middleware for hybrid buffers.

Example:
    >>> from hybridbuffer.middleware.compression import (
    ...     CompressionAlgorithm,
    ...     CompressionMiddleware,
    ...     with_level,
    ... )
    >>>
    >>> middleware = CompressionMiddleware(CompressionAlgorithm.GZIP, with_level(9))
    >>> with middleware.writer(sink) as writer:
    ...     writer.write(payload)
    >>> with middleware.reader(source) as reader:
    ...     payload = reader.read()
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Mapping

from hybridbuffer.middleware.base import ByteSink, ByteSource
from hybridbuffer.middleware.compression.base import (
    CompressionAlgorithm,
    CompressionConfig,
    Option,
    UnsupportedAlgorithmError,
    with_chunk_size,
    with_level,
)
from hybridbuffer.middleware.compression.config import load_config_from_env
from hybridbuffer.middleware.compression.streaming import (
    CompressingStreamWriter,
    DecompressingStreamReader,
    GzipStreamReader,
    GzipStreamWriter,
    ZlibStreamReader,
    ZlibStreamWriter,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Dispatch Tables
# =============================================================================

# One entry per CompressionAlgorithm member; there is no fallback codec.
_WRITERS: dict[CompressionAlgorithm, type[CompressingStreamWriter]] = {
    CompressionAlgorithm.GZIP: GzipStreamWriter,
    CompressionAlgorithm.ZLIB: ZlibStreamWriter,
}

_READERS: dict[CompressionAlgorithm, type[DecompressingStreamReader]] = {
    CompressionAlgorithm.GZIP: GzipStreamReader,
    CompressionAlgorithm.ZLIB: ZlibStreamReader,
}


def list_algorithms() -> list[CompressionAlgorithm]:
    """List algorithms that have both a writer and a reader."""
    return [a for a in CompressionAlgorithm if a in _WRITERS and a in _READERS]


def _dispatch(table: dict[CompressionAlgorithm, Any], algorithm: Any) -> Any:
    try:
        return table[algorithm]
    except (KeyError, TypeError):
        raise UnsupportedAlgorithmError(
            algorithm, [a.value for a in list_algorithms()]
        ) from None


# =============================================================================
# Middleware
# =============================================================================


class CompressionMiddleware:
    """Wraps buffer sinks and sources with gzip or zlib compression.

    Options are applied in order during construction. An option given an
    invalid value is ignored rather than rejected, so a bad level falls back
    to the level already configured (6 by default). The algorithm is only
    checked when a stream is wrapped.

    Args:
        algorithm: Algorithm enum or its name ("gzip", "zlib").
        *options: Configuration options such as :func:`with_level`.
    """

    def __init__(self, algorithm: CompressionAlgorithm | str, *options: Option) -> None:
        config = CompressionConfig(algorithm=CompressionAlgorithm.coerce(algorithm))
        for option in options:
            config = option(config)
        self._config = config
        logger.debug("Configured %r", self)

    @classmethod
    def from_config(cls, config: CompressionConfig) -> "CompressionMiddleware":
        """Create a middleware from a complete configuration.

        Raises:
            CompressionConfigError: If the level or chunk size is invalid.
        """
        config.validate()
        return cls(
            config.algorithm,
            with_level(config.level),
            with_chunk_size(config.chunk_size),
        )

    @classmethod
    def from_env(
        cls,
        prefix: str = "HYBRIDBUFFER_COMPRESSION",
        environ: Mapping[str, str] | None = None,
    ) -> "CompressionMiddleware":
        """Create a middleware from ``<prefix>_*`` environment variables."""
        return cls.from_config(load_config_from_env(prefix, environ))

    @property
    def config(self) -> CompressionConfig:
        """Get the configuration."""
        return self._config

    @property
    def algorithm(self) -> Any:
        """Get the algorithm identifier."""
        return self._config.algorithm

    @property
    def level(self) -> int:
        """Get the compression level."""
        return self._config.level

    def writer(self, sink: ByteSink | BinaryIO) -> CompressingStreamWriter:
        """Wrap a sink with a compressing writer.

        Args:
            sink: Object with a ``write(bytes)`` method.

        Returns:
            Writer whose output is finalized by ``close()``.

        Raises:
            UnsupportedAlgorithmError: If the algorithm has no codec.
            CodecInitError: If the codec rejects the configuration.
        """
        writer_class = _dispatch(_WRITERS, self._config.algorithm)
        if not isinstance(sink, ByteSink):
            raise TypeError(f"sink must have a write() method, got {type(sink).__name__}")
        return writer_class(sink, level=self._config.level)

    def reader(self, source: ByteSource | BinaryIO) -> DecompressingStreamReader:
        """Wrap a source with a decompressing reader.

        Args:
            source: Object with a ``read(size)`` method.

        Returns:
            Reader that pulls from ``source`` as decompressed bytes are read.

        Raises:
            UnsupportedAlgorithmError: If the algorithm has no codec.
            CodecInitError: If the stream header is missing or malformed.
        """
        reader_class = _dispatch(_READERS, self._config.algorithm)
        if not isinstance(source, ByteSource):
            raise TypeError(f"source must have a read() method, got {type(source).__name__}")
        return reader_class(source, chunk_size=self._config.chunk_size)

    def __repr__(self) -> str:
        algorithm = getattr(self.algorithm, "value", self.algorithm)
        return f"CompressionMiddleware(algorithm={algorithm!r}, level={self.level})"
