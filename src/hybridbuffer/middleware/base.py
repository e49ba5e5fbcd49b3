"""Middleware protocol and stream adapter base classes.

A middleware turns a byte sink into a transforming writer and a byte source
into a transforming reader. Buffers only ever talk to the returned
:class:`StreamWriter` and :class:`StreamReader`, never to the codec-specific
objects behind them.

Example:
    >>> from hybridbuffer.middleware import MiddlewareChain
    >>> from hybridbuffer.middleware.compression import CompressionMiddleware
    >>>
    >>> chain = MiddlewareChain(CompressionMiddleware("zlib"), CompressionMiddleware("gzip"))
    >>> with chain.writer(sink) as writer:
    ...     writer.write(payload)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Iterator, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


# =============================================================================
# Sink / Source Protocols
# =============================================================================


@runtime_checkable
class ByteSink(Protocol):
    """Anything that accepts bytes."""

    def write(self, data: bytes, /) -> Any:
        ...


@runtime_checkable
class ByteSource(Protocol):
    """Anything that hands out up to ``size`` bytes, ``b""`` at the end."""

    def read(self, size: int = -1, /) -> bytes:
        ...


# =============================================================================
# Stream Adapters
# =============================================================================


class StreamWriter(ABC):
    """Abstract base for transforming writers.

    Output is finalized only by :meth:`close`; nothing is finalized on
    :meth:`write`. Use the writer as a context manager to tie the close to
    the end of the writing phase.
    """

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write data to the stream.

        Args:
            data: Data chunk to write.

        Returns:
            Number of bytes consumed.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Finalize the stream. Further calls are no-ops."""
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        ...

    def __enter__(self) -> "StreamWriter":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class StreamReader(ABC):
    """Abstract base for transforming readers."""

    @abstractmethod
    def read(self, size: int = -1) -> bytes:
        """Read transformed data.

        Args:
            size: Maximum number of bytes to return (-1 for all).

        Returns:
            Data, or ``b""`` once the stream is exhausted.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release resources held by the reader. Further calls are no-ops."""
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        ...

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read(64 * 1024)
            if not chunk:
                return
            yield chunk

    def __enter__(self) -> "StreamReader":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


# =============================================================================
# Middleware Protocol
# =============================================================================


@runtime_checkable
class Middleware(Protocol):
    """Protocol every buffer middleware implements."""

    def writer(self, sink: ByteSink | BinaryIO) -> StreamWriter:
        """Wrap a sink with the forward transform."""
        ...

    def reader(self, source: ByteSource | BinaryIO) -> StreamReader:
        """Wrap a source with the reverse transform."""
        ...


# =============================================================================
# Chaining
# =============================================================================


class _ChainedWriter(StreamWriter):
    """Writer over nested adapters, outermost first."""

    def __init__(self, writers: list[StreamWriter]) -> None:
        self._writers = writers
        self._closed = False

    def write(self, data: bytes) -> int:
        return self._writers[0].write(data)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        # Outer adapters flush their trailers into inner ones before those close
        error: BaseException | None = None
        for writer in self._writers:
            try:
                writer.close()
            except Exception as e:
                if error is None:
                    error = e
        if error is not None:
            raise error

    @property
    def closed(self) -> bool:
        return self._closed


class _ChainedReader(StreamReader):
    """Reader over nested adapters, outermost first."""

    def __init__(self, readers: list[StreamReader]) -> None:
        self._readers = readers
        self._closed = False

    def read(self, size: int = -1) -> bytes:
        return self._readers[0].read(size)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for reader in self._readers:
            reader.close()

    @property
    def closed(self) -> bool:
        return self._closed


class MiddlewareChain:
    """Compose middlewares into one.

    Data written through the chain passes the first middleware first, so
    the first middleware's transform is the innermost encoding. Reading
    undoes the middlewares in reverse order.

    Example:
        >>> chain = MiddlewareChain(first, second)
        >>> writer = chain.writer(sink)   # first.writer(second.writer(sink))
        >>> reader = chain.reader(source) # first.reader(second.reader(source))
    """

    def __init__(self, *middlewares: Middleware) -> None:
        if not middlewares:
            raise ValueError("MiddlewareChain needs at least one middleware")
        self._middlewares = tuple(middlewares)

    @property
    def middlewares(self) -> tuple[Middleware, ...]:
        """Get the chained middlewares in write order."""
        return self._middlewares

    def __len__(self) -> int:
        return len(self._middlewares)

    def writer(self, sink: ByteSink | BinaryIO) -> StreamWriter:
        """Wrap a sink with every middleware's writer.

        If any stage fails to build, the stages already built are dropped
        without being closed, so no trailer reaches the sink.
        """
        writers: list[StreamWriter] = []
        target: Any = sink
        try:
            for middleware in reversed(self._middlewares):
                target = middleware.writer(target)
                writers.append(target)
        except Exception:
            logger.debug("Dropping %d built writer stages", len(writers))
            raise
        writers.reverse()
        logger.debug("Created chained writer with %d stages", len(writers))
        return _ChainedWriter(writers)

    def reader(self, source: ByteSource | BinaryIO) -> StreamReader:
        """Wrap a source with every middleware's reader."""
        readers: list[StreamReader] = []
        target: Any = source
        try:
            for middleware in reversed(self._middlewares):
                target = middleware.reader(target)
                readers.append(target)
        except Exception:
            for reader in readers:
                reader.close()
            raise
        readers.reverse()
        logger.debug("Created chained reader with %d stages", len(readers))
        return _ChainedReader(readers)
