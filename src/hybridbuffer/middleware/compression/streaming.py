"""Streaming compression adapters.

Every codec hands back a different kind of object: :class:`gzip.GzipFile`
is a file, while ``zlib.compressobj`` / ``zlib.decompressobj`` are bare
codec states with no file interface. The adapters here put each of them
behind the same :class:`~hybridbuffer.middleware.base.StreamWriter` /
:class:`~hybridbuffer.middleware.base.StreamReader` surface so callers never
see the codec-specific handle.

Example:
    >>> sink = io.BytesIO()
    >>> with GzipStreamWriter(sink, level=9) as writer:
    ...     writer.write(b"Hello, ")
    ...     writer.write(b"World!")
    >>> sink.seek(0)
    >>> with GzipStreamReader(sink) as reader:
    ...     reader.read()
    b'Hello, World!'
"""

from __future__ import annotations

import gzip
import logging
import time
import zlib
from abc import abstractmethod
from typing import Any, BinaryIO

from hybridbuffer.middleware.base import StreamReader, StreamWriter
from hybridbuffer.middleware.compression.base import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LEVEL,
    CodecInitError,
    CompressionAlgorithm,
    CompressionError,
    DecompressionError,
    StreamClosedError,
    StreamCloseError,
    StreamingMetrics,
    StreamReadError,
    StreamWriteError,
)

logger = logging.getLogger(__name__)


class _CountingSink:
    """Forwards writes to a sink and counts the bytes that went through."""

    def __init__(self, sink: Any) -> None:
        self._sink = sink
        self.count = 0

    def write(self, data: bytes) -> int:
        size = len(data)
        while data:
            written = self._sink.write(data)
            # File-likes that return nothing accept the whole buffer
            if written is None:
                written = len(data)
            if written <= 0:
                raise OSError(f"sink accepted 0 of {len(data)} bytes")
            self.count += written
            data = data[written:]
        return size

    def flush(self) -> None:
        flush = getattr(self._sink, "flush", None)
        if flush is not None:
            flush()


# =============================================================================
# Writers
# =============================================================================


class CompressingStreamWriter(StreamWriter):
    """Shared write/close bookkeeping for compressing writers.

    Subclasses build their codec in :meth:`_open` and implement
    :meth:`_compress` and :meth:`_finish`. Codec failures during
    construction raise :class:`CodecInitError`; sink failures raise
    :class:`StreamWriteError` or :class:`StreamCloseError`.
    """

    algorithm: CompressionAlgorithm

    def __init__(self, sink: BinaryIO | Any, level: int = DEFAULT_LEVEL) -> None:
        self._sink = _CountingSink(sink)
        self._level = level
        self._closed = False
        self._bytes_written = 0
        self._metrics = StreamingMetrics(start_time=time.time())

        try:
            self._open()
        except (ValueError, zlib.error) as e:
            raise CodecInitError(
                f"failed to create {self.algorithm.value} writer: {e}",
                self.algorithm.value,
            ) from e

        logger.debug("Opened %s writer at level %d", self.algorithm.value, level)

    @abstractmethod
    def _open(self) -> None:
        """Create the codec state. Must not write to the sink."""
        pass

    @abstractmethod
    def _compress(self, data: bytes) -> None:
        """Feed data to the codec, forwarding any output to the sink."""
        pass

    @abstractmethod
    def _finish(self) -> None:
        """Flush the codec and write the format trailer."""
        pass

    def write(self, data: bytes) -> int:
        """Compress data into the sink."""
        if self._closed:
            raise StreamClosedError(
                "write on closed stream", self.algorithm.value, "write"
            )

        size = memoryview(data).nbytes
        try:
            self._compress(data)
        except Exception as e:
            self._metrics.errors += 1
            raise StreamWriteError(str(e), self.algorithm.value) from e

        self._bytes_written += size
        self._metrics.bytes_in += size
        self._metrics.chunks_processed += 1
        return size

    def close(self) -> None:
        """Flush the codec and write the format trailer to the sink."""
        if self._closed:
            return
        self._closed = True

        try:
            self._finish()
        except Exception as e:
            self._metrics.errors += 1
            raise StreamCloseError(
                f"failed to close {self.algorithm.value} writer: {e}",
                self.algorithm.value,
            ) from e
        finally:
            self._metrics.bytes_out = self._sink.count
            self._metrics.end_time = time.time()
            self._metrics.update_ratio(self._metrics.bytes_in, self._metrics.bytes_out)

        logger.debug(
            "Closed %s writer: %d bytes in, %d bytes out",
            self.algorithm.value,
            self._metrics.bytes_in,
            self._metrics.bytes_out,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def level(self) -> int:
        """Get the compression level."""
        return self._level

    @property
    def bytes_written(self) -> int:
        """Get total uncompressed bytes written."""
        return self._bytes_written

    @property
    def metrics(self) -> StreamingMetrics:
        """Get stream metrics."""
        self._metrics.bytes_out = self._sink.count
        return self._metrics


class GzipStreamWriter(CompressingStreamWriter):
    """Streaming gzip compression writer backed by :class:`gzip.GzipFile`.

    The header carries no file name and a zero modification time, so equal
    input always yields equal output. The header is written on the first
    write or on close, never on construction.
    """

    algorithm = CompressionAlgorithm.GZIP

    def _open(self) -> None:
        # GzipFile writes its header immediately, so only check the level here
        zlib.compressobj(self._level)
        self._gzip: gzip.GzipFile | None = None

    def _gzip_file(self) -> gzip.GzipFile:
        if self._gzip is None:
            self._gzip = gzip.GzipFile(
                filename="",
                mode="wb",
                compresslevel=self._level,
                fileobj=self._sink,
                mtime=0,
            )
        return self._gzip

    def _compress(self, data: bytes) -> None:
        self._gzip_file().write(data)

    def _finish(self) -> None:
        self._gzip_file().close()


class ZlibStreamWriter(CompressingStreamWriter):
    """Streaming zlib compression writer backed by ``zlib.compressobj``."""

    algorithm = CompressionAlgorithm.ZLIB

    def _open(self) -> None:
        self._compressor = zlib.compressobj(self._level, zlib.DEFLATED, zlib.MAX_WBITS)

    def _compress(self, data: bytes) -> None:
        compressed = self._compressor.compress(data)
        if compressed:
            self._sink.write(compressed)

    def _finish(self) -> None:
        self._sink.write(self._compressor.flush())


# =============================================================================
# Readers
# =============================================================================


class DecompressingStreamReader(StreamReader):
    """Lazy inflate reader shared by the gzip and zlib formats.

    The minimal format header is pulled and checked on construction; a
    missing or malformed header raises :class:`CodecInitError`. After that,
    compressed bytes are pulled from the source ``chunk_size`` at a time,
    only as far as the caller's reads require. Corruption or truncation
    found later raises :class:`DecompressionError`, and the same error is
    raised again on every following read.
    """

    algorithm: CompressionAlgorithm
    multistream = False

    @property
    @abstractmethod
    def wbits(self) -> int:
        """Window bits selecting the container format."""
        pass

    @property
    @abstractmethod
    def header_size(self) -> int:
        """Size of the fixed header checked on construction."""
        pass

    def __init__(
        self,
        source: BinaryIO | Any,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._source = source
        self._chunk_size = chunk_size
        self._decoder: Any = zlib.decompressobj(self.wbits)
        self._buffer = bytearray()
        self._pending = b""
        self._eof = False
        self._closed = False
        self._error: CompressionError | None = None
        self._metrics = StreamingMetrics(start_time=time.time())

        self._read_header()
        logger.debug("Opened %s reader", self.algorithm.value)

    def _read_header(self) -> None:
        header = b""
        while len(header) < self.header_size:
            chunk = self._pull()
            if not chunk:
                raise CodecInitError(
                    f"failed to create {self.algorithm.value} reader: "
                    f"stream ended after {len(header)} header bytes",
                    self.algorithm.value,
                )
            header += chunk

        head, self._pending = header[: self.header_size], header[self.header_size :]
        try:
            self._buffer += self._decoder.decompress(head)
        except zlib.error as e:
            raise CodecInitError(
                f"failed to create {self.algorithm.value} reader: {e}",
                self.algorithm.value,
            ) from e

    def _pull(self) -> bytes:
        try:
            chunk = self._source.read(self._chunk_size)
        except CompressionError:
            raise
        except Exception as e:
            self._metrics.errors += 1
            raise StreamReadError(str(e), self.algorithm.value) from e

        chunk = bytes(chunk or b"")
        self._metrics.bytes_in += len(chunk)
        self._metrics.chunks_processed += 1
        return chunk

    def _fail(self, message: str, cause: BaseException | None = None) -> None:
        self._metrics.errors += 1
        self._error = DecompressionError(message, self.algorithm.value)
        raise self._error from cause

    def _fill(self) -> None:
        """Decode at most ``chunk_size`` more bytes into the buffer."""
        decoder = self._decoder
        if decoder.unconsumed_tail:
            data = decoder.unconsumed_tail
        elif self._pending:
            data, self._pending = self._pending, b""
        else:
            data = self._pull()

        try:
            if data:
                self._buffer += decoder.decompress(data, self._chunk_size)
            else:
                self._buffer += decoder.flush()
        except zlib.error as e:
            self._fail(str(e), e)

        if decoder.eof:
            self._end_of_member()
        elif not data:
            self._fail("unexpected end of stream")

    def _end_of_member(self) -> None:
        rest = self._decoder.unused_data + self._pending
        self._pending = b""

        if not self.multistream:
            self._eof = True
            return

        if not rest:
            rest = self._pull()
        if not rest:
            self._eof = True
            return

        # Another member follows; its header is checked as ordinary data
        self._decoder = zlib.decompressobj(self.wbits)
        self._pending = rest

    def read(self, size: int = -1) -> bytes:
        """Read decompressed data."""
        if self._closed:
            raise StreamClosedError(
                "read on closed stream", self.algorithm.value, "read"
            )
        if self._error is not None:
            raise self._error

        if size is None or size < 0:
            while not self._eof:
                self._fill()
            data = bytes(self._buffer)
            self._buffer.clear()
        else:
            while len(self._buffer) < size and not self._eof:
                self._fill()
            data = bytes(self._buffer[:size])
            del self._buffer[:size]

        self._metrics.bytes_out += len(data)
        return data

    def close(self) -> None:
        """Release the decoder state. The source is left open."""
        if self._closed:
            return
        self._closed = True
        self._decoder = None
        self._buffer = bytearray()
        self._pending = b""
        self._metrics.end_time = time.time()
        self._metrics.update_ratio(self._metrics.bytes_out, self._metrics.bytes_in)
        logger.debug(
            "Closed %s reader: %d bytes in, %d bytes out",
            self.algorithm.value,
            self._metrics.bytes_in,
            self._metrics.bytes_out,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def eof(self) -> bool:
        """Whether the compressed stream has been fully decoded."""
        return self._eof and not self._buffer

    @property
    def metrics(self) -> StreamingMetrics:
        """Get stream metrics."""
        return self._metrics


class GzipStreamReader(DecompressingStreamReader):
    """Streaming gzip decompression reader.

    Concatenated gzip members are decoded back to back, as ``gzip -d``
    does.
    """

    algorithm = CompressionAlgorithm.GZIP
    wbits = 16 + zlib.MAX_WBITS
    header_size = 10
    multistream = True


class ZlibStreamReader(DecompressingStreamReader):
    """Streaming zlib decompression reader."""

    algorithm = CompressionAlgorithm.ZLIB
    wbits = zlib.MAX_WBITS
    header_size = 2
