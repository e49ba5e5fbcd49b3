"""Tests for middleware chaining."""

import gc
import gzip
import io
import zlib

import pytest

from hybridbuffer.middleware import Middleware, MiddlewareChain, StreamReader, StreamWriter
from hybridbuffer.middleware.compression import (
    CodecInitError,
    CompressionAlgorithm,
    CompressionMiddleware,
    StreamCloseError,
    UnsupportedAlgorithmError,
    with_level,
)


PAYLOAD = b"chained middleware payload " * 50


class RecordingSink(io.BytesIO):
    """Sink that can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail = False

    def write(self, data):
        if self.fail:
            raise OSError("sink gone")
        return super().write(data)


class TestMiddlewareChain:
    """Tests for MiddlewareChain."""

    def test_requires_middlewares(self):
        """Test an empty chain is rejected."""
        with pytest.raises(ValueError):
            MiddlewareChain()

    def test_is_middleware(self):
        """Test a chain is itself a middleware."""
        chain = MiddlewareChain(CompressionMiddleware("gzip"))
        assert isinstance(chain, Middleware)
        assert len(chain) == 1

    def test_round_trip(self):
        """Test data survives a two-stage chain."""
        chain = MiddlewareChain(
            CompressionMiddleware(CompressionAlgorithm.ZLIB, with_level(9)),
            CompressionMiddleware(CompressionAlgorithm.GZIP, with_level(1)),
        )
        sink = io.BytesIO()
        with chain.writer(sink) as writer:
            assert isinstance(writer, StreamWriter)
            writer.write(PAYLOAD[:100])
            writer.write(PAYLOAD[100:])

        with chain.reader(io.BytesIO(sink.getvalue())) as reader:
            assert isinstance(reader, StreamReader)
            assert reader.read() == PAYLOAD

    def test_first_middleware_is_innermost_encoding(self):
        """Test the outer format belongs to the last middleware."""
        chain = MiddlewareChain(
            CompressionMiddleware(CompressionAlgorithm.ZLIB),
            CompressionMiddleware(CompressionAlgorithm.GZIP),
        )
        sink = io.BytesIO()
        with chain.writer(sink) as writer:
            writer.write(PAYLOAD)

        inner = gzip.decompress(sink.getvalue())
        assert zlib.decompress(inner) == PAYLOAD

    def test_close_is_idempotent(self):
        """Test closing a chained writer twice."""
        chain = MiddlewareChain(CompressionMiddleware("zlib"), CompressionMiddleware("zlib"))
        sink = io.BytesIO()
        writer = chain.writer(sink)
        writer.write(PAYLOAD)
        writer.close()
        size = len(sink.getvalue())

        writer.close()

        assert writer.closed
        assert len(sink.getvalue()) == size

    def test_close_error_propagates(self):
        """Test a failing inner close is raised after all stages close."""
        chain = MiddlewareChain(CompressionMiddleware("zlib"), CompressionMiddleware("gzip"))
        sink = RecordingSink()
        writer = chain.writer(sink)
        writer.write(b"x")
        sink.fail = True

        with pytest.raises(StreamCloseError) as exc_info:
            writer.close()

        assert writer.closed
        cause = exc_info.value
        while cause is not None and not isinstance(cause, OSError):
            cause = cause.__cause__
        assert isinstance(cause, OSError)

    @pytest.mark.parametrize("inner", ["gzip", "zlib"])
    def test_failed_stage_leaves_sink_empty(self, inner):
        """Test a fatal fault in one stage writes nothing to the sink."""
        chain = MiddlewareChain(CompressionMiddleware("brotli"), CompressionMiddleware(inner))
        sink = io.BytesIO()

        with pytest.raises(UnsupportedAlgorithmError):
            chain.writer(sink)
        gc.collect()

        assert sink.getvalue() == b""

    def test_reader_header_error(self):
        """Test a bad inner header fails chained reader construction."""
        chain = MiddlewareChain(CompressionMiddleware("zlib"), CompressionMiddleware("gzip"))
        # Valid gzip wrapping bytes that are not a zlib stream
        data = gzip.compress(b"not a zlib stream")

        with pytest.raises(CodecInitError) as exc_info:
            chain.reader(io.BytesIO(data))

        assert exc_info.value.algorithm == "zlib"
