"""Tests for raw stream I/O."""

import io
import logging

import numpy as np

from crtfilter.io import iter_frames, read_exact, write_all, write_frame


class TrickleReader(io.RawIOBase):
    """Reader returning at most ``chunk`` bytes per call, interrupted once."""

    def __init__(self, data: bytes, chunk: int = 3):
        self._data = data
        self._pos = 0
        self._chunk = chunk
        self._interrupted = False

    def readable(self):
        return True

    def readinto(self, buffer):
        if not self._interrupted:
            self._interrupted = True
            raise InterruptedError
        piece = self._data[self._pos : self._pos + self._chunk]
        buffer[: len(piece)] = piece
        self._pos += len(piece)
        return len(piece)


class TrickleWriter:
    """Writer accepting at most ``chunk`` bytes per call."""

    def __init__(self, chunk: int = 2):
        self.data = bytearray()
        self._chunk = chunk
        self.flushed = False

    def write(self, buffer):
        piece = bytes(buffer[: self._chunk])
        self.data.extend(piece)
        return len(piece)

    def flush(self):
        self.flushed = True


class BrokenWriter:
    """Writer whose every write fails like a closed pipe."""

    def write(self, buffer):
        raise BrokenPipeError("closed")

    def flush(self):
        pass


def test_read_exact_retries_short_reads():
    """Short and interrupted reads are retried until the size is met."""
    stream = TrickleReader(bytes(range(10)))
    assert read_exact(stream, 10) == bytes(range(10))


def test_read_exact_eof():
    """A clean end of stream returns None."""
    assert read_exact(io.BytesIO(b""), 4) is None


def test_read_exact_partial_eof(caplog):
    """A truncated frame returns None and warns."""
    with caplog.at_level(logging.WARNING, logger="crtfilter.io"):
        assert read_exact(io.BytesIO(b"\x01\x02"), 4) is None
    assert "EOF after 2 of 4 bytes" in caplog.text


def test_write_all_retries_short_writes():
    """Short writes are retried and the stream is flushed."""
    writer = TrickleWriter()
    assert write_all(writer, b"abcdefg") is True
    assert bytes(writer.data) == b"abcdefg"
    assert writer.flushed


def test_write_all_error(caplog):
    """An I/O error is logged and reported as failure."""
    with caplog.at_level(logging.ERROR, logger="crtfilter.io"):
        assert write_all(BrokenWriter(), b"abc") is False
    assert "write" in caplog.text


def test_iter_frames():
    """Whole frames are yielded and a trailing partial frame is dropped."""
    frames = [np.full((2, 3), value, dtype=np.uint32) for value in (1, 2)]
    data = b"".join(frame.tobytes() for frame in frames) + b"\x00" * 5
    result = list(iter_frames(io.BytesIO(data), 3, 2))
    assert len(result) == 2
    for got, expected in zip(result, frames):
        np.testing.assert_array_equal(got, expected)


def test_write_frame():
    """A frame is written in native byte order."""
    frame = np.arange(6, dtype=np.uint32).reshape(2, 3)
    out = io.BytesIO()
    assert write_frame(out, frame)
    assert out.getvalue() == frame.tobytes()
