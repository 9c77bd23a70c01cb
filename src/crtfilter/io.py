"""Raw frame stream I/O with retry on interrupted or short transfers."""

import logging
from collections.abc import Iterator
from typing import BinaryIO

import numpy as np

from .frames import frame_from_bytes

logger = logging.getLogger(__name__)


def read_exact(stream: BinaryIO, size: int) -> bytes | None:
    """Read exactly ``size`` bytes, retrying short and interrupted reads.

    Args:
        stream: Binary input stream.
        size: Number of bytes wanted.

    Returns:
        The bytes, or None at end of stream or on an unrecoverable error.
    """
    buf = bytearray(size)
    view = memoryview(buf)
    filled = 0
    while filled < size:
        try:
            count = stream.readinto(view[filled:])
        except (InterruptedError, BlockingIOError):
            continue
        except OSError as e:
            logger.error("read: %s", e)
            return None
        if count is None:
            # Non-blocking stream with nothing available yet
            continue
        if count == 0:
            if filled:
                logger.warning("read: EOF after %d of %d bytes", filled, size)
            else:
                logger.info("read: EOF")
            return None
        filled += count
    return bytes(buf)


def write_all(stream: BinaryIO, data: bytes | memoryview) -> bool:
    """Write all of ``data``, retrying short and interrupted writes.

    Args:
        stream: Binary output stream.
        data: Bytes to write.

    Returns:
        True if everything was written, False on EOF or an I/O error.
    """
    view = memoryview(data).cast("B")
    written = 0
    while written < len(view):
        try:
            count = stream.write(view[written:])
        except (InterruptedError, BlockingIOError):
            continue
        except OSError as e:
            logger.error("write: %s", e)
            return False
        if count is None:
            continue
        if count == 0:
            logger.warning("write: EOF after %d of %d bytes", written, len(view))
            return False
        written += count
    try:
        stream.flush()
    except OSError as e:
        logger.error("write: %s", e)
        return False
    return True


def iter_frames(stream: BinaryIO, width: int, height: int) -> Iterator[np.ndarray]:
    """Yield consecutive raw frames until the stream ends.

    Args:
        stream: Binary input stream of concatenated native-endian frames.
        width: Frame width in pixels.
        height: Frame height in pixels.

    Yields:
        Frames (height, width) uint32.
    """
    size = width * height * 4
    while True:
        data = read_exact(stream, size)
        if data is None:
            return
        yield frame_from_bytes(data, width, height)


def write_frame(stream: BinaryIO, frame: np.ndarray) -> bool:
    """Write one frame in native byte order.

    Returns:
        True on success, False if the stream refused the data.
    """
    frame = np.ascontiguousarray(frame, dtype=np.uint32)
    return write_all(stream, frame.data)
