"""Conversions between packed 0x00RRGGBB frames, channel arrays and images."""

import numpy as np

CHANNEL_SHIFTS = (16, 8, 0)


def frame_from_bytes(data: bytes, width: int, height: int) -> np.ndarray:
    """Interpret a raw native-endian buffer as a frame.

    Args:
        data: Exactly ``width * height * 4`` bytes.
        width: Frame width in pixels.
        height: Frame height in pixels.

    Returns:
        Frame array (height, width) uint32 (a copy, safe to keep).

    Raises:
        ValueError: If the buffer has the wrong size.
    """
    expected = width * height * 4
    if len(data) != expected:
        raise ValueError(
            f"Expected {expected} bytes for a {width}x{height} frame, got {len(data)}"
        )
    return np.frombuffer(data, dtype=np.uint32).reshape(height, width).copy()


def unpack_channels(frame: np.ndarray) -> np.ndarray:
    """Split a packed frame into its 8-bit channels.

    Args:
        frame: Frame (H, W) uint32, 0x00RRGGBB.

    Returns:
        Channel array (3, H, W) uint8 in R, G, B order.
    """
    frame = np.asarray(frame, dtype=np.uint32)
    return np.stack(
        [((frame >> shift) & 0xFF).astype(np.uint8) for shift in CHANNEL_SHIFTS]
    )


def pack_channels(channels: np.ndarray) -> np.ndarray:
    """Pack R, G, B channels into 0x00RRGGBB pixels.

    Args:
        channels: Array (3, H, W) with values in [0, 255].

    Returns:
        Frame (H, W) uint32.
    """
    channels = np.asarray(channels).astype(np.uint32)
    return (channels[0] << 16) | (channels[1] << 8) | channels[2]


def frame_from_bgr(image: np.ndarray) -> np.ndarray:
    """Pack an OpenCV BGR image (H, W, 3) uint8 into a frame."""
    return pack_channels(np.moveaxis(image[:, :, ::-1], -1, 0))


def frame_to_bgr(frame: np.ndarray) -> np.ndarray:
    """Unpack a frame into an OpenCV BGR image (H, W, 3) uint8."""
    rgb = unpack_channels(frame)
    return np.ascontiguousarray(np.moveaxis(rgb, 0, -1)[:, :, ::-1])
