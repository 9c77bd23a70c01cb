"""Gamma re-encoding, glow and gamut-safe quantization of the output planes."""

import logging
import math

import cv2
import numpy as np

from .frames import pack_channels

logger = logging.getLogger(__name__)

# Rec. 709 luma weights, per 10000
LUMA_WEIGHTS = np.array([2126, 7152, 722], dtype=np.int64)
LUMA_TOTAL = int(LUMA_WEIGHTS.sum())

# Below this radius the kernel is effectively a single tap
MIN_GLOW_RADIUS = 0.5


def encode_gamma(linear: np.ndarray, scale: float, gamma: float) -> np.ndarray:
    """Re-encode linear values to integers, ``trunc(scale * |v| ** gamma)``.

    Args:
        linear: Float array of linear values (may be slightly negative from
            filter ringing).
        scale: Integer range of the result (255 for the sharp layer).
        gamma: Display gamma.

    Returns:
        int32 array, same shape.
    """
    encoded = scale * np.power(np.abs(np.asarray(linear, dtype=np.float64)), gamma)
    return np.trunc(encoded).astype(np.int32)


def glow_radius(output_width: int, radius: float, reference_width: int) -> float:
    """Glow kernel radius scaled from the reference width to ``output_width``."""
    return radius * output_width / reference_width


def apply_glow(layer: np.ndarray, radius: float) -> np.ndarray:
    """Blur each channel of ``layer`` independently with a Gaussian.

    The kernel spans ``2 * ceil(radius) + 1`` taps with sigma ``radius / 3``,
    so no light travels further than ``radius`` pixels. Borders are reflected
    so the blur neither loses nor gains energy.

    Args:
        layer: Integer array (3, H, W).
        radius: Kernel radius in output pixels.

    Returns:
        Blurred int32 array (3, H, W), truncated toward zero.
    """
    if radius < MIN_GLOW_RADIUS:
        logger.debug("Glow radius %.3f too small, skipping blur", radius)
        return layer.astype(np.int32, copy=True)

    size = 2 * math.ceil(radius) + 1
    sigma = radius / 3.0
    blurred = np.empty(layer.shape, dtype=np.float32)
    for c in range(layer.shape[0]):
        blurred[c] = cv2.GaussianBlur(
            layer[c].astype(np.float32),
            (size, size),
            sigmaX=sigma,
            sigmaY=sigma,
            borderType=cv2.BORDER_REFLECT,
        )
    return np.trunc(blurred).astype(np.int32)


def _trunc_div(numerator: np.ndarray, denominator: np.ndarray) -> np.ndarray:
    """Integer division rounding toward zero (denominator > 0)."""
    return np.sign(numerator) * (np.abs(numerator) // denominator)


def _spread(
    rgb: np.ndarray, need: np.ndarray, room: np.ndarray, sign: int
) -> np.ndarray:
    """Move energy from channels in ``need`` to channels with ``room``.

    The luma-weighted amount moved is the smaller of the total need and the
    total room; each channel receives (or gives) in proportion to its share.
    """
    work = (np.maximum(need, 0) * LUMA_WEIGHTS).sum(axis=-1)
    capacity = (np.maximum(room, 0) * LUMA_WEIGHTS).sum(axis=-1)
    active = (work > 0) & (capacity > 0)
    act = np.minimum(work, capacity)[..., None]

    denominator = np.where(room > 0, capacity[..., None], work[..., None])
    denominator = np.where(active[..., None], denominator, 1)
    delta = _trunc_div(room * sign * act, denominator)
    return np.where(active[..., None], rgb + delta, rgb)


def clamp_with_desaturation(rgb: np.ndarray) -> np.ndarray:
    """Bring out-of-range colors into [0, 255] while keeping their luma.

    Pixels brighter than white become white and pixels with non-positive
    luma become black. Otherwise the excess above 255 is first handed to
    channels with headroom, then any debt below 0 is borrowed from channels
    with value to spare, so hue shifts toward white/black instead of
    rotating as per-channel clipping would.

    Args:
        rgb: Integer array (..., 3) in R, G, B order; values may lie outside
            [0, 255].

    Returns:
        int64 array (..., 3) with every value in [0, 255]. Inputs already in
        range are returned unchanged.
    """
    rgb = np.asarray(rgb, dtype=np.int64)
    luma = (rgb * LUMA_WEIGHTS).sum(axis=-1)
    blown = luma > 255 * LUMA_TOTAL
    dark = luma <= 0

    # Excess above 255 goes to channels below 255
    rgb = _spread(rgb, rgb - 255, 255 - rgb, 1)
    # Debt below 0 is paid by channels above 0
    rgb = _spread(rgb, -rgb, rgb, -1)

    rgb = np.where(blown[..., None], 255, rgb)
    rgb = np.where(dark[..., None], 0, rgb)
    # Truncating division can leave a unit of residue on either side
    return np.clip(rgb, 0, 255)


def postprocess(
    linear: np.ndarray,
    normalization: float,
    gamma: float,
    sharp_scale: float,
    glow_scale: float,
    radius: float,
) -> np.ndarray:
    """Turn linear output planes into a packed frame.

    Args:
        linear: Output planes (3, H, W) float32, before normalization.
        normalization: Mask/scanline energy compensation factor.
        gamma: Display gamma.
        sharp_scale: Scale of the sharp layer.
        glow_scale: Scale of the layer fed into the glow blur.
        radius: Glow kernel radius.

    Returns:
        Frame (H, W) uint32.
    """
    normalized = np.asarray(linear, dtype=np.float32) * np.float32(normalization)

    glow = apply_glow(encode_gamma(normalized, glow_scale, gamma), radius)
    sharp = encode_gamma(normalized, sharp_scale, gamma)

    combined = np.moveaxis(sharp + glow, 0, -1)
    clamped = clamp_with_desaturation(combined)
    return pack_channels(np.moveaxis(clamped, -1, 0))
