"""Shadow mask and scanline model of the virtual CRT raster."""

import numpy as np

from .config import RasterGeometry

SCANLINE_SIGMA = 0.3


def mask_weight(
    channel: int,
    x: np.ndarray | int,
    y: np.ndarray | int,
    geometry: RasterGeometry | None = None,
) -> np.ndarray:
    """Return whether ``channel``'s phosphor cell is lit at virtual pixel (x, y).

    Successive triplet columns are shifted down by ``stagger`` rows, which
    produces the diagonal brick pattern of a slot mask.

    Args:
        channel: 0 = red, 1 = green, 2 = blue.
        x: Virtual column(s), non-negative.
        y: Virtual row(s), non-negative. Broadcasts against ``x``.
        geometry: Mask geometry (defaults to the standard triad).

    Returns:
        float32 array of 0.0 / 1.0 with the broadcast shape of x and y.
    """
    if geometry is None:
        geometry = RasterGeometry()

    start, end = geometry.cell_span(channel)
    hpix, hmod = np.divmod(np.asarray(x, dtype=np.int64), geometry.horizontal_period)
    vmod = (np.asarray(y, dtype=np.int64) + geometry.stagger * hpix) % (
        geometry.vertical_period
    )
    lit = (vmod < geometry.cell_height) & (hmod >= start) & (hmod < end)
    return lit.astype(np.float32)


def mask_row(
    channel: int, y: int, width: int, geometry: RasterGeometry | None = None
) -> np.ndarray:
    """Mask values of one virtual row, shape (width,)."""
    return mask_weight(channel, np.arange(width), y, geometry)


def lit_fraction(channel: int, geometry: RasterGeometry | None = None) -> float:
    """Fraction of one full mask period in which ``channel`` is lit."""
    if geometry is None:
        geometry = RasterGeometry()
    horizontal = geometry.cell_widths[channel] / geometry.horizontal_period
    vertical = geometry.cell_height / geometry.vertical_period
    return horizontal * vertical


def scanline_intensity(
    n: np.ndarray | float, sigma: float = SCANLINE_SIGMA
) -> np.ndarray:
    """Gaussian beam profile at position ``n`` relative to a scanline's top edge.

    Peaks at ``n = 0.5`` (the scanline centre).
    """
    n = np.asarray(n, dtype=np.float64)
    return np.exp(-((n - 0.5) ** 2) / (2.0 * sigma * sigma))


def scanline_blend(
    frac: np.ndarray | float, sigma: float = SCANLINE_SIGMA
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Weights for blending a scanline with its nearer neighbour.

    Args:
        frac: Position inside the current scanline, in ``[0, 1)``.
        sigma: Beam profile width.

    Returns:
        Tuple of (own_weight, neighbour_offset, neighbour_weight). The
        neighbour is the previous scanline (offset -1) in the upper half and
        the next one (offset +1) in the lower half.
    """
    frac = np.asarray(frac, dtype=np.float64)
    offset = np.where(frac < 0.5, -1, 1).astype(np.int64)
    own = scanline_intensity(frac, sigma)
    neighbour = scanline_intensity(frac - offset, sigma)
    return own, offset, neighbour


def normalization_factor(
    geometry: RasterGeometry | None = None,
    sigma: float = SCANLINE_SIGMA,
    samples: int = 8,
) -> float:
    """Gain that undoes the average energy removed by mask and scanlines.

    The mask term is the number of lit cells of all three channels per
    virtual pixel, counted over one horizontal x vertical period. The
    scanline term is the beam profile averaged over ``samples`` evenly
    spaced positions ``n / samples`` of one scanline. With this gain a
    uniform white input carries one unit of linear light per virtual pixel,
    summed over the triad.

    Args:
        geometry: Mask geometry.
        sigma: Beam profile width.
        samples: Number of scanline positions sampled.

    Returns:
        Multiplicative factor (about 2.96 for the standard triad).
    """
    if geometry is None:
        geometry = RasterGeometry()

    xs = np.arange(geometry.horizontal_period)[None, :]
    ys = np.arange(geometry.vertical_period)[:, None]
    lit = sum(float(mask_weight(c, xs, ys, geometry).sum()) for c in range(3))
    mask_mean = lit / (xs.size * ys.size)

    scan_mean = float(scanline_intensity(np.arange(samples) / samples, sigma).mean())

    return 1.0 / (mask_mean * scan_mean)
