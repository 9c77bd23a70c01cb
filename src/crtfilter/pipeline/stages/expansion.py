"""Raster expansion stage: scanlines -> masked, output-width virtual rows."""

import logging

import numpy as np
import torch

from ...config import RasterGeometry
from ...profiling import timed_stage
from ...raster import mask_row, mask_weight, scanline_blend
from ...resample import FILTER_RADIUS, Resampler, compute_contributions
from ..context import FilterContext

logger = logging.getLogger(__name__)


def replication_index(input_width: int, virtual_width: int) -> np.ndarray:
    """Input column feeding each virtual column (nearest-index replication)."""
    return (np.arange(virtual_width, dtype=np.int64) * input_width) // virtual_width


def build_scanline_blend(scanlines: int, period: int, sigma: float) -> np.ndarray:
    """Matrix mapping scanlines to virtual rows with beam-profile weights.

    Virtual row ``y`` lies at ``y * scanlines / TV`` scanlines; it takes its
    own scanline and the nearer neighbour, each weighted by the Gaussian
    beam profile. Neighbours beyond the first or last scanline contribute
    nothing.

    Args:
        scanlines: Number of scanlines S.
        period: Virtual rows per scanline (mask vertical period).
        sigma: Beam profile width.

    Returns:
        Array (S * period, S) float64.
    """
    total = scanlines * period
    rows = np.arange(total, dtype=np.int64)
    source = (rows * scanlines) // total
    frac = ((rows * scanlines) % total) / total

    own, offset, neighbour = scanline_blend(frac, sigma)

    blend = np.zeros((total, scanlines), dtype=np.float64)
    blend[rows, source] = own
    other = source + offset
    valid = (other >= 0) & (other < scanlines)
    blend[rows[valid], other[valid]] += neighbour[valid]
    return blend


def build_row_operators(
    input_width: int,
    output_width: int,
    geometry: RasterGeometry,
    radius: int = FILTER_RADIUS,
    blur: float = 1.0,
) -> np.ndarray:
    """Fold replication, masking and horizontal resampling into matrices.

    The mask of virtual row ``y`` depends on ``y`` only through
    ``y mod vertical_period``, so each channel has one linear operator per
    phase: ``resample(mask * replicate(row)) == operator @ row``.

    Args:
        input_width: Width of a scanline.
        output_width: Width of the output frame.
        geometry: Mask geometry.
        radius: Lanczos radius.
        blur: Resampler support widening.

    Returns:
        Array (3, vertical_period, output_width, input_width) float64.
    """
    virtual_width = geometry.virtual_width
    table = compute_contributions(virtual_width, output_width, radius, blur)
    cols = table.columns()
    weights = table.normalized()
    targets = np.broadcast_to(np.arange(output_width)[:, None], cols.shape)
    sources = replication_index(input_width, virtual_width)[cols]

    period = geometry.vertical_period
    operators = np.zeros((3, period, output_width, input_width), dtype=np.float64)
    for channel in range(3):
        for phase in range(period):
            mask = mask_weight(channel, cols, phase, geometry)
            np.add.at(operators[channel, phase], (targets, sources), weights * mask)
    return operators


def expand_scanline(
    row: np.ndarray,
    y: int,
    geometry: RasterGeometry,
    resampler: Resampler,
) -> np.ndarray:
    """Expand, mask and resample one virtual row the direct way.

    Equivalent to applying the row operator of phase ``y mod period``, but
    materializes the full virtual-width row.

    Args:
        row: Blended scanline (3, input_width).
        y: Virtual row index.
        geometry: Mask geometry.
        resampler: Virtual width -> output width resampler.

    Returns:
        Array (3, output_width) float32.
    """
    virtual_width = geometry.virtual_width
    index = replication_index(row.shape[-1], virtual_width)
    expanded = np.asarray(row, dtype=np.float32)[:, index]
    mask = np.stack([mask_row(c, y, virtual_width, geometry) for c in range(3)])
    return resampler(torch.from_numpy(expanded * mask), axis=-1).numpy()


def run_expansion_stage(planes: torch.Tensor, ctx: FilterContext) -> torch.Tensor:
    """Build every virtual row and resample it to the output width.

    Args:
        planes: Linear scanline planes (3, S, input_width).
        ctx: Filter context.

    Returns:
        Planes (3, TV, output_width) float32.
    """
    with timed_stage("expansion", logger):
        rows = torch.matmul(ctx.scanline_blend, planes)

        operators = ctx.row_operators
        period = operators.shape[1]
        output_width = operators.shape[2]
        virtual = torch.empty(
            (3, rows.shape[1], output_width), dtype=rows.dtype, device=rows.device
        )
        for phase in range(period):
            virtual[:, phase::period, :] = torch.matmul(
                rows[:, phase::period, :], operators[:, phase].transpose(-1, -2)
            )
        return virtual
