"""Filter context builder for one-time initialization."""

import logging

import torch

from ..config import FilterConfig
from ..postprocess import glow_radius
from ..raster import normalization_factor
from ..resample import Resampler
from .context import FilterContext
from .stages.expansion import build_row_operators, build_scanline_blend

logger = logging.getLogger(__name__)


def _select_device(requested: str) -> str:
    """Return ``requested`` or fall back to CPU when CUDA is unavailable."""
    if requested == "cuda" and not torch.cuda.is_available():
        logger.warning("CUDA requested but not available, falling back to CPU")
        return "cpu"
    return requested


def build_filter_context(config: FilterConfig) -> FilterContext:
    """Perform one-time filter initialization.

    Precomputes the resampling filters, the scanline blend matrix, the
    per-phase row operators and the normalization factor. All returned data
    is constant for the whole stream.

    Args:
        config: Filter configuration.

    Returns:
        FilterContext with all precomputed data.
    """
    stream = config.stream
    geometry = config.raster
    tone = config.tone

    device = _select_device(config.runtime.device)
    if config.runtime.num_threads is not None:
        torch.set_num_threads(config.runtime.num_threads)

    virtual_rows = stream.scanlines * geometry.vertical_period
    logger.info(
        "Building filter: %dx%d -> %dx%d, %d scanlines, virtual raster %dx%d",
        stream.input_width,
        stream.input_height,
        stream.output_width,
        stream.output_height,
        stream.scanlines,
        geometry.virtual_width,
        virtual_rows,
    )

    # 1. Input rows -> scanlines
    scanline_resampler = None
    if stream.input_height != stream.scanlines:
        scanline_resampler = Resampler(
            stream.input_height,
            stream.scanlines,
            radius=tone.filter_radius,
            blur=tone.blur,
            device=device,
        )

    # 2. Scanlines -> virtual rows
    blend = build_scanline_blend(
        stream.scanlines, geometry.vertical_period, tone.scanline_sigma
    )

    # 3. Virtual rows -> output width, one operator per channel and phase
    logger.info("Computing row operators")
    operators = build_row_operators(
        stream.input_width,
        stream.output_width,
        geometry,
        radius=tone.filter_radius,
        blur=tone.blur,
    )

    # 4. Virtual rows -> output height
    output_resampler = Resampler(
        virtual_rows,
        stream.output_height,
        radius=tone.filter_radius,
        blur=tone.blur,
        device=device,
    )

    # 5. Energy compensation
    normalization = normalization_factor(
        geometry, tone.scanline_sigma, tone.normalization_samples
    )
    logger.info("Normalization factor: %.4f", normalization)

    return FilterContext(
        config=config,
        device=device,
        scanline_resampler=scanline_resampler,
        scanline_blend=torch.from_numpy(blend).to(device=device, dtype=torch.float32),
        row_operators=torch.from_numpy(operators).to(
            device=device, dtype=torch.float32
        ),
        output_resampler=output_resampler,
        normalization=normalization,
        glow_radius=glow_radius(
            stream.output_width, tone.glow_radius, tone.glow_reference_width
        ),
    )
