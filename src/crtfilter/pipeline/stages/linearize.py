"""Linearization stage: packed frame -> scanline planes."""

import logging

import numpy as np
import torch

from ...frames import unpack_channels
from ...profiling import timed_stage
from ..context import FilterContext

logger = logging.getLogger(__name__)


def run_linearize_stage(frame: np.ndarray, ctx: FilterContext) -> torch.Tensor:
    """Split a frame into channel planes and undo the display gamma.

    When the input height differs from the scanline count the planes are
    resampled vertically so that every row corresponds to one scanline.

    Args:
        frame: Input frame (H, W) uint32.
        ctx: Filter context.

    Returns:
        Linear planes (3, scanlines, input_width) float32 on ``ctx.device``.
    """
    with timed_stage("linearize", logger):
        gamma = ctx.config.tone.gamma
        channels = torch.from_numpy(unpack_channels(frame))
        planes = channels.to(device=ctx.device, dtype=torch.float32)
        planes = torch.pow(planes / 255.0, 1.0 / gamma)

        if ctx.scanline_resampler is not None:
            planes = ctx.scanline_resampler(planes, axis=-2)

        return planes
