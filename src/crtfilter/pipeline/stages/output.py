"""Output stages: vertical resample to output height and post-processing."""

import logging

import numpy as np
import torch

from ...postprocess import postprocess
from ...profiling import timed_stage
from ..context import FilterContext

logger = logging.getLogger(__name__)


def run_vertical_stage(virtual: torch.Tensor, ctx: FilterContext) -> torch.Tensor:
    """Resample the virtual rows down to the output height.

    Args:
        virtual: Planes (3, TV, output_width).
        ctx: Filter context.

    Returns:
        Linear output planes (3, output_height, output_width).
    """
    with timed_stage("vertical", logger):
        return ctx.output_resampler(virtual, axis=-2)


def run_output_stage(linear: torch.Tensor, ctx: FilterContext) -> np.ndarray:
    """Normalize, re-encode, add glow and quantize to a packed frame.

    Args:
        linear: Linear output planes (3, output_height, output_width).
        ctx: Filter context.

    Returns:
        Output frame (output_height, output_width) uint32.
    """
    with timed_stage("postprocess", logger):
        tone = ctx.config.tone
        return postprocess(
            linear.cpu().numpy(),
            normalization=ctx.normalization,
            gamma=tone.gamma,
            sharp_scale=tone.sharp_scale,
            glow_scale=tone.glow_scale,
            radius=ctx.glow_radius,
        )
