"""Filter context dataclass for precomputed data."""

from dataclasses import dataclass

import torch

from ..config import FilterConfig
from ..resample import Resampler


@dataclass
class FilterContext:
    """Precomputed data that is constant across all frames.

    Created once by build_filter_context() and reused for every frame.

    Attributes:
        config: Filter configuration.
        device: Torch device holding the operators.
        scanline_resampler: Input height -> scanline count resampler, or None
            when the input already has one row per scanline.
        scanline_blend: Virtual row <- scanline blend matrix (TV, S).
        row_operators: Per channel and mask phase, the folded
            replicate/mask/resample operator, shape (3, P, out_width, in_width).
        output_resampler: Virtual rows -> output height resampler.
        normalization: Mask and scanline energy compensation factor.
        glow_radius: Glow kernel radius in output pixels.
    """

    config: FilterConfig
    device: str
    scanline_resampler: Resampler | None
    scanline_blend: torch.Tensor
    row_operators: torch.Tensor
    output_resampler: Resampler
    normalization: float
    glow_radius: float

    @property
    def virtual_rows(self) -> int:
        """Total virtual vertical resolution."""
        return self.scanline_blend.shape[0]
