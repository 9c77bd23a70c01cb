"""Pipeline runner: per-frame conversion and stream processing."""

import logging
import sys
from typing import BinaryIO

import numpy as np
import torch
from tqdm import tqdm

from ..cache import FrameCache
from ..config import FilterConfig
from ..io import iter_frames, write_frame
from .builder import build_filter_context
from .context import FilterContext
from .stages.expansion import run_expansion_stage
from .stages.linearize import run_linearize_stage
from .stages.output import run_output_stage, run_vertical_stage

logger = logging.getLogger(__name__)


def convert_frame(frame: np.ndarray, ctx: FilterContext) -> np.ndarray:
    """Convert a single frame through the full CRT pipeline.

    Args:
        frame: Input frame (input_height, input_width) uint32, 0x00RRGGBB.
        ctx: Precomputed filter context from build_filter_context().

    Returns:
        Output frame (output_height, output_width) uint32.

    Raises:
        ValueError: If the frame does not match the configured input size.
    """
    stream = ctx.config.stream
    expected = (stream.input_height, stream.input_width)
    if frame.shape != expected:
        raise ValueError(f"Expected frame of shape {expected}, got {frame.shape}")

    with torch.inference_mode():
        # --- Stage 1: Linearize ---
        planes = run_linearize_stage(frame, ctx)

        # --- Stage 2: Raster expansion + horizontal resample ---
        virtual = run_expansion_stage(planes, ctx)

        # --- Stage 3: Vertical resample ---
        linear = run_vertical_stage(virtual, ctx)

        # --- Stages 4-5: Normalization + post-processing ---
        return run_output_stage(linear, ctx)


class CrtFilter:
    """CRT frame filter with recent-frame memoization.

    Primary programmatic entry point.

    Example:
        crt = CrtFilter(config)
        output = crt.convert(frame)
    """

    def __init__(self, config: FilterConfig):
        """Initialize the filter with configuration.

        Args:
            config: Full filter configuration.
        """
        self.config = config
        self.context = build_filter_context(config)
        self.cache = FrameCache(config.runtime.cache_size)

    def convert(self, frame: np.ndarray) -> np.ndarray:
        """Convert one frame, reusing the result of an identical recent frame.

        Args:
            frame: Input frame (input_height, input_width) uint32.

        Returns:
            Output frame (output_height, output_width) uint32.
        """
        return self.cache.get_or_compute(frame, self._convert_uncached)

    def _convert_uncached(self, frame: np.ndarray) -> np.ndarray:
        return convert_frame(frame, self.context)

    def run(self, input_stream: BinaryIO, output_stream: BinaryIO) -> int:
        """Filter raw frames from ``input_stream`` to ``output_stream``.

        Processing stops at end of input or when the output refuses data.

        Args:
            input_stream: Binary stream of raw input frames.
            output_stream: Binary stream receiving raw output frames.

        Returns:
            Number of frames written.
        """
        stream = self.config.stream
        frames = iter_frames(input_stream, stream.input_width, stream.input_height)

        count = 0
        for frame in tqdm(
            frames,
            desc="Filtering frames",
            disable=self.config.runtime.quiet or not sys.stderr.isatty(),
            unit="frame",
        ):
            output = self.convert(frame)
            if not write_frame(output_stream, output):
                logger.warning("Output stream closed, stopping")
                break
            count += 1

        logger.info(
            "Processed %d frame(s): %d cache hit(s), %d miss(es)",
            count,
            self.cache.hits,
            self.cache.misses,
        )
        return count


def run_stream(
    config: FilterConfig, input_stream: BinaryIO, output_stream: BinaryIO
) -> int:
    """Run the filter over a raw frame stream.

    Args:
        config: Full filter configuration.
        input_stream: Binary stream of raw input frames.
        output_stream: Binary stream receiving raw output frames.

    Returns:
        Number of frames written.
    """
    return CrtFilter(config).run(input_stream, output_stream)
