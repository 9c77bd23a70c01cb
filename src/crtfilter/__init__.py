"""CRT display simulation for raw RGB frame streams."""

from .cache import FrameCache, fingerprint
from .config import (
    FilterConfig,
    RasterGeometry,
    RuntimeConfig,
    StreamConfig,
    ToneConfig,
)
from .frames import (
    frame_from_bgr,
    frame_from_bytes,
    frame_to_bgr,
    pack_channels,
    unpack_channels,
)
from .pipeline import (
    CrtFilter,
    FilterContext,
    build_filter_context,
    convert_frame,
    run_stream,
)
from .postprocess import clamp_with_desaturation
from .raster import mask_weight, normalization_factor, scanline_intensity
from .resample import Resampler, compute_contributions, lanczos, resample_1d

__version__ = "0.1.0"

__all__ = [
    "FilterConfig",
    "StreamConfig",
    "RasterGeometry",
    "ToneConfig",
    "RuntimeConfig",
    "FrameCache",
    "fingerprint",
    "frame_from_bytes",
    "frame_from_bgr",
    "frame_to_bgr",
    "pack_channels",
    "unpack_channels",
    "lanczos",
    "compute_contributions",
    "Resampler",
    "resample_1d",
    "mask_weight",
    "scanline_intensity",
    "normalization_factor",
    "clamp_with_desaturation",
    "FilterContext",
    "build_filter_context",
    "convert_frame",
    "CrtFilter",
    "run_stream",
]
