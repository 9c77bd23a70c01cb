"""Pipeline orchestration package for CRT frame conversion.

Provides the filter context, builder, per-frame stages and the stream
runner.
"""

from .builder import build_filter_context
from .context import FilterContext
from .runner import CrtFilter, convert_frame, run_stream

__all__ = [
    "CrtFilter",
    "FilterContext",
    "build_filter_context",
    "convert_frame",
    "run_stream",
]
