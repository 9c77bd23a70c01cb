"""Stage timing helpers."""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

from torch.profiler import record_function

logger = logging.getLogger(__name__)


@contextmanager
def timed_stage(
    name: str, stage_logger: logging.Logger | None = None
) -> Iterator[None]:
    """Time a pipeline stage and label it for ``torch.profiler``.

    The elapsed wall time is logged at DEBUG level.

    Args:
        name: Stage name (e.g., "linearize", "raster").
        stage_logger: Logger to report on (defaults to this module's).

    Yields:
        None.
    """
    log = stage_logger or logger
    start = time.perf_counter()
    with record_function(name):
        yield
    log.debug("Stage %s: %.1f ms", name, (time.perf_counter() - start) * 1000.0)
