"""Separable Lanczos resampling shared by the horizontal and vertical passes."""

import logging
from dataclasses import dataclass

import numpy as np
import torch

logger = logging.getLogger(__name__)

FILTER_RADIUS = 2


def lanczos(x: np.ndarray, radius: int = FILTER_RADIUS) -> np.ndarray:
    """Evaluate the Lanczos kernel ``sinc(x) * sinc(x / radius)``.

    ``np.sinc`` is the normalized sinc, so ``lanczos(0) == 1`` exactly and the
    0/0 singularity never arises.

    Args:
        x: Sample offsets in source-pixel units, any shape.
        radius: Number of lobes; the kernel is zero for ``|x| >= radius``.

    Returns:
        Kernel values, float64, same shape as ``x``.
    """
    x = np.asarray(x, dtype=np.float64)
    inside = np.abs(x) < radius
    return np.where(inside, np.sinc(x) * np.sinc(x / radius), 0.0)


@dataclass
class ContributionTable:
    """Contribution windows of every target sample along one axis.

    Row ``i`` describes target sample ``i``: source samples
    ``[starts[i], starts[i] + counts[i])`` weighted by
    ``contrib[i, :counts[i]]`` (padding entries are zero).

    Attributes:
        source_length: Number of source samples.
        target_length: Number of target samples.
        starts: First contributing source index per target, shape (T,) int64.
        counts: Window length (``nmax``) per target, shape (T,) int64.
        contrib: Unnormalized kernel weights, shape (T, max_count) float64.
        density: Sum of the weights in each window, shape (T,) float64.
    """

    source_length: int
    target_length: int
    starts: np.ndarray
    counts: np.ndarray
    contrib: np.ndarray
    density: np.ndarray

    def columns(self) -> np.ndarray:
        """Source index of every contrib entry, clipped into range.

        Returns:
            Array of shape (T, max_count) int64. Padding entries point at a
            valid index but carry zero weight.
        """
        offsets = np.arange(self.contrib.shape[1])
        cols = self.starts[:, None] + offsets[None, :]
        return np.minimum(cols, self.source_length - 1)

    def normalized(self) -> np.ndarray:
        """Weights divided by their window density.

        A density of exactly 0 or 1 is left undivided.

        Returns:
            Array of shape (T, max_count) float64.
        """
        density = self.density
        divisor = np.where((density == 0.0) | (density == 1.0), 1.0, density)
        return self.contrib / divisor[:, None]

    def weight_matrix(self) -> np.ndarray:
        """Dense (target x source) matrix applying the normalized filter.

        Returns:
            Array of shape (target_length, source_length) float64.
        """
        matrix = np.zeros((self.target_length, self.source_length), dtype=np.float64)
        rows = np.broadcast_to(
            np.arange(self.target_length)[:, None], self.contrib.shape
        )
        np.add.at(matrix, (rows, self.columns()), self.normalized())
        return matrix

    def sparse_entries(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Coordinates and values of the non-padding contrib entries.

        Returns:
            Tuple ``(rows, cols, values)`` of equal-length 1-D arrays. Only
            the first ``counts[t]`` entries of each target window appear.
        """
        offsets = np.arange(self.contrib.shape[1])
        valid = offsets[None, :] < self.counts[:, None]
        rows = np.broadcast_to(
            np.arange(self.target_length)[:, None], self.contrib.shape
        )
        return rows[valid], self.columns()[valid], self.normalized()[valid]


def compute_contributions(
    source_length: int,
    target_length: int,
    radius: int = FILTER_RADIUS,
    blur: float = 1.0,
) -> ContributionTable:
    """Compute the Lanczos contribution window for every target sample.

    The kernel support widens with the downscale ratio (``scale`` is capped
    at 1), so downscaling band-limits and upscaling interpolates without
    sharpening past native resolution.

    Args:
        source_length: Number of source samples (> 0).
        target_length: Number of target samples (> 0).
        radius: Lanczos radius.
        blur: Additional support widening factor.

    Returns:
        ContributionTable for the axis.

    Raises:
        ValueError: If either length is not positive.
    """
    if source_length <= 0 or target_length <= 0:
        raise ValueError(
            f"Resample lengths must be positive, got {source_length} -> {target_length}"
        )

    factor = target_length / source_length
    scale = min(factor, 1.0) / blur
    support = radius / scale

    centers = (np.arange(target_length, dtype=np.float64) + 0.5) / factor
    starts = np.maximum(np.floor(centers - support + 0.5).astype(np.int64), 0)
    ends = np.minimum(
        np.floor(centers + support + 0.5).astype(np.int64), source_length
    )
    counts = np.maximum(ends - starts, 0)

    width = max(int(counts.max()), 1)
    offsets = np.arange(width)
    x = (starts[:, None] - centers[:, None] + 0.5 + offsets[None, :]) * scale
    contrib = lanczos(x, radius)
    contrib[offsets[None, :] >= counts[:, None]] = 0.0

    return ContributionTable(
        source_length=source_length,
        target_length=target_length,
        starts=starts,
        counts=counts,
        contrib=contrib,
        density=contrib.sum(axis=1),
    )


class Resampler:
    """One-dimensional Lanczos resampler applicable along any tensor axis.

    The same precomputed filter serves row-wise (horizontal) and column-wise
    (vertical) passes; only the axis differs. Every target sample is an
    independent weighted sum over its own contribution window, so the filter
    is held as a sparse (target x source) matrix and applied with one sparse
    product.

    Example:
        resampler = Resampler(480, 240)
        half_height = resampler(planes, axis=-2)
    """

    def __init__(
        self,
        source_length: int,
        target_length: int,
        radius: int = FILTER_RADIUS,
        blur: float = 1.0,
        device: str | torch.device = "cpu",
    ):
        """Precompute the filter for a fixed pair of lengths.

        Args:
            source_length: Length of the axis being resampled.
            target_length: Length after resampling.
            radius: Lanczos radius.
            blur: Additional support widening factor.
            device: Device holding the sparse weight matrix.
        """
        self.source_length = source_length
        self.target_length = target_length
        self.table = compute_contributions(source_length, target_length, radius, blur)
        rows, cols, values = self.table.sparse_entries()
        indices = torch.from_numpy(np.stack([rows, cols]).astype(np.int64))
        self.weights = (
            torch.sparse_coo_tensor(
                indices,
                torch.from_numpy(values),
                size=(target_length, source_length),
            )
            .coalesce()
            .to(device=device, dtype=torch.float32)
        )

    def __call__(self, samples: torch.Tensor, axis: int = -1) -> torch.Tensor:
        """Resample ``samples`` along ``axis``.

        Args:
            samples: Float tensor whose ``axis`` has ``source_length`` entries.
            axis: Axis to resample.

        Returns:
            Tensor of the same shape except ``axis`` has ``target_length``
            entries.

        Raises:
            ValueError: If the axis length does not match ``source_length``.
        """
        if samples.shape[axis] != self.source_length:
            raise ValueError(
                f"Expected {self.source_length} samples along axis {axis}, "
                f"got {samples.shape[axis]}"
            )
        moved = samples.movedim(axis, 0)
        flat = moved.reshape(self.source_length, -1)
        resampled = torch.sparse.mm(self.weights, flat)
        return resampled.reshape((self.target_length,) + moved.shape[1:]).movedim(
            0, axis
        )


def resample_1d(
    samples: np.ndarray,
    target_length: int,
    axis: int = -1,
    radius: int = FILTER_RADIUS,
) -> np.ndarray:
    """Resample a numpy array along one axis.

    Args:
        samples: Input array.
        target_length: Length of ``axis`` after resampling.
        axis: Axis to resample.
        radius: Lanczos radius.

    Returns:
        Resampled float32 array.
    """
    samples = np.asarray(samples, dtype=np.float32)
    resampler = Resampler(samples.shape[axis], target_length, radius=radius)
    return resampler(torch.from_numpy(samples), axis=axis).numpy()
