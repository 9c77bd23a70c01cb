"""Tests for the Lanczos resampler."""

import numpy as np
import pytest
import torch

from crtfilter.resample import (
    Resampler,
    compute_contributions,
    lanczos,
    resample_1d,
)


class TestLanczos:
    """Tests for the Lanczos kernel."""

    def test_peak_at_zero(self):
        """Kernel is exactly 1 at the origin."""
        assert lanczos(np.array([0.0]))[0] == 1.0

    def test_zero_at_nonzero_integers(self):
        """Kernel vanishes at integer offsets other than 0."""
        values = lanczos(np.array([-1.0, 1.0]))
        np.testing.assert_allclose(values, 0.0, atol=1e-12)

    def test_zero_outside_support(self):
        """Kernel is zero for |x| >= radius."""
        values = lanczos(np.array([-3.5, -2.0, 2.0, 2.5, 10.0]), radius=2)
        assert np.all(values == 0.0)

    def test_symmetric(self):
        """Kernel is even."""
        x = np.linspace(0.0, 1.9, 20)
        np.testing.assert_allclose(lanczos(x), lanczos(-x))


class TestContributions:
    """Tests for contribution windows."""

    def test_identity_windows(self):
        """Equal lengths give a unit weight on the matching source sample."""
        table = compute_contributions(10, 10)
        matrix = table.weight_matrix()
        np.testing.assert_allclose(matrix, np.eye(10), atol=1e-12)

    def test_windows_in_range(self):
        """Windows never reach outside the source."""
        table = compute_contributions(37, 11)
        assert np.all(table.starts >= 0)
        assert np.all(table.starts + table.counts <= 37)

    def test_downscale_widens_support(self):
        """Downscaling uses more source samples per target."""
        upscale = compute_contributions(10, 40)
        downscale = compute_contributions(40, 10)
        assert downscale.counts.max() > upscale.counts.max()

    def test_rows_sum_to_one(self):
        """Normalized weights of every target sum to 1."""
        matrix = compute_contributions(50, 17).weight_matrix()
        np.testing.assert_allclose(matrix.sum(axis=1), 1.0, atol=1e-9)

    @pytest.mark.parametrize("source,target", [(0, 5), (5, 0), (-1, 3)])
    def test_invalid_lengths(self, source, target):
        """Non-positive lengths are rejected."""
        with pytest.raises(ValueError, match="must be positive"):
            compute_contributions(source, target)


class TestResampler:
    """Tests for the Resampler."""

    def test_identity(self, device):
        """Same-length resampling reproduces the input."""
        samples = torch.rand(3, 5, 16, device=device)
        resampler = Resampler(16, 16, device=device)
        result = resampler(samples)
        torch.testing.assert_close(result, samples, atol=1e-4, rtol=0)

    def test_uniform_stays_uniform(self, device):
        """A constant signal stays constant when up- or downscaled."""
        samples = torch.full((2, 30), 0.7, device=device)
        for target in (7, 30, 95):
            result = Resampler(30, target, device=device)(samples)
            assert result.shape == (2, target)
            torch.testing.assert_close(
                result, torch.full_like(result, 0.7), atol=1e-5, rtol=0
            )

    def test_vertical_axis(self, device):
        """Resampling along axis -2 matches resampling the transpose."""
        samples = torch.rand(3, 12, 5, device=device)
        resampler = Resampler(12, 7, device=device)
        vertical = resampler(samples, axis=-2)
        horizontal = resampler(samples.transpose(-1, -2), axis=-1)
        assert vertical.shape == (3, 7, 5)
        torch.testing.assert_close(vertical, horizontal.transpose(-1, -2))

    def test_weights_stay_windowed(self):
        """Only each target's contribution window is stored."""
        resampler = Resampler(6400, 640)
        table = resampler.table
        assert resampler.weights.is_sparse
        assert resampler.weights._nnz() <= int(table.counts.sum())
        assert resampler.weights._nnz() < 640 * 6400 // 100

    def test_sparse_matches_dense(self):
        """The sparse product equals the dense weight matrix product."""
        resampler = Resampler(50, 17)
        samples = torch.rand(2, 3, 50, dtype=torch.float32)
        dense = torch.from_numpy(resampler.table.weight_matrix()).float()
        expected = samples @ dense.T
        torch.testing.assert_close(resampler(samples), expected, atol=1e-5, rtol=1e-5)
        torch.testing.assert_close(
            resampler.weights.to_dense(), dense, atol=1e-6, rtol=0
        )

    def test_length_mismatch(self):
        """Samples of the wrong length are rejected."""
        resampler = Resampler(8, 4)
        with pytest.raises(ValueError, match="Expected 8 samples"):
            resampler(torch.zeros(3, 9))


def test_resample_1d_numpy():
    """resample_1d accepts and returns numpy arrays."""
    samples = np.linspace(0.0, 1.0, 20, dtype=np.float32)[None, :].repeat(4, axis=0)
    result = resample_1d(samples, 10, axis=-1)
    assert isinstance(result, np.ndarray)
    assert result.shape == (4, 10)
    assert result.dtype == np.float32
    # A ramp stays monotonic away from the borders
    assert np.all(np.diff(result[0, 2:-2]) > 0)
