"""Tests for image assembly and export.

This module tests the preview/export functionality including:
- 8-bit quantization and gamma correction
- Gaussian downsampling of supersampled images
"""

import numpy as np
import pytest


class TestImageToUint8:
    """Test quantization to 8 bits."""

    def test_output_type(self):
        """Test that the result is uint8 with the same shape."""
        from sdfmarch.preview.export import image_to_uint8

        image = np.random.rand(8, 12, 3).astype(np.float32)
        result = image_to_uint8(image)

        assert result.dtype == np.uint8
        assert result.shape == (8, 12, 3)

    def test_black_and_white(self):
        """Test the ends of the range."""
        from sdfmarch.preview.export import image_to_uint8

        image = np.zeros((2, 2, 3), dtype=np.float32)
        image[0, 0] = 1.0
        result = image_to_uint8(image)

        assert result[0, 0, 0] == 255
        assert result[1, 1, 0] == 0

    def test_out_of_range_and_nan_clamped(self):
        """Test that values outside [0, 1] and NaN are clamped."""
        from sdfmarch.preview.export import image_to_uint8

        image = np.array([[[2.0, -1.0, np.nan]]], dtype=np.float32)
        result = image_to_uint8(image)

        assert result.tolist() == [[[255, 0, 0]]]

    def test_gamma_brightens_midtones(self):
        """Test that gamma 2.2 brightens mid-grey."""
        from sdfmarch.preview.export import image_to_uint8

        image = np.full((1, 1, 3), 0.5, dtype=np.float32)
        linear = image_to_uint8(image)
        corrected = image_to_uint8(image, gamma=2.2)

        assert linear[0, 0, 0] == 127
        assert corrected[0, 0, 0] > linear[0, 0, 0]

    def test_invalid_gamma_raises(self):
        """Test that a non-positive gamma is rejected."""
        from sdfmarch.preview.export import image_to_uint8

        with pytest.raises(ValueError, match="Gamma"):
            image_to_uint8(np.zeros((1, 1, 3), dtype=np.float32), gamma=0.0)


class TestDownsample:
    """Test Gaussian downsampling."""

    def test_factor_one_keeps_image(self):
        """Test that no filtering happens without anti-aliasing."""
        from sdfmarch.preview.export import downsample

        image = (np.random.rand(10, 15, 3) * 255).astype(np.uint8)
        result = downsample(image, 1, (15, 10))

        assert result.size == (15, 10)
        assert np.array_equal(np.asarray(result), image)

    def test_output_size(self):
        """Test that the image is resized to the requested size."""
        from sdfmarch.preview.export import downsample

        image = np.zeros((40, 60, 3), dtype=np.uint8)
        result = downsample(image, 2, (30, 20))

        assert result.size == (30, 20)
        assert result.mode == "RGB"

    def test_uniform_image_stays_uniform(self):
        """Test that filtering a flat image leaves its color unchanged."""
        from sdfmarch.preview.export import downsample

        image = np.full((40, 60, 3), (200, 100, 50), dtype=np.uint8)
        result = np.asarray(downsample(image, 2, (30, 20))).astype(int)

        assert np.all(np.abs(result - [200, 100, 50]) <= 1)

    def test_transposed_input_accepted(self):
        """Test that a non-contiguous array is accepted."""
        from sdfmarch.preview.export import downsample

        image = np.zeros((60, 40, 3), dtype=np.uint8).transpose(1, 0, 2)
        result = downsample(image, 2, (30, 20))
        assert result.size == (30, 20)
