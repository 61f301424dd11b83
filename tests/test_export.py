"""Tests for image export helpers.

Tests cover:
- Gamma encoding, clamping and NaN handling
- 8-bit quantization
- PNG writing with Pillow
- RMSE comparison
"""

import numpy as np
import pytest


class TestGammaCorrect:
    """Tests for gamma_correct."""

    def test_square_root_by_default(self):
        from rtweekend.preview.export import gamma_correct

        image = np.array([[[0.0, 0.25, 1.0]]], dtype=np.float32)
        np.testing.assert_allclose(gamma_correct(image), [[[0.0, 0.5, 1.0]]])

    def test_clamps_and_cleans(self):
        from rtweekend.preview.export import gamma_correct

        image = np.array([[[-1.0, 4.0, np.nan]]], dtype=np.float32)
        result = gamma_correct(image)
        np.testing.assert_array_equal(result, [[[0.0, 1.0, 0.0]]])
        assert result.dtype == np.float32

    def test_other_gamma(self):
        from rtweekend.preview.export import gamma_correct

        image = np.full((2, 2, 3), 0.125, dtype=np.float32)
        np.testing.assert_allclose(gamma_correct(image, 3.0), 0.5, rtol=1e-5)
        np.testing.assert_allclose(gamma_correct(image, 1.0), 0.125, rtol=1e-6)

    @pytest.mark.parametrize("gamma", [0.0, -2.0])
    def test_rejects_non_positive_gamma(self, gamma):
        from rtweekend.preview.export import gamma_correct

        with pytest.raises(ValueError, match="gamma"):
            gamma_correct(np.zeros((1, 1, 3)), gamma)


class TestImageToUint8:
    """Tests for image_to_uint8."""

    def test_quantization(self):
        from rtweekend.preview.export import image_to_uint8

        image = np.array([[[0.0, 0.25, 1.0], [2.0, -0.5, 0.0625]]], dtype=np.float32)
        result = image_to_uint8(image)

        assert result.dtype == np.uint8
        assert result.tolist() == [[[0, 128, 255], [255, 0, 64]]]


class TestSavePng:
    """Tests for save_png_from_array."""

    def test_writes_top_row_first(self, tmp_path):
        from PIL import Image

        from rtweekend.preview.export import save_png_from_array

        image = np.zeros((4, 6, 3), dtype=np.float32)
        image[0, :, :] = 1.0
        path = tmp_path / "stripe.png"
        save_png_from_array(image, str(path))

        with Image.open(path) as img:
            assert img.size == (6, 4)
            pixels = np.asarray(img)
        assert (pixels[0] == 255).all()
        assert (pixels[1:] == 0).all()


class TestComputeRmse:
    """Tests for compute_rmse."""

    def test_identical_images(self):
        from rtweekend.preview.export import compute_rmse

        image = np.random.default_rng(0).random((4, 4, 3))
        assert compute_rmse(image, image) == 0.0

    def test_known_difference(self):
        from rtweekend.preview.export import compute_rmse

        a = np.zeros((2, 2, 3))
        b = np.full((2, 2, 3), 0.5)
        assert compute_rmse(a, b) == pytest.approx(0.5)

    def test_shape_mismatch(self):
        from rtweekend.preview.export import compute_rmse

        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((2, 3, 3)))
