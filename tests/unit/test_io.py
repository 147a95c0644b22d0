"""
Unit tests for raster loading
"""

import pytest
import numpy as np
import tifffile
from PIL import Image

from tileimage import Raster, load_raster


@pytest.fixture
def heights():
    """Create test height samples"""
    return np.random.default_rng(3).integers(0, 65535, (12, 17), dtype=np.uint16)


class TestRaster:
    """Test Raster accessors"""

    def test_dimensions(self, heights):
        """Height and width come from the array"""
        raster = Raster(heights)
        assert raster.height == 12
        assert raster.width == 17
        assert raster.shape == (12, 17)

    def test_get_pixel(self, heights):
        """get_pixel takes x before y"""
        raster = Raster(heights)
        assert raster.get_pixel(5, 3) == int(heights[3, 5])
        assert raster.get_pixel(16, 11) == int(heights[11, 16])

    def test_get_pixel_bottom_up(self, heights):
        """Visual row 0 is the last storage row for bottom-up rasters"""
        raster = Raster(heights, bottom_up=True)
        assert raster.get_pixel(0, 0) == int(heights[-1, 0])
        assert raster.get_pixel(2, 11) == int(heights[0, 2])

    def test_get_pixel_out_of_bounds(self, heights):
        """Pixels outside the raster are an error"""
        raster = Raster(heights)
        with pytest.raises(IndexError):
            raster.get_pixel(17, 0)
        with pytest.raises(IndexError):
            raster.get_pixel(0, -1)

    def test_crop(self, heights):
        """Crop copies a top-down region"""
        raster = Raster(heights)
        cropped = raster.crop(2, 3, 4, 5)

        assert cropped.shape == (5, 4)
        np.testing.assert_array_equal(cropped.data, heights[3:8, 2:6])
        cropped.data[:] = 0
        assert raster.get_pixel(2, 3) == int(heights[3, 2])

    def test_crop_bottom_up(self, heights):
        """Cropping a bottom-up raster yields a top-down raster"""
        raster = Raster(heights[::-1].copy(), bottom_up=True)
        cropped = raster.crop(1, 2, 3, 4)

        assert cropped.bottom_up is False
        np.testing.assert_array_equal(cropped.data, heights[2:6, 1:4])

    def test_rejects_multichannel(self):
        """Colour data is not a height raster"""
        with pytest.raises(ValueError):
            Raster(np.zeros((4, 4, 3), dtype=np.uint8))

    def test_context_manager_releases(self, heights):
        """Leaving the context releases the samples"""
        with Raster(heights.copy()) as raster:
            assert raster.data.size == heights.size
        assert raster.data.size == 0


class TestLoadRaster:
    """Test decoding image files"""

    def test_load_tiff(self, tmp_path, heights):
        """16-bit TIFF"""
        path = tmp_path / "dem.tif"
        tifffile.imwrite(str(path), heights)

        raster = load_raster(path)

        assert raster.bottom_up is False
        assert raster.dtype == np.uint16
        np.testing.assert_array_equal(raster.data, heights)

    def test_load_tiff_bottom_left(self, tmp_path, heights):
        """Orientation 4 marks the TIFF as stored bottom-up"""
        path = tmp_path / "dem.tif"
        tifffile.imwrite(str(path), heights[::-1].copy(),
                         extratags=[(274, "H", 1, 4, True)])

        raster = load_raster(path)

        assert raster.bottom_up is True
        assert raster.get_pixel(0, 0) == int(heights[0, 0])
        assert raster.get_pixel(16, 11) == int(heights[11, 16])
        np.testing.assert_array_equal(raster.crop(0, 0, 17, 12).data, heights)

    @pytest.mark.parametrize("orientation", [2, 3, 5, 6, 7, 8])
    def test_rejects_other_tiff_orientations(self, tmp_path, heights, orientation):
        """Mirrored, rotated and transposed TIFFs are not read as top-left"""
        path = tmp_path / "dem.tif"
        tifffile.imwrite(str(path), heights,
                         extratags=[(274, "H", 1, orientation, True)])

        with pytest.raises(ValueError, match="orientation"):
            load_raster(path)

    def test_load_png_16bit(self, tmp_path, heights):
        """16-bit grayscale PNG"""
        path = tmp_path / "dem.png"
        Image.fromarray(heights).save(path)

        raster = load_raster(path)

        np.testing.assert_array_equal(raster.data, heights)

    def test_load_png_8bit(self, tmp_path):
        """8-bit grayscale PNG"""
        data = np.arange(64, dtype=np.uint8).reshape(8, 8)
        path = tmp_path / "dem.png"
        Image.fromarray(data).save(path)

        raster = load_raster(path)

        assert raster.shape == (8, 8)
        np.testing.assert_array_equal(raster.data, data)

    def test_rejects_rgb(self, tmp_path):
        """Colour images are rejected"""
        path = tmp_path / "color.png"
        Image.new("RGB", (8, 8)).save(path)

        with pytest.raises(ValueError):
            load_raster(path)

    def test_missing_file(self, tmp_path):
        """Missing image"""
        with pytest.raises(FileNotFoundError):
            load_raster(tmp_path / "missing.tif")

    def test_corrupt_file(self, tmp_path):
        """Undecodable image"""
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image at all")

        with pytest.raises(ValueError):
            load_raster(path)
