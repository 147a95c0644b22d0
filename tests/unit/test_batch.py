"""
Unit tests for the tiling pipeline
"""

import pytest
import numpy as np
import tifffile

from tileimage import (
    TileConfig,
    format_image_info,
    image_info,
    load_manifest_tiles,
    read_manifest,
    read_raw_tile,
    tile_image,
)


def write_dem(path, height, width, seed=0):
    """Write a random 16-bit height image and return its samples."""
    data = np.random.default_rng(seed).integers(0, 65535, (height, width), dtype=np.uint16)
    tifffile.imwrite(str(path), data)
    return data


class TestTileImage:
    """Test end-to-end tiling"""

    def test_single_tile(self, tmp_path):
        """128x128 with defaults writes one 127x127 tile"""
        data = write_dem(tmp_path / "dem.tif", 128, 128)

        outputs = tile_image(tmp_path / "dem.tif", progress=False)

        assert outputs == [tmp_path / "tiles" / "tile_x0_y0.raw"]
        assert outputs[0].stat().st_size == 32258
        np.testing.assert_array_equal(read_raw_tile(outputs[0], 127), data[:127, :127])

    def test_two_tiles_stitched(self, tmp_path):
        """260x130 writes two tiles with a continuous seam"""
        data = write_dem(tmp_path / "dem.tif", 130, 260)

        outputs = tile_image(tmp_path / "dem.tif", TileConfig(), progress=False)

        assert [p.name for p in outputs] == ["tile_x0_y0.raw", "tile_x1_y0.raw"]
        left = read_raw_tile(outputs[0], 127)
        right = read_raw_tile(outputs[1], 127)
        np.testing.assert_array_equal(right[:, 0], left[:, 126])
        np.testing.assert_array_equal(right[:, 1:], data[:127, 128:254])

    def test_bottom_left_tiff_written_top_down(self, tmp_path):
        """Tiles from a bottom-up TIFF match the image as displayed"""
        visual = np.random.default_rng(5).integers(0, 65535, (130, 260), dtype=np.uint16)
        tifffile.imwrite(str(tmp_path / "dem.tif"), visual[::-1].copy(),
                         extratags=[(274, "H", 1, 4, True)])

        outputs = tile_image(tmp_path / "dem.tif", progress=False)

        left = read_raw_tile(outputs[0], 127)
        right = read_raw_tile(outputs[1], 127)
        np.testing.assert_array_equal(left, visual[:127, :127])
        np.testing.assert_array_equal(right[:, 1:], visual[:127, 128:254])
        np.testing.assert_array_equal(right[:, 0], visual[:127, 126])

    def test_custom_output_dir_and_manifest(self, tmp_path):
        """Tiles and manifest go to the requested folder"""
        write_dem(tmp_path / "dem.tif", 130, 260)
        out = tmp_path / "out" / "tiles"

        outputs = tile_image(
            tmp_path / "dem.tif",
            TileConfig(quads=31),
            output_dir=out,
            write_manifest=True,
            progress=False,
        )

        assert len(outputs) == 4 * 2
        assert all(p.parent == out for p in outputs)
        placements, metadata = read_manifest(out / "tiles.json")
        assert len(placements) == 8
        assert metadata["tile_size"] == 63
        assert metadata["byteorder"] == "<"
        assert sorted(metadata["files"].values()) == sorted(p.name for p in outputs)
        assert len(load_manifest_tiles(out / "tiles.json")) == 8

    def test_rewrites_existing_tiles(self, tmp_path):
        """Running twice replaces the previous output"""
        write_dem(tmp_path / "dem.tif", 128, 128, seed=1)
        tile_image(tmp_path / "dem.tif", progress=False)
        data = write_dem(tmp_path / "dem.tif", 128, 128, seed=2)

        outputs = tile_image(tmp_path / "dem.tif", progress=False)

        np.testing.assert_array_equal(read_raw_tile(outputs[0], 127), data[:127, :127])

    def test_image_smaller_than_tile(self, tmp_path):
        """Nothing is written for a raster smaller than a tile"""
        write_dem(tmp_path / "dem.tif", 100, 300)

        assert tile_image(tmp_path / "dem.tif", progress=False) == []
        assert not (tmp_path / "tiles").exists()

    def test_missing_image_creates_nothing(self, tmp_path):
        """A load failure leaves no output folder"""
        with pytest.raises(FileNotFoundError):
            tile_image(tmp_path / "missing.tif", progress=False)
        assert not (tmp_path / "tiles").exists()

    def test_unwritable_output(self, tmp_path):
        """Output folder blocked by a file"""
        write_dem(tmp_path / "dem.tif", 128, 128)
        (tmp_path / "tiles").write_text("in the way")

        with pytest.raises(OSError):
            tile_image(tmp_path / "dem.tif", progress=False)


class TestImageInfo:
    """Test info mode"""

    def test_info(self, tmp_path):
        """Dimensions and grid for a 260x130 raster"""
        write_dem(tmp_path / "dem.tif", 130, 260)

        info = image_info(tmp_path / "dem.tif")

        assert info["height"] == 130
        assert info["width"] == 260
        assert info["tile_size"] == 127
        assert (info["tiles_x"], info["tiles_y"], info["total_tiles"]) == (2, 1, 2)
        assert not (tmp_path / "tiles").exists()

    def test_format(self):
        """Three line report"""
        info = {
            "height": 130, "width": 260,
            "components": 2, "sections": 1, "quads": 63, "tile_size": 127,
            "tiles_x": 2, "tiles_y": 1, "total_tiles": 2,
        }
        assert format_image_info(info).splitlines() == [
            "Height: 130 Width: 260",
            "Components: 2 x Sections: 1 x Quads: 63 = Resolution: 127",
            "Tiles: 2 x 1 = 2 total",
        ]
