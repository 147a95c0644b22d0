"""Heightmap tiler for terrain streaming pipelines.

This package provides tools for:
- Loading single-channel height images (TIFF, PNG, BMP, PGM, ...)
- Configuring tile resolution as components x sections x quads + 1
- Splitting images into stitched square tiles
- Exporting tiles as headerless raw 16-bit heightmaps
"""

from .io import Raster, load_raster
from .config import SHARED_EDGE_SAMPLES, TileConfig, save_config, load_config
from .export import (
    tile_filename,
    to_uint16,
    write_raw_tile,
    read_raw_tile,
    load_raw_tiles,
    write_manifest,
    read_manifest,
    load_manifest_tiles,
)
from .batch import default_output_dir, image_info, format_image_info, tile_image

__version__ = "0.1.0"

__all__ = [
    "Raster",
    "load_raster",
    "SHARED_EDGE_SAMPLES",
    "TileConfig",
    "save_config",
    "load_config",
    "tile_filename",
    "to_uint16",
    "write_raw_tile",
    "read_raw_tile",
    "load_raw_tiles",
    "write_manifest",
    "read_manifest",
    "load_manifest_tiles",
    "default_output_dir",
    "image_info",
    "format_image_info",
    "tile_image",
]
