"""Tiling pipeline: load, split, stitch and export a height image."""

import logging
from pathlib import Path
from typing import Optional, Union

try:
    from tqdm import tqdm
except ImportError:
    tqdm = None

from tilegrid import grid_shape, split_image, stitch_edges

from .config import TileConfig
from .export import write_manifest as write_tile_manifest, write_raw_tile
from .io import load_raster

logger = logging.getLogger(__name__)

TILE_FOLDER = "tiles"
MANIFEST_FILENAME = "tiles.json"


def default_output_dir(image_path: Union[str, Path]) -> Path:
    """The ``tiles/`` folder beside the source image."""
    return Path(image_path).parent / TILE_FOLDER


def image_info(
    image_path: Union[str, Path],
    config: Optional[TileConfig] = None,
) -> dict:
    """Describe an image and the tile grid a configuration gives it.

    Args:
        image_path: Path to the height image
        config: Tile configuration (defaults if None)

    Returns:
        Dict with height, width, components, sections, quads, tile_size,
        tiles_x, tiles_y and total_tiles
    """
    config = config or TileConfig()

    with load_raster(image_path) as raster:
        height, width = raster.height, raster.width

    tiles_x, tiles_y = grid_shape((height, width), config.tile_size)

    return {
        "height": height,
        "width": width,
        "components": config.components,
        "sections": config.sections,
        "quads": config.quads,
        "tile_size": config.tile_size,
        "tiles_x": tiles_x,
        "tiles_y": tiles_y,
        "total_tiles": tiles_x * tiles_y,
    }


def format_image_info(info: dict) -> str:
    """Render image_info() output as the three-line report."""
    return (
        f"Height: {info['height']} Width: {info['width']}\n"
        f"Components: {info['components']} x Sections: {info['sections']} "
        f"x Quads: {info['quads']} = Resolution: {info['tile_size']}\n"
        f"Tiles: {info['tiles_x']} x {info['tiles_y']} = "
        f"{info['total_tiles']} total"
    )


def tile_image(
    image_path: Union[str, Path],
    config: Optional[TileConfig] = None,
    output_dir: Optional[Union[str, Path]] = None,
    write_manifest: bool = False,
    progress: bool = True,
) -> list[Path]:
    """Split a height image into stitched raw 16-bit tiles.

    The whole raster and all tiles are held in memory: every tile is
    extracted before stitching, since each one may need its neighbours.

    Args:
        image_path: Path to the height image
        config: Tile configuration (defaults if None)
        output_dir: Directory for the tiles. Defaults to ``tiles/`` beside
            the image.
        write_manifest: Also write a ``tiles.json`` manifest
        progress: Show progress bars

    Returns:
        List of paths to written tile files, in grid order

    Raises:
        FileNotFoundError: If the image doesn't exist
        ValueError: If the image can't be decoded
        OSError: If a tile can't be written. Tiles written before the
            failure are left in place.
    """
    config = config or TileConfig()
    tile_size = config.tile_size

    # Load before touching the output folder so a bad image leaves nothing
    with load_raster(image_path) as raster:
        tiles, placements = split_image(
            raster.data,
            tile_size,
            bottom_up=raster.bottom_up,
            progress=progress,
        )
        image_shape = raster.shape

    if not tiles:
        print(
            f"Image {image_shape[1]}x{image_shape[0]} is smaller than one "
            f"{tile_size}x{tile_size} tile, nothing to write"
        )
        return []

    changed = stitch_edges(tiles)
    logger.info("Stitched %d tiles (%d edge samples adjusted)", len(tiles), changed)

    output_dir = Path(output_dir) if output_dir is not None else default_output_dir(image_path)
    output_dir.mkdir(parents=True, exist_ok=True)

    if progress and tqdm is not None:
        iterator = tqdm(tiles, desc="Writing")
    else:
        iterator = tiles

    outputs = [write_raw_tile(tile, output_dir) for tile in iterator]

    if write_manifest:
        write_tile_manifest(
            placements,
            output_dir / MANIFEST_FILENAME,
            image_shape=image_shape,
            tile_size=tile_size,
        )

    tiles_x, tiles_y = grid_shape(image_shape, tile_size)
    print(f"Wrote {len(outputs)} tiles ({tiles_x} x {tiles_y}) to {output_dir}")

    return outputs
