"""Reassembly of heightmap tiles into a mosaic for inspection."""

import numpy as np

from .split import Tile
from .stitch import build_tile_lookup, find_seam_mismatches


def merge_tiles(tiles: list[Tile]) -> np.ndarray:
    """Place every tile at its grid position in a single array.

    Positions come from the grid coordinates (``grid_x * tile_size``,
    ``grid_y * tile_size``), so tiles built without pixel origins still land
    in the right place. A tile whose recorded origin disagrees with its grid
    position is rejected.

    The result covers exactly the area of the tile grid, i.e.
    ``(rows * tile_size, cols * tile_size)``. Any strip of the source raster
    that was dropped during planning is not part of the mosaic.

    Args:
        tiles: Tiles of one grid

    Returns:
        Mosaic array with the dtype of the tiles

    Raises:
        ValueError: If a non-zero origin doesn't match the grid position
    """
    if not tiles:
        return np.zeros((0, 0), dtype=np.uint16)

    lookup = build_tile_lookup(tiles)
    tile_size = tiles[0].tile_size

    rows = max(t.grid_y for t in tiles) + 1
    cols = max(t.grid_x for t in tiles) + 1
    merged = np.zeros((rows * tile_size, cols * tile_size), dtype=tiles[0].samples.dtype)

    for (grid_x, grid_y), tile in lookup.items():
        x = grid_x * tile_size
        y = grid_y * tile_size
        # Origins default to 0 for tiles not cut from a raster
        if (tile.origin_x, tile.origin_y) not in ((0, 0), (x, y)):
            raise ValueError(
                f"Tile ({grid_x}, {grid_y}) has origin "
                f"({tile.origin_x}, {tile.origin_y}), expected ({x}, {y})"
            )
        merged[y : y + tile_size, x : x + tile_size] = tile.samples

    return merged


def evaluate_seams(tiles: list[Tile]) -> dict:
    """Summarise how continuous the seams of a tile grid are.

    Args:
        tiles: Tiles of one grid

    Returns:
        Dict with seam statistics:
        - n_tiles: Number of tiles
        - n_seams: Number of shared borders (horizontal + vertical)
        - mismatched_seams: Borders on which the tiles disagree
        - mismatched_samples: Total differing samples over all borders
        - continuous: True when no border disagrees
    """
    lookup = build_tile_lookup(tiles)

    n_seams = sum(
        ((x - 1, y) in lookup) + ((x, y - 1) in lookup)
        for x, y in lookup
    )
    mismatches = find_seam_mismatches(tiles)

    return {
        "n_tiles": len(lookup),
        "n_seams": n_seams,
        "mismatched_seams": len(mismatches),
        "mismatched_samples": sum(m.count for m in mismatches),
        "continuous": not mismatches,
    }
