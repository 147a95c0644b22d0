"""Edge stitching so adjacent heightmap tiles agree on their shared borders.

Each tile's first column is made equal to its left neighbour's last column,
and its first row to its top neighbour's last row. The neighbour is always
authoritative: values are copied, never averaged, so exact heights survive.
"""

from dataclasses import dataclass
import logging

import numpy as np

from .split import Tile

logger = logging.getLogger(__name__)


@dataclass
class SeamMismatch:
    """A shared border on which two adjacent tiles disagree."""
    tile: tuple[int, int]
    neighbor: tuple[int, int]
    edge: str  # "left" or "top"
    count: int  # number of differing samples


def build_tile_lookup(tiles: list[Tile]) -> dict[tuple[int, int], Tile]:
    """Index tiles by their (grid_x, grid_y) coordinate.

    Raises:
        ValueError: If two tiles share a grid coordinate or tile sizes differ
    """
    lookup = {}
    sizes = set()

    for tile in tiles:
        if tile.key in lookup:
            raise ValueError(f"Duplicate tile at grid position {tile.key}")
        lookup[tile.key] = tile
        sizes.add(tile.samples.shape)

    if len(sizes) > 1:
        raise ValueError(f"Tiles have differing shapes: {sorted(sizes)}")

    return lookup


def _neighbors(
    lookup: dict[tuple[int, int], Tile],
    tile: Tile,
) -> tuple[Tile | None, Tile | None]:
    """Left and top neighbours of a tile (None at the grid boundary)."""
    left = lookup.get((tile.grid_x - 1, tile.grid_y))
    top = lookup.get((tile.grid_x, tile.grid_y - 1))
    return left, top


def stitch_edges(tiles: list[Tile]) -> int:
    """Reconcile the shared borders of adjacent tiles in place.

    Tiles are visited in row-major grid order regardless of the order they
    are passed in, so a neighbour's border is final before it is copied.
    This keeps corner samples consistent between all tiles meeting there
    and makes the result independent of the input order. Running it again
    changes nothing.

    Args:
        tiles: Tiles of one grid, all the same size

    Returns:
        Number of samples whose value changed
    """
    lookup = build_tile_lookup(tiles)
    changed = 0

    for key in sorted(lookup, key=lambda k: (k[1], k[0])):
        tile = lookup[key]
        left, top = _neighbors(lookup, tile)

        if left is not None:
            edge = left.samples[:, -1]
            changed += int(np.count_nonzero(tile.samples[:, 0] != edge))
            tile.samples[:, 0] = edge

        if top is not None:
            edge = top.samples[-1, :]
            changed += int(np.count_nonzero(tile.samples[0, :] != edge))
            tile.samples[0, :] = edge

    logger.debug("Stitched %d tiles, %d samples changed", len(lookup), changed)
    return changed


def find_seam_mismatches(tiles: list[Tile]) -> list[SeamMismatch]:
    """Report shared borders that disagree, without modifying any tile.

    Args:
        tiles: Tiles of one grid

    Returns:
        List of SeamMismatch, empty when every seam is continuous
    """
    lookup = build_tile_lookup(tiles)
    mismatches = []

    for key in sorted(lookup, key=lambda k: (k[1], k[0])):
        tile = lookup[key]
        left, top = _neighbors(lookup, tile)

        if left is not None:
            count = int(np.count_nonzero(tile.samples[:, 0] != left.samples[:, -1]))
            if count:
                mismatches.append(SeamMismatch(tile.key, left.key, "left", count))

        if top is not None:
            count = int(np.count_nonzero(tile.samples[0, :] != top.samples[-1, :]))
            if count:
                mismatches.append(SeamMismatch(tile.key, top.key, "top", count))

    return mismatches
