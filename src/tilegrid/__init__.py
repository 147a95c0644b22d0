"""Heightmap tiling utilities for terrain patch streaming.

This module provides tools for:
- Planning a grid of fixed-resolution square tiles over a height raster
- Extracting tiles with top-down orientation regardless of storage order
- Stitching shared tile borders so terrain seams are continuous
- Reassembling tiles into a mosaic and checking seam continuity
"""

from .split import (
    Tile,
    TilePlacement,
    grid_shape,
    compute_tile_grid,
    extract_tile,
    split_image,
)
from .stitch import (
    SeamMismatch,
    build_tile_lookup,
    stitch_edges,
    find_seam_mismatches,
)
from .merge import (
    merge_tiles,
    evaluate_seams,
)

__all__ = [
    # Split functions
    "Tile",
    "TilePlacement",
    "grid_shape",
    "compute_tile_grid",
    "extract_tile",
    "split_image",
    # Stitch functions
    "SeamMismatch",
    "build_tile_lookup",
    "stitch_edges",
    "find_seam_mismatches",
    # Merge functions
    "merge_tiles",
    "evaluate_seams",
]
