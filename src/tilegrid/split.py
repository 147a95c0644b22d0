"""Tile grid planning and tile extraction for heightmap rasters."""

import logging
from dataclasses import dataclass, asdict

import numpy as np

try:
    from tqdm import tqdm
except ImportError:
    tqdm = None

logger = logging.getLogger(__name__)


@dataclass
class TilePlacement:
    """Position of a single tile in the grid and in the source raster.

    Attributes:
        grid_x: Tile column index in the grid
        grid_y: Tile row index in the grid
        origin_x: X coordinate of the tile's top-left pixel in the raster
        origin_y: Y coordinate of the tile's top-left pixel in the raster
        size: Side length of the square tile in pixels
    """

    grid_x: int
    grid_y: int
    origin_x: int
    origin_y: int
    size: int

    @property
    def x_end(self) -> int:
        """X end in the raster (exclusive)."""
        return self.origin_x + self.size

    @property
    def y_end(self) -> int:
        """Y end in the raster (exclusive)."""
        return self.origin_y + self.size

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "TilePlacement":
        """Create TilePlacement from a dictionary, ignoring extra keys."""
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        return cls(**{k: v for k, v in d.items() if k in known_fields})


@dataclass(eq=False)
class Tile:
    """A square heightmap tile extracted from the raster.

    ``samples`` is owned by the tile (never a view into the source) and is
    stored top-down: row 0 is the visual top of the tile.
    """

    grid_x: int
    grid_y: int
    samples: np.ndarray
    origin_x: int = 0
    origin_y: int = 0

    @property
    def tile_size(self) -> int:
        return self.samples.shape[0]

    @property
    def key(self) -> tuple[int, int]:
        """Grid coordinate used to address the tile."""
        return (self.grid_x, self.grid_y)


def grid_shape(shape: tuple[int, int], tile_size: int) -> tuple[int, int]:
    """Number of whole tiles that fit the raster.

    Args:
        shape: Raster shape as (height, width)
        tile_size: Side length of each tile

    Returns:
        Tuple of (cols, rows)
    """
    if tile_size < 1:
        raise ValueError(f"tile_size must be at least 1, got {tile_size}")

    height, width = shape
    return width // tile_size, height // tile_size


def compute_tile_grid(
    shape: tuple[int, int],
    tile_size: int,
) -> list[TilePlacement]:
    """Compute the placements of all tiles that fit fully inside a raster.

    Tiles are scanned left-to-right, top-to-bottom with a step of exactly
    ``tile_size``. A leftover strip narrower than ``tile_size`` at the right
    or bottom edge is dropped. Adjacent tiles do not share pixels; the seam
    continuity comes from stitching, see ``tilegrid.stitch``.

    Args:
        shape: Raster shape as (height, width)
        tile_size: Side length of each tile in pixels

    Returns:
        List of TilePlacement objects in row-major order. Empty if the raster
        is smaller than one tile in either dimension.
    """
    height, width = shape
    cols, rows = grid_shape(shape, tile_size)

    placements = []
    for grid_y in range(rows):
        for grid_x in range(cols):
            placements.append(
                TilePlacement(
                    grid_x=grid_x,
                    grid_y=grid_y,
                    origin_x=grid_x * tile_size,
                    origin_y=grid_y * tile_size,
                    size=tile_size,
                )
            )

    logger.debug(
        "Planned %dx%d grid of %d px tiles for %dx%d raster",
        cols, rows, tile_size, width, height,
    )
    return placements


def storage_rows(
    raster_height: int,
    y: int,
    count: int,
    bottom_up: bool = False,
) -> slice:
    """Slice of storage rows holding visual rows ``y`` .. ``y + count - 1``.

    With bottom-up storage the returned slice walks backwards, so indexing
    with it yields rows in top-down order.
    """
    if not bottom_up:
        return slice(y, y + count)

    start = raster_height - 1 - y
    stop = start - count
    return slice(start, stop if stop >= 0 else None, -1)


def extract_tile(
    image: np.ndarray,
    placement: TilePlacement,
    bottom_up: bool = False,
) -> Tile:
    """Extract a single tile from a raster.

    Args:
        image: 2D source raster
        placement: TilePlacement describing the tile location
        bottom_up: True if storage row 0 is the bottom of the image

    Returns:
        Tile with a top-down copy of the samples

    Raises:
        IndexError: If the tile rectangle is not fully inside the raster
    """
    if image.ndim != 2:
        raise ValueError(f"Expected 2D raster, got {image.ndim}D")

    height, width = image.shape
    if (
        placement.origin_x < 0
        or placement.origin_y < 0
        or placement.x_end > width
        or placement.y_end > height
    ):
        raise IndexError(
            f"Tile ({placement.grid_x}, {placement.grid_y}) at "
            f"({placement.origin_x}, {placement.origin_y}) size {placement.size} "
            f"is outside the {width}x{height} raster"
        )

    rows = storage_rows(height, placement.origin_y, placement.size, bottom_up)
    samples = image[rows, placement.origin_x : placement.x_end].copy()

    return Tile(
        grid_x=placement.grid_x,
        grid_y=placement.grid_y,
        samples=samples,
        origin_x=placement.origin_x,
        origin_y=placement.origin_y,
    )


def split_image(
    image: np.ndarray,
    tile_size: int,
    bottom_up: bool = False,
    progress: bool = False,
) -> tuple[list[Tile], list[TilePlacement]]:
    """Split a raster into square tiles.

    Args:
        image: 2D source raster
        tile_size: Side length of each tile
        bottom_up: True if storage row 0 is the bottom of the image
        progress: Show a progress bar while extracting

    Returns:
        Tuple of:
        - List of extracted Tile objects
        - List of all TilePlacement objects
    """
    if image.ndim != 2:
        raise ValueError(f"Expected 2D raster, got {image.ndim}D")

    placements = compute_tile_grid(image.shape, tile_size)

    if progress and tqdm is not None:
        iterator = tqdm(placements, desc="Extracting")
    else:
        iterator = placements

    tiles = [extract_tile(image, placement, bottom_up=bottom_up) for placement in iterator]

    return tiles, placements

