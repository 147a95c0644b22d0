"""Raw 16-bit heightmap export of tiles."""

import json
import logging
from pathlib import Path
from typing import Union

import numpy as np

from tilegrid.split import Tile, TilePlacement

logger = logging.getLogger(__name__)

TILE_FILENAME_PATTERN = "tile_x{x}_y{y}.raw"
UINT16_MAX = np.iinfo(np.uint16).max


def tile_filename(grid_x: int, grid_y: int) -> str:
    """File name of the tile at a grid coordinate."""
    return TILE_FILENAME_PATTERN.format(x=grid_x, y=grid_y)


def to_uint16(samples: np.ndarray, byteorder: str = "<") -> np.ndarray:
    """Clamp samples to the unsigned 16-bit range.

    Args:
        samples: Sample array of any numeric dtype
        byteorder: "<" for little-endian, ">" for big-endian

    Returns:
        Array with dtype ``{byteorder}u2``
    """
    if byteorder not in ("<", ">"):
        raise ValueError(f"Unknown byte order: {byteorder!r}")

    if np.issubdtype(samples.dtype, np.floating):
        samples = np.nan_to_num(samples, nan=0.0)
        samples = np.rint(samples)

    clipped = np.clip(samples, 0, UINT16_MAX)
    return clipped.astype(f"{byteorder}u2")


def write_raw_tile(
    tile: Tile,
    output_dir: Union[str, Path],
    byteorder: str = "<",
) -> Path:
    """Write a tile as a headerless row-major 16-bit raw file.

    An existing file at the target path is replaced.

    Args:
        tile: Tile to write
        output_dir: Directory for the output file (must exist)
        byteorder: "<" for little-endian (default), ">" for big-endian

    Returns:
        Path to the written file

    Raises:
        OSError: If the file can't be created or written
    """
    output_path = Path(output_dir) / tile_filename(tile.grid_x, tile.grid_y)

    data = to_uint16(tile.samples, byteorder=byteorder)

    with open(output_path, "wb") as f:
        f.write(data.tobytes(order="C"))

    logger.debug("Wrote %s (%d bytes)", output_path, data.nbytes)
    return output_path


def read_raw_tile(
    path: Union[str, Path],
    tile_size: int,
    byteorder: str = "<",
) -> np.ndarray:
    """Read a raw tile file back into a square uint16 array.

    Args:
        path: Path to the raw file
        tile_size: Side length of the tile
        byteorder: Byte order the file was written with

    Returns:
        Array of shape (tile_size, tile_size) with native uint16 dtype

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file size doesn't match tile_size
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Tile file not found: {path}")

    expected = tile_size * tile_size * 2
    actual = path.stat().st_size
    if actual != expected:
        raise ValueError(
            f"{path} has {actual} bytes, expected {expected} for a "
            f"{tile_size}x{tile_size} tile"
        )

    data = np.fromfile(str(path), dtype=f"{byteorder}u2")
    return data.reshape(tile_size, tile_size).astype(np.uint16)


def load_raw_tiles(
    tile_dir: Union[str, Path],
    placements: list[TilePlacement],
    byteorder: str = "<",
) -> list[Tile]:
    """Load all raw tiles of a grid from a directory.

    Args:
        tile_dir: Directory containing the raw tile files
        placements: Placements describing the tiles (e.g. from a manifest)
        byteorder: Byte order the files were written with

    Returns:
        List of Tile objects in placement order

    Raises:
        FileNotFoundError: If any expected tile file is missing
    """
    tile_dir = Path(tile_dir)

    missing = [
        str(tile_dir / tile_filename(p.grid_x, p.grid_y))
        for p in placements
        if not (tile_dir / tile_filename(p.grid_x, p.grid_y)).exists()
    ]
    if missing:
        raise FileNotFoundError(
            f"Missing {len(missing)} tile files:\n" + "\n".join(missing[:10])
            + ("\n..." if len(missing) > 10 else "")
        )

    tiles = []
    for p in placements:
        samples = read_raw_tile(
            tile_dir / tile_filename(p.grid_x, p.grid_y), p.size, byteorder
        )
        tiles.append(
            Tile(
                grid_x=p.grid_x,
                grid_y=p.grid_y,
                samples=samples,
                origin_x=p.origin_x,
                origin_y=p.origin_y,
            )
        )

    return tiles


MANIFEST_FORMAT = "raw-heightmap-tiles"
_BYTEORDER_NAMES = {"<": "little", ">": "big"}


def write_manifest(
    placements: list[TilePlacement],
    output_path: Union[str, Path],
    image_shape: tuple[int, int],
    tile_size: int,
    byteorder: str = "<",
) -> Path:
    """Write a JSON manifest describing the raw tiles of one grid.

    Each tile entry records its placement together with the raw file name
    and byte count, so the tiles can be located and read back without
    knowing the naming scheme.

    Args:
        placements: Placements of the written tiles
        output_path: Path of the manifest file
        image_shape: Source raster shape as (height, width)
        tile_size: Side length of each tile
        byteorder: Byte order the tiles were written with

    Returns:
        Path to the written manifest
    """
    if byteorder not in _BYTEORDER_NAMES:
        raise ValueError(f"Unknown byte order: {byteorder!r}")

    output_path = Path(output_path)
    tile_bytes = tile_size * tile_size * 2

    cols = max((p.grid_x for p in placements), default=-1) + 1
    rows = max((p.grid_y for p in placements), default=-1) + 1

    entries = []
    for p in placements:
        entry = p.to_dict()
        entry["file"] = tile_filename(p.grid_x, p.grid_y)
        entry["bytes"] = p.size * p.size * 2
        entries.append(entry)

    manifest = {
        "format": MANIFEST_FORMAT,
        "sample_type": "uint16",
        "byteorder": _BYTEORDER_NAMES[byteorder],
        "image_shape": list(image_shape),
        "tile_size": tile_size,
        "tile_bytes": tile_bytes,
        "grid": {"cols": cols, "rows": rows},
        "n_tiles": len(placements),
        "tiles": entries,
    }

    with open(output_path, "w") as f:
        json.dump(manifest, f, indent=2)

    logger.debug("Wrote manifest for %d tiles to %s", len(placements), output_path)
    return output_path


def read_manifest(path: Union[str, Path]) -> tuple[list[TilePlacement], dict]:
    """Read a tile manifest written by ``write_manifest``.

    Args:
        path: Path of the manifest file

    Returns:
        Tuple of:
        - List of TilePlacement objects in manifest order
        - Metadata dict (everything except the tile entries), with
          ``files`` mapping grid coordinates to raw file names and
          ``byteorder`` translated to "<" or ">"

    Raises:
        FileNotFoundError: If the manifest doesn't exist
        ValueError: If the manifest isn't a raw heightmap tile manifest
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Manifest not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    if data.get("format") != MANIFEST_FORMAT:
        raise ValueError(f"{path} is not a tile manifest")
    if data.get("sample_type") != "uint16":
        raise ValueError(f"Unsupported sample type in {path}: {data.get('sample_type')!r}")

    byteorder_names = {name: code for code, name in _BYTEORDER_NAMES.items()}
    if data.get("byteorder") not in byteorder_names:
        raise ValueError(f"Unknown byte order in {path}: {data.get('byteorder')!r}")

    placements = []
    files = {}
    for entry in data["tiles"]:
        placement = TilePlacement.from_dict(entry)
        placements.append(placement)
        files[(placement.grid_x, placement.grid_y)] = entry["file"]

    metadata = {k: v for k, v in data.items() if k != "tiles"}
    metadata["byteorder"] = byteorder_names[data["byteorder"]]
    metadata["image_shape"] = tuple(data["image_shape"])
    metadata["files"] = files

    return placements, metadata


def load_manifest_tiles(path: Union[str, Path]) -> list[Tile]:
    """Load every tile listed in a manifest.

    Files are resolved relative to the manifest's folder using the names
    and byte order recorded in the manifest.

    Raises:
        FileNotFoundError: If the manifest or a listed tile is missing
        ValueError: If a tile file has the wrong size
    """
    path = Path(path)
    placements, metadata = read_manifest(path)

    tiles = []
    for p in placements:
        samples = read_raw_tile(
            path.parent / metadata["files"][(p.grid_x, p.grid_y)],
            p.size,
            metadata["byteorder"],
        )
        tiles.append(
            Tile(
                grid_x=p.grid_x,
                grid_y=p.grid_y,
                samples=samples,
                origin_x=p.origin_x,
                origin_y=p.origin_y,
            )
        )

    return tiles
