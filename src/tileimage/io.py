"""Raster loading for single-channel height images."""

import logging
from pathlib import Path
from typing import Union

import numpy as np
import tifffile
from PIL import Image, UnidentifiedImageError

from tilegrid.split import storage_rows

logger = logging.getLogger(__name__)

TIFF_EXTENSIONS = (".tif", ".tiff")

# TIFF Orientation tag values
_ORIENTATION_TAG = 274
_ORIENTATION_TOPLEFT = 1
_ORIENTATION_BOTLEFT = 4


class Raster:
    """A decoded single-channel raster addressed in visual coordinates.

    ``data`` holds the samples in storage order. When ``bottom_up`` is set,
    storage row 0 is the visual bottom row; ``get_pixel`` and ``crop`` (and
    ``tilegrid.extract_tile``) always take ``y = 0`` as the visual top.

    Use as a context manager to release the pixel data:
        with load_raster("dem.tif") as raster:
            value = raster.get_pixel(0, 0)
    """

    def __init__(self, data: np.ndarray, bottom_up: bool = False, path=None):
        if data.ndim != 2:
            raise ValueError(
                f"Expected a single-channel 2D raster, got shape {data.shape}"
            )
        self.data = data
        self.bottom_up = bottom_up
        self.path = Path(path) if path is not None else None

    @property
    def height(self) -> int:
        """Raster height in pixels."""
        return self.data.shape[0]

    @property
    def width(self) -> int:
        """Raster width in pixels."""
        return self.data.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        """Raster shape (height, width)."""
        return self.data.shape

    @property
    def dtype(self):
        """Data type of the samples."""
        return self.data.dtype

    def _check_bounds(self, x: int, y: int, width: int = 1, height: int = 1):
        if x < 0 or y < 0 or x + width > self.width or y + height > self.height:
            raise IndexError(
                f"Region ({x}, {y}, {width}x{height}) is outside the "
                f"{self.width}x{self.height} raster"
            )

    def get_pixel(self, x: int, y: int) -> int:
        """Sample at column ``x``, visual row ``y``."""
        self._check_bounds(x, y)
        rows = storage_rows(self.height, y, 1, self.bottom_up)
        return int(self.data[rows, x][0])

    def crop(self, x: int, y: int, width: int, height: int) -> "Raster":
        """Copy a rectangular region into a new top-down raster."""
        self._check_bounds(x, y, width, height)
        rows = storage_rows(self.height, y, height, self.bottom_up)
        return Raster(self.data[rows, x : x + width].copy(), path=self.path)

    def close(self):
        """Release the pixel data."""
        self.data = np.empty((0, 0), dtype=self.data.dtype)

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False


def _read_tiff(path: Path) -> tuple[np.ndarray, bool]:
    """Read the first page of a TIFF and whether it is stored bottom-up.

    Mirrored, rotated and transposed orientations are rejected rather than
    read as top-left.
    """
    with tifffile.TiffFile(str(path)) as tif:
        page = tif.pages[0]
        data = page.asarray()
        tag = page.tags.get(_ORIENTATION_TAG)
        orientation = int(tag.value) if tag is not None else _ORIENTATION_TOPLEFT

    if orientation not in (_ORIENTATION_TOPLEFT, _ORIENTATION_BOTLEFT):
        raise ValueError(
            f"Unsupported TIFF orientation {orientation} in {path}, "
            f"expected {_ORIENTATION_TOPLEFT} (top-left) or {_ORIENTATION_BOTLEFT} (bottom-left)"
        )

    return data, orientation == _ORIENTATION_BOTLEFT


def _read_pillow(path: Path) -> np.ndarray:
    """Read a PNG/BMP/PGM/... image with Pillow."""
    with Image.open(path) as img:
        if img.mode in ("P", "RGB", "RGBA", "LA", "CMYK", "YCbCr"):
            raise ValueError(
                f"Expected a grayscale image, got mode {img.mode!r} in {path}"
            )
        return np.array(img)


def load_raster(path: Union[str, Path]) -> Raster:
    """Load a single-channel height image.

    TIFF files are read with tifffile (honouring a bottom-left Orientation
    tag), every other format with Pillow.

    Args:
        path: Path to the image file

    Returns:
        Raster wrapping the decoded samples

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file can't be decoded or isn't single-channel
    """
    path = Path(path)

    if not path.is_file():
        raise FileNotFoundError(f"Image file not found: {path}")

    bottom_up = False
    try:
        if path.suffix.lower() in TIFF_EXTENSIONS:
            data, bottom_up = _read_tiff(path)
        else:
            data = _read_pillow(path)
    except (UnidentifiedImageError, tifffile.TiffFileError) as e:
        raise ValueError(f"Cannot decode image {path}: {e}") from e

    # Drop leading singleton axes, e.g. (1, H, W) from some TIFF writers
    while data.ndim > 2 and data.shape[0] == 1:
        data = data[0]

    if data.ndim != 2:
        raise ValueError(
            f"Expected a single-channel image, got shape {data.shape} in {path}"
        )

    logger.debug(
        "Loaded %s: %dx%d %s%s",
        path.name, data.shape[1], data.shape[0], data.dtype,
        " (bottom-up)" if bottom_up else "",
    )

    return Raster(data, bottom_up=bottom_up, path=path)
