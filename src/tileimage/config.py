"""Tile resolution configuration and its YAML save/load."""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Union

import yaml

# Extra sample on each tile side. With it a tile of N quads spans N + 1
# vertices, so the last row/column of a tile and the first row/column of
# the next one describe the same terrain edge and can be stitched.
SHARED_EDGE_SAMPLES = 1


@dataclass
class TileConfig:
    """Tile resolution as components x sections x quads (+1).

    Defaults give 2 * 1 * 63 + 1 = 127 samples per tile side.
    """

    components: int = 2
    sections: int = 1
    quads: int = 63
    tile_mode: bool = False

    def __post_init__(self):
        for name in ("components", "sections", "quads"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

    @property
    def tile_size(self) -> int:
        """Side length of each tile in samples."""
        return self.components * self.sections * self.quads + SHARED_EDGE_SAMPLES

    def to_dict(self) -> dict:
        """Serialize to dict for YAML round-tripping."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "TileConfig":
        """Create from dict (e.g. loaded from YAML)."""
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in d.items() if k in known_fields}
        return cls(**filtered)


def save_config(config: TileConfig, output_path: Union[str, Path]) -> Path:
    """Save a tile configuration to a YAML file.

    Args:
        config: TileConfig to save
        output_path: Path for output YAML file

    Returns:
        Path to saved config file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.to_dict()
    data["tile_size"] = config.tile_size

    with open(output_path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    return output_path


def load_config(config_path: Union[str, Path]) -> TileConfig:
    """Load a tile configuration from a YAML file.

    Keys that are not TileConfig fields (such as the informational
    ``tile_size``) are ignored; missing keys take their defaults.

    Args:
        config_path: Path to YAML config file

    Returns:
        TileConfig

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ValueError(f"Invalid config format in {config_path}")

    return TileConfig.from_dict(data)
