"""Command line interface for tiling height images."""

import argparse
import logging
import sys
from typing import Optional

from .batch import format_image_info, image_info, tile_image
from .config import TileConfig, load_config

logger = logging.getLogger(__name__)

RESOLUTION_FLAGS = ("components", "sections", "quads")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="tileimage",
        description=(
            "Split a height image into square raw 16-bit tiles with "
            "stitched edges for terrain streaming."
        ),
    )
    parser.add_argument("-f", "--filename", help="Filename of image to tile.")
    parser.add_argument("-t", "--tile", action="store_true",
                        help="The image should be tiled.")
    parser.add_argument("-c", "--components", default=None,
                        help="The number of components, i.e. 2x2 (default: 2).")
    parser.add_argument("-s", "--sections", default=None,
                        help="The number of sections per component, i.e. 1x1 (default: 1).")
    parser.add_argument("-q", "--quads", default=None,
                        help="The number of quads per section, i.e. 7, 15, 31, 63, 127, 255 "
                             "(default: 63).")
    parser.add_argument("-i", "--info", action="store_true",
                        help="Display file info.")
    parser.add_argument("--config", default=None,
                        help="YAML file with components/sections/quads. "
                             "Explicit flags take precedence.")
    parser.add_argument("-o", "--output-dir", default=None,
                        help="Output folder (default: 'tiles' beside the image).")
    parser.add_argument("--manifest", action="store_true",
                        help="Also write a tiles.json manifest.")
    parser.add_argument("--no-progress", action="store_true",
                        help="Disable progress bars.")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging.")
    return parser


def validate_args(
    args: argparse.Namespace,
    unknown: Optional[list[str]] = None,
) -> list[str]:
    """Collect every problem with the parsed arguments.

    Resolution flags arrive as strings and are converted to ints in place,
    so a bad value doesn't hide the problems with the other options.

    Args:
        args: Namespace from ``parse_known_args``
        unknown: Leftover tokens the parser didn't recognise

    Returns:
        List of error messages, empty if the arguments are usable
    """
    errors = [f"Option '{token}' is unknown." for token in unknown or []]

    if not args.filename:
        errors.append("Required option 'f, filename' is missing.")

    for name in RESOLUTION_FLAGS:
        raw = getattr(args, name)
        if raw is None:
            continue
        try:
            value = int(raw)
        except (TypeError, ValueError):
            errors.append(f"Option '{name}' must be a positive integer, got {raw!r}.")
            continue
        if value < 1:
            errors.append(f"Option '{name}' must be a positive integer, got {value}.")
        setattr(args, name, value)

    if not args.tile and not args.info:
        errors.append("Nothing to do: pass --tile and/or --info.")

    return errors


def resolve_config(args: argparse.Namespace) -> TileConfig:
    """Build the tile configuration from the config file and flags."""
    config = load_config(args.config) if args.config else TileConfig()

    overrides = {
        name: getattr(args, name)
        for name in RESOLUTION_FLAGS
        if getattr(args, name) is not None
    }
    values = {**config.to_dict(), **overrides, "tile_mode": args.tile}

    return TileConfig.from_dict(values)


def main(argv: Optional[list[str]] = None) -> int:
    """Run the command line tool.

    Returns:
        Exit status: 0 on success, 1 on a processing error, 2 on bad arguments
    """
    parser = build_parser()
    args, unknown = parser.parse_known_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    errors = validate_args(args, unknown)
    if errors:
        for error in errors:
            print(error, file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 2

    try:
        config = resolve_config(args)

        if args.info:
            print(format_image_info(image_info(args.filename, config)))

        if config.tile_mode:
            tile_image(
                args.filename,
                config,
                output_dir=args.output_dir,
                write_manifest=args.manifest,
                progress=not args.no_progress,
            )
    except (OSError, ValueError) as e:
        logger.debug("Processing failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
