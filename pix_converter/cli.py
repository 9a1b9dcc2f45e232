"""Command line front end.

    pix-convert -b base -b dlc_base -m /vehicle/truck/cab -e out

Loads the model through the mounted base directories and writes its
.pim/.pit/.pis next to each other under the export directory.
"""

import argparse
import logging
import sys

from . import __version__
from .config import CONVERT_PRESETS, DEFAULT_PRESET, ConvertOptions
from .exporter.export_mid import save_to_mid_format
from .model.model import Model
from .utils.filesystem import SysFileSystem, UberFileSystem

_log = logging.getLogger("pix_cli")


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        prog="pix-convert",
        description="Convert a prism model (.pmg/.pmd) to mid-format (.pim/.pit/.pis)",
    )
    ap.add_argument("-b", "--base", action="append", default=[], metavar="DIR",
                    help="Base directory to mount (repeatable, later ones win)")
    ap.add_argument("-m", "--model", required=True,
                    help="Logical model path without extension, e.g. /vehicle/truck/cab")
    ap.add_argument("-e", "--export", help="Export directory (default: first base)")
    ap.add_argument("--preset", default=DEFAULT_PRESET, choices=sorted(CONVERT_PRESETS),
                    help=f"Option preset (default: {DEFAULT_PRESET})")
    ap.add_argument("--no-textures", action="store_true", help="Do not copy textures")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap.parse_args(argv)


def build_options(args) -> ConvertOptions:
    options = ConvertOptions.from_env(args.preset)
    options.base_paths.extend(args.base)
    if args.export:
        options.export_path = args.export
    elif options.base_paths and options.export_path == ".":
        options.export_path = options.base_paths[0]
    if args.no_textures:
        options.convert_textures = False
    if args.verbose:
        options.debug = True
    return options


def configure_logging(debug):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def convert(options: ConvertOptions, model_path: str,
            collision_factory=None, prefab_factory=None) -> bool:
    """Load ``model_path`` and write its mid-format. Companion decoders are
    only handed to the model when the options allow them."""
    filesystem = UberFileSystem(*(SysFileSystem(p) for p in options.base_paths))
    model = Model(
        filesystem,
        collision_factory=collision_factory if options.load_collision else None,
        prefab_factory=prefab_factory if options.load_prefab else None,
    )
    if not model.load(model_path):
        _log.error("Failed to load model \"%s\"", model_path)
        return False
    return save_to_mid_format(model, options.export_path, options.convert_textures)


def main(argv=None) -> int:
    args = parse_args(argv)
    options = build_options(args)
    configure_logging(options.debug)

    if not options.base_paths:
        raise SystemExit("At least one --base directory is required")
    if not args.model.startswith("/"):
        args.model = "/" + args.model

    return 0 if convert(options, args.model) else 1


if __name__ == "__main__":
    raise SystemExit(main())
