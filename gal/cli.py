"""
Command line entry point.

    gal build --target-dir public/ photos/2023 photos/2024
    gal loop  --target-dir public/ photos/2023
"""

import argparse
import logging
import sys

from pydantic import ValidationError

from gal import __version__
from gal.build import Builder
from gal.config import GalConfig
from gal.errors import ConfigError
from gal.watch import watch

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stderr)
    # Debug output from our own loggers only, not from Pillow or watchdog
    logging.getLogger("gal").setLevel(logging.DEBUG if verbose else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--concurrency", type=int, default=None,
                        help="Number of build jobs to run in parallel (default: 30)")
    common.add_argument("--magick-bin", default=None,
                        help="Path to ImageMagick binary (can also use MAGICK_BIN)")
    common.add_argument("--mozjpeg-bin", default=None,
                        help="Path to MozJPEG binary (can also use MOZJPEG_BIN)")
    common.add_argument("--verbose", action="store_true", default=None,
                        help="Run in verbose mode")
    common.add_argument("-t", "--target-dir", required=True,
                        help="Path to directory where to put output artifacts (required)")
    common.add_argument("paths", nargs="+", metavar="path",
                        help="Source directories to search for photos")

    parser = argparse.ArgumentParser(prog="gal", description="Gal is a very simple image gallery that generates statically.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("build", parents=[common], help="Run a single build")
    sub.add_parser("loop", parents=[common],
                   help="Build, then rebuild whenever a source directory changes")
    return parser


def load_config(args: argparse.Namespace) -> GalConfig:
    overrides = {
        "concurrency": args.concurrency,
        "magick_bin": args.magick_bin,
        "mozjpeg_bin": args.mozjpeg_bin,
        "verbose": args.verbose,
    }
    # Unset flags fall through to the environment and defaults
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return GalConfig(target_dir=args.target_dir, source_dirs=args.paths, **overrides)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
        config.require_image_bins()
    except ValidationError as e:
        print(f"Error parsing configuration: {e}", file=sys.stderr)
        return 1
    except ConfigError as e:
        print(e, file=sys.stderr)
        return 1

    setup_logging(config.verbose)
    builder = Builder(config)

    if args.command == "loop":
        watch(config, builder=builder)
        return 0

    outcome = builder.build()
    if outcome.errors:
        print(f"Build failed with {len(outcome.errors)} error(s):", file=sys.stderr)
        for error in outcome.errors:
            print(f"  {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
